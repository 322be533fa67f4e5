"""Market report and listing video schemas."""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Union
from datetime import datetime


class MarketReportCreate(BaseModel):
    """Request a CMA for one of the website's properties."""
    prop_id: int
    title: Optional[str] = None
    radius_km: float = Field(default=2, gt=0, le=100)
    max_comparables: int = Field(default=10, ge=1, le=50)
    branding: Optional[Dict[str, Any]] = None


class MarketReportSummary(BaseModel):
    id: int
    reference_number: Optional[str] = None
    report_type: str
    status: str
    title: str
    subject_prop_id: Optional[int] = None
    city: Optional[str] = None
    comparable_count: int
    view_count: int
    share_token: Optional[str] = None
    generated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MarketReportResponse(MarketReportSummary):
    subject_details: Dict[str, Any] = {}
    radius_km: Optional[float] = None
    market_statistics: Dict[str, Any] = {}
    comparable_properties: List[Dict[str, Any]] = []
    ai_insights: Dict[str, Any] = {}
    suggested_price_range: Optional[Dict[str, Any]] = None
    branding: Dict[str, Any] = {}
    error_message: Optional[str] = None
    shared_at: Optional[datetime] = None
    pdf_filename: str


class ListingVideoCreate(BaseModel):
    prop_id: int
    title: Optional[str] = None
    format: str = "vertical_9_16"
    style: str = "professional"
    voice: str = "nova"
    branding: Optional[Dict[str, Any]] = None


class ListingVideoComplete(BaseModel):
    """Callback payload from the rendering pipeline."""
    video_url: str
    thumbnail_url: Optional[str] = None
    audio_url: Optional[str] = None
    script: Optional[str] = None
    scenes: Optional[List[Dict[str, Any]]] = None
    music_track: Optional[str] = None
    duration_seconds: Optional[int] = None
    cost_cents: Optional[int] = None


class ListingVideoFail(BaseModel):
    error_message: str


class ListingVideoResponse(BaseModel):
    id: int
    prop_id: int
    reference_number: Optional[str] = None
    title: str
    status: str
    format: str
    format_label: str
    aspect_ratio: str
    style: str
    voice: str
    script: Optional[str] = None
    scenes: List[Dict[str, Any]] = []
    scene_count: int
    total_scene_duration: float
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_ready: bool
    duration_seconds: Optional[int] = None
    duration_formatted: Optional[str] = None
    cost_formatted: Optional[str] = None
    company_name: Optional[str] = None
    agent_name: Optional[str] = None
    logo_url: Optional[str] = None
    primary_color: str
    share_token: Optional[str] = None
    view_count: int
    error_message: Optional[str] = None
    generated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GuessCreate(BaseModel):
    guessed_price: Union[str, int, float]
    currency: Optional[str] = None
