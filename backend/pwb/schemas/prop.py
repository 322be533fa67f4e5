"""Property listing schemas for request/response validation."""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime


class PropBase(BaseModel):
    """Base property schema."""
    reference: Optional[str] = None
    slug: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    year_construction: Optional[int] = None
    count_bedrooms: Optional[int] = 0
    count_bathrooms: Optional[float] = 0
    count_toilets: Optional[int] = 0
    count_garages: Optional[int] = 0
    plot_area: Optional[float] = 0
    constructed_area: Optional[float] = 0
    prop_type_key: Optional[str] = None
    prop_state_key: Optional[str] = None
    primary_image_url: Optional[str] = None
    visible: bool = False
    highlighted: bool = False
    reserved: bool = False
    sold: bool = False
    archived: bool = False
    furnished: bool = False
    for_sale: bool = False
    for_rent_long_term: bool = False
    for_rent_short_term: bool = False
    price_sale_current_cents: int = 0
    price_sale_current_currency: Optional[str] = None
    price_rental_monthly_current_cents: int = 0
    price_rental_monthly_current_currency: Optional[str] = None
    street_address: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    game_enabled: bool = False


class PropCreate(PropBase):
    """Schema for creating a property."""
    features: List[str] = Field(default_factory=list)


class PropUpdate(BaseModel):
    """Schema for updating a property. Only provided fields change."""
    reference: Optional[str] = None
    slug: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    year_construction: Optional[int] = None
    count_bedrooms: Optional[int] = None
    count_bathrooms: Optional[float] = None
    count_toilets: Optional[int] = None
    count_garages: Optional[int] = None
    plot_area: Optional[float] = None
    constructed_area: Optional[float] = None
    prop_type_key: Optional[str] = None
    prop_state_key: Optional[str] = None
    primary_image_url: Optional[str] = None
    visible: Optional[bool] = None
    highlighted: Optional[bool] = None
    reserved: Optional[bool] = None
    sold: Optional[bool] = None
    archived: Optional[bool] = None
    furnished: Optional[bool] = None
    for_sale: Optional[bool] = None
    for_rent_long_term: Optional[bool] = None
    for_rent_short_term: Optional[bool] = None
    price_sale_current_cents: Optional[int] = None
    price_sale_current_currency: Optional[str] = None
    price_rental_monthly_current_cents: Optional[int] = None
    price_rental_monthly_current_currency: Optional[str] = None
    street_address: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    game_enabled: Optional[bool] = None
    features: Optional[List[str]] = None


class PropResponse(PropBase):
    """Schema for property response."""
    id: int
    website_id: int
    for_rent: bool
    price_cents: int
    currency: str
    url_friendly_title: str
    location: str
    show_map: bool
    feature_keys: List[str] = []
    game_token: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FacetItem(BaseModel):
    value: str
    label: str
    count: int
    global_key: Optional[str] = None


class SearchResponse(BaseModel):
    """Paginated search results with facet counts."""
    properties: List[PropResponse]
    total: int
    page: int
    per_page: int
    total_pages: int
    operation: str
    criteria: Dict[str, Any]
    canonical_url: str
    facets: Optional[Dict[str, List[FacetItem]]] = None
