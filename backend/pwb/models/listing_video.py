"""AI-generated listing video records."""

from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey, event
from sqlalchemy.orm import relationship
from datetime import datetime
from typing import Optional

from pwb.core.database import Base
from pwb.core.tenant import TenantScoped
from pwb.core.tokens import reference_number, urlsafe_token


VIDEO_FORMATS = ("vertical_9_16", "horizontal_16_9", "square_1_1")
VIDEO_STYLES = ("professional", "luxury", "casual", "energetic", "minimal")
VIDEO_VOICES = ("alloy", "echo", "fable", "onyx", "nova", "shimmer")
VIDEO_STATUSES = ("pending", "generating", "completed", "failed")

DEFAULT_PRIMARY_COLOR = "#2563eb"

FORMAT_LABELS = {
    "vertical_9_16": ("Vertical (9:16)", "9:16"),
    "horizontal_16_9": ("Horizontal (16:9)", "16:9"),
    "square_1_1": ("Square (1:1)", "1:1"),
}


class ListingVideo(TenantScoped, Base):
    """A short marketing video generated for a property."""

    __tablename__ = "listing_videos"

    id = Column(Integer, primary_key=True, index=True)
    prop_id = Column(Integer, ForeignKey("props.id"), nullable=False, index=True)
    user_id = Column(Integer, index=True)

    title = Column(String, nullable=False)
    status = Column(String, default="pending", nullable=False, index=True)
    format = Column(String, default="vertical_9_16", nullable=False)
    style = Column(String, default="professional", nullable=False)
    voice = Column(String, default="nova", nullable=False)
    reference_number = Column(String, index=True)

    script = Column(Text)
    scenes = Column(JSON, default=list)
    music_track = Column(String)
    video_url = Column(String)
    thumbnail_url = Column(String)
    audio_url = Column(String)
    duration_seconds = Column(Integer)
    cost_cents = Column(Integer)
    branding = Column(JSON, default=dict)

    share_token = Column(String, unique=True, index=True)
    shared_at = Column(DateTime)
    view_count = Column(Integer, default=0, nullable=False)

    error_message = Column(Text)
    failed_at = Column(DateTime)
    generated_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    prop = relationship("Prop")

    def mark_generating(self):
        self.status = "generating"

    def mark_completed(self, **attrs):
        for key, value in attrs.items():
            setattr(self, key, value)
        self.status = "completed"
        self.generated_at = datetime.utcnow()
        self.error_message = None
        self.failed_at = None

    def mark_failed(self, message: str):
        self.status = "failed"
        self.error_message = message
        self.failed_at = datetime.utcnow()

    def mark_shared(self):
        self.shared_at = datetime.utcnow()
        self.share_token = urlsafe_token(16)

    def record_view(self):
        self.view_count = (self.view_count or 0) + 1

    @property
    def video_ready(self) -> bool:
        return bool(self.video_url)

    @property
    def video_filename(self) -> str:
        return f"listing_video_{self.reference_number}.mp4"

    @property
    def format_label(self) -> str:
        if self.format in FORMAT_LABELS:
            return FORMAT_LABELS[self.format][0]
        return (self.format or "").replace("_", " ").title()

    @property
    def aspect_ratio(self) -> str:
        return FORMAT_LABELS.get(self.format, ("", "9:16"))[1]

    @property
    def duration_formatted(self) -> Optional[str]:
        if self.duration_seconds is None:
            return None
        minutes, seconds = divmod(self.duration_seconds, 60)
        return f"{minutes}:{seconds:02d}"

    @property
    def cost_formatted(self) -> Optional[str]:
        if self.cost_cents is None:
            return None
        return f"${round(self.cost_cents / 100.0, 2)}"

    @property
    def logo_url(self):
        return (self.branding or {}).get("logo_url")

    @property
    def company_name(self):
        return (self.branding or {}).get("company_name")

    @property
    def agent_name(self):
        return (self.branding or {}).get("agent_name")

    @property
    def primary_color(self) -> str:
        return (self.branding or {}).get("primary_color") or DEFAULT_PRIMARY_COLOR

    @property
    def scene_count(self) -> int:
        return len(self.scenes or [])

    @property
    def total_scene_duration(self):
        return sum((scene.get("duration") or 0) for scene in (self.scenes or []))


@event.listens_for(ListingVideo, "before_insert")
def _assign_reference_number(mapper, connection, target):
    if not target.reference_number:
        target.reference_number = reference_number("VID")
