"""
Listing video records. Rendering happens in an external pipeline that
reports back through the complete/fail callbacks.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from pwb.core.exceptions import DomainValidationError
from pwb.core.tenant import for_website
from pwb.models.listing_video import VIDEO_FORMATS, VIDEO_STATUSES, VIDEO_STYLES, VIDEO_VOICES, ListingVideo
from pwb.models.prop import Prop
from pwb.models.user import User
from pwb.models.website import Website

logger = logging.getLogger(__name__)

COMPLETION_FIELDS = (
    "video_url",
    "thumbnail_url",
    "audio_url",
    "script",
    "scenes",
    "music_track",
    "duration_seconds",
    "cost_cents",
)


def default_branding(website: Website, user: Optional[User] = None) -> dict:
    agency = website.agency
    branding = {
        "company_name": (agency.display_name if agency else None) or website.company_display_name,
        "logo_url": website.main_logo_url,
        "agent_name": user.display_name if user else None,
        "agent_phone": agency.phone_number_primary if agency else None,
        "agent_email": (agency.email_primary if agency else None) or (user.email if user else None),
    }
    return {key: value for key, value in branding.items() if value is not None}


def validate_options(video_format: str, style: str, voice: str) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    if video_format not in VIDEO_FORMATS:
        errors["format"] = ["is not included in the list"]
    if style not in VIDEO_STYLES:
        errors["style"] = ["is not included in the list"]
    if voice not in VIDEO_VOICES:
        errors["voice"] = ["is not included in the list"]
    return errors


class ListingVideoService:
    def __init__(self, db: Session, website: Website):
        self.db = db
        self.website = website

    def query(self):
        return for_website(self.db, ListingVideo, self.website.id)

    def list_videos(self, status: Optional[str] = None, video_format: Optional[str] = None,
                    search: Optional[str] = None) -> List[ListingVideo]:
        query = self.query()
        if status in VIDEO_STATUSES:
            query = query.filter(ListingVideo.status == status)
        if video_format:
            query = query.filter(ListingVideo.format == video_format)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(ListingVideo.title.ilike(term), ListingVideo.reference_number.ilike(term)))
        return query.order_by(ListingVideo.created_at.desc(), ListingVideo.id.desc()).all()

    def get(self, video_id: int) -> Optional[ListingVideo]:
        return self.query().filter(ListingVideo.id == video_id).first()

    def create(self, prop: Prop, user: Optional[User] = None, title: Optional[str] = None,
               video_format: str = "vertical_9_16", style: str = "professional", voice: str = "nova",
               branding: Optional[dict] = None) -> ListingVideo:
        errors = validate_options(video_format, style, voice)
        if errors:
            raise DomainValidationError(errors)

        video = ListingVideo(
            website_id=self.website.id,
            prop_id=prop.id,
            user_id=user.id if user else None,
            title=title or f"Video for {prop.title or prop.reference or f'property {prop.id}'}",
            format=video_format,
            style=style,
            voice=voice,
            branding=branding or default_branding(self.website, user),
        )
        self.db.add(video)
        self.db.commit()
        self.db.refresh(video)
        logger.info(f"Listing video {video.reference_number} requested for property {prop.id}")
        return video

    def mark_generating(self, video: ListingVideo) -> ListingVideo:
        video.mark_generating()
        self.db.commit()
        return video

    def complete(self, video: ListingVideo, **attrs) -> ListingVideo:
        video.mark_completed(**{key: value for key, value in attrs.items() if key in COMPLETION_FIELDS})
        self.db.commit()
        self.db.refresh(video)
        logger.info(f"Listing video {video.reference_number} completed")
        return video

    def fail(self, video: ListingVideo, message: str) -> ListingVideo:
        video.mark_failed(message)
        self.db.commit()
        self.db.refresh(video)
        logger.warning(f"Listing video {video.reference_number} failed: {message}")
        return video

    def share(self, video: ListingVideo) -> ListingVideo:
        if not video.share_token:
            video.mark_shared()
            self.db.commit()
            self.db.refresh(video)
        return video

    def find_shared(self, token: str) -> Optional[ListingVideo]:
        return self.query().filter(ListingVideo.share_token == token).first()

    def record_view(self, video: ListingVideo) -> None:
        video.record_view()
        self.db.commit()
