"""Listing video requests, pipeline callbacks and public share links."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from pwb.core.database import get_db
from pwb.core.exceptions import DomainValidationError
from pwb.core.i18n import get_locale, translate
from pwb.core.security import require_website_admin
from pwb.core.tenant import for_website
from pwb.middleware.tenant import get_current_website
from pwb.models.listing_video import ListingVideo
from pwb.models.prop import Prop
from pwb.models.user import User
from pwb.models.website import Website
from pwb.schemas.report import ListingVideoComplete, ListingVideoCreate, ListingVideoFail, ListingVideoResponse
from pwb.services.listing_videos import ListingVideoService

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()


def _find_video(service: ListingVideoService, video_id: int, locale: str) -> ListingVideo:
    video = service.get(video_id)
    if video is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=translate("video_not_found", locale))
    return video


@admin_router.get("/listing_videos", response_model=List[ListingVideoResponse])
async def list_videos(
    video_status: Optional[str] = None,
    video_format: Optional[str] = None,
    q: Optional[str] = None,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
):
    return ListingVideoService(db, website).list_videos(status=video_status, video_format=video_format, search=q)


@admin_router.post("/listing_videos", response_model=ListingVideoResponse, status_code=status.HTTP_201_CREATED)
async def create_video(
    payload: ListingVideoCreate,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    prop = for_website(db, Prop, website.id).filter(Prop.id == payload.prop_id).first()
    if prop is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=translate("property_not_found", locale))

    try:
        return ListingVideoService(db, website).create(
            prop,
            user=user,
            title=payload.title,
            video_format=payload.format,
            style=payload.style,
            voice=payload.voice,
            branding=payload.branding,
        )
    except DomainValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.errors)


@admin_router.get("/listing_videos/{video_id}", response_model=ListingVideoResponse)
async def get_video(
    video_id: int,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    return _find_video(ListingVideoService(db, website), video_id, locale)


@admin_router.post("/listing_videos/{video_id}/generating", response_model=ListingVideoResponse)
async def mark_generating(
    video_id: int,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    service = ListingVideoService(db, website)
    return service.mark_generating(_find_video(service, video_id, locale))


@admin_router.post("/listing_videos/{video_id}/complete", response_model=ListingVideoResponse)
async def complete_video(
    video_id: int,
    payload: ListingVideoComplete,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    """Callback from the rendering pipeline once the video is uploaded."""
    service = ListingVideoService(db, website)
    video = _find_video(service, video_id, locale)
    return service.complete(video, **payload.model_dump(exclude_none=True))


@admin_router.post("/listing_videos/{video_id}/fail", response_model=ListingVideoResponse)
async def fail_video(
    video_id: int,
    payload: ListingVideoFail,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    service = ListingVideoService(db, website)
    return service.fail(_find_video(service, video_id, locale), payload.error_message)


@admin_router.post("/listing_videos/{video_id}/share", response_model=ListingVideoResponse)
async def share_video(
    video_id: int,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    service = ListingVideoService(db, website)
    video = _find_video(service, video_id, locale)
    if not video.video_ready:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=translate("video_not_ready", locale))
    return service.share(video)


@router.get("/listing_videos/{share_token}", response_model=ListingVideoResponse)
async def view_shared_video(
    share_token: str,
    website: Website = Depends(get_current_website),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    service = ListingVideoService(db, website)
    video = service.find_shared(share_token)
    if video is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=translate("video_not_found", locale))
    service.record_view(video)
    return video
