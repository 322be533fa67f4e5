"""Comparative market analysis reports."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from pwb.core.config import settings
from pwb.core.database import get_current_shard, get_db
from pwb.core.i18n import get_locale, translate
from pwb.core.security import require_website_admin
from pwb.core.tenant import for_website
from pwb.middleware.tenant import get_current_website
from pwb.models.market_report import MarketReport
from pwb.models.prop import Prop
from pwb.models.user import User
from pwb.models.website import Website
from pwb.schemas.report import MarketReportCreate, MarketReportResponse, MarketReportSummary
from pwb.services.reports.generator import CmaGenerator
from pwb.workflows.client import get_temporal_client

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()


def _find_report(db: Session, website: Website, report_id: int, locale: str) -> MarketReport:
    report = for_website(db, MarketReport, website.id).filter(MarketReport.id == report_id).first()
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=translate("report_not_found", locale))
    return report


@admin_router.get("/market_reports", response_model=List[MarketReportSummary])
async def list_reports(
    report_status: Optional[str] = None,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
):
    query = for_website(db, MarketReport, website.id)
    if report_status:
        query = query.filter(MarketReport.status == report_status)
    return query.order_by(MarketReport.created_at.desc(), MarketReport.id.desc()).all()


@admin_router.post("/market_reports", response_model=MarketReportResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    payload: MarketReportCreate,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    """
    Create a CMA for one of the website's properties.

    Generation runs inline, or on the Temporal worker when workflows are
    enabled (the report is returned as a draft and completes later).
    """
    prop = for_website(db, Prop, website.id).filter(Prop.id == payload.prop_id).first()
    if prop is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=translate("property_not_found", locale))

    options = {
        "title": payload.title,
        "radius_km": payload.radius_km,
        "max_comparables": payload.max_comparables,
        "branding": payload.branding,
    }
    generator = CmaGenerator(db, prop, website, user=user, options=options)
    report = generator.create_report()

    if settings.ENABLE_TEMPORAL_WORKFLOWS:
        try:
            temporal_client = get_temporal_client()
            workflow_info = await temporal_client.start_market_report(report.id, website.id, get_current_shard())
            report.workflow_id = workflow_info["workflow_id"]
            db.commit()
            db.refresh(report)
            return report
        except Exception as e:
            logger.error(f"Failed to start market report workflow: {e}. Generating inline.")

    result = generator.generate(report)
    if not result.success:
        logger.warning(f"Market report {report.id} finished with error: {result.error}")
    db.refresh(report)
    return report


@admin_router.get("/market_reports/{report_id}", response_model=MarketReportResponse)
async def get_report(
    report_id: int,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    return _find_report(db, website, report_id, locale)


@admin_router.post("/market_reports/{report_id}/share", response_model=MarketReportResponse)
async def share_report(
    report_id: int,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    """Publish a completed report under a share token. Sharing again is a no-op."""
    report = _find_report(db, website, report_id, locale)
    if report.is_shared:
        return report
    if not report.is_completed:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=translate("report_not_ready", locale))

    report.mark_shared()
    db.commit()
    db.refresh(report)
    logger.info(f"Market report {report.id} shared")
    return report


@admin_router.delete("/market_reports/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_report(
    report_id: int,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    report = _find_report(db, website, report_id, locale)
    db.delete(report)
    db.commit()
    return None


@router.get("/reports/{share_token}", response_model=MarketReportResponse)
async def view_shared_report(
    share_token: str,
    website: Website = Depends(get_current_website),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    report = (
        for_website(db, MarketReport, website.id)
        .filter(MarketReport.share_token == share_token, MarketReport.status == "shared")
        .first()
    )
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=translate("report_not_found", locale))

    report.record_view()
    db.commit()
    db.refresh(report)
    return report
