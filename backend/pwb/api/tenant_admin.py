"""Platform administration: website lifecycle, shards, subdomain pool and rates."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from pwb.core.database import get_db
from pwb.core.exceptions import InvalidTransitionError, RateFetchError
from pwb.core.i18n import get_locale, translate
from pwb.core.security import require_platform_admin
from pwb.middleware.tenant import invalidate_website_hosts
from pwb.models.user import User
from pwb.models.website import Website
from pwb.services import exchange_rates, subdomain_pool
from pwb.services.provisioning import WebsiteLifecycle
from pwb.services.shards import ShardRegistry, ShardService, health_check

logger = logging.getLogger(__name__)

router = APIRouter()

LIFECYCLE_EVENTS = ("suspend", "reactivate", "terminate", "go_live")


class ShardAssignment(BaseModel):
    shard_name: str
    notes: Optional[str] = None


class PoolPopulate(BaseModel):
    count: int = 100


def website_summary(db: Session, website: Website) -> dict:
    lifecycle = WebsiteLifecycle(db, website)
    return {
        "id": website.id,
        "subdomain": website.subdomain,
        "custom_domain": website.custom_domain,
        "company_display_name": website.company_display_name,
        "provisioning_state": website.provisioning_state,
        "progress": lifecycle.progress,
        "shard_name": website.shard_name,
        "rendering_mode": website.rendering_mode,
        "created_at": website.created_at,
    }


def _get_website(db: Session, website_id: int, locale: str) -> Website:
    website = db.get(Website, website_id)
    if website is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=translate("website_not_found", locale))
    return website


# Websites

@router.get("/websites")
async def list_websites(
    state: Optional[str] = None,
    shard: Optional[str] = None,
    skip: int = 0,
    limit: int = Query(100, le=500),
    admin: User = Depends(require_platform_admin),
    db: Session = Depends(get_db),
):
    query = db.query(Website)
    if state:
        query = query.filter(Website.provisioning_state == state)
    if shard:
        query = query.filter(Website.shard_name == shard)
    websites = query.order_by(Website.id).offset(skip).limit(limit).all()
    return [website_summary(db, website) for website in websites]


@router.get("/websites/{website_id}")
async def get_website(
    website_id: int,
    admin: User = Depends(require_platform_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    website = _get_website(db, website_id, locale)
    lifecycle = WebsiteLifecycle(db, website)
    return {
        **website_summary(db, website),
        **lifecycle.summary(),
        "checklist": lifecycle.checklist(),
        "provisioning_error": website.provisioning_error,
    }


@router.post("/websites/{website_id}/events/{event}")
async def transition_website(
    website_id: int,
    event: str,
    admin: User = Depends(require_platform_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    """Fire a lifecycle event (suspend, reactivate, terminate, go_live)."""
    if event not in LIFECYCLE_EVENTS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown event: {event}")

    website = _get_website(db, website_id, locale)
    lifecycle = WebsiteLifecycle(db, website)
    try:
        lifecycle.fire(event)
    except InvalidTransitionError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    db.commit()
    invalidate_website_hosts(website)
    logger.info(f"Website {website.id} {event} by {admin.email}")
    return website_summary(db, website)


# Shards

@router.get("/shards")
async def list_shards(admin: User = Depends(require_platform_admin)):
    return {"shards": ShardRegistry.describe()}


@router.get("/shards/health")
async def shards_health(admin: User = Depends(require_platform_admin)):
    return {"shards": [health_check(name).to_dict() for name in ShardRegistry.logical_shards()]}


@router.get("/shards/distribution")
async def shards_distribution(
    admin: User = Depends(require_platform_admin),
    db: Session = Depends(get_db),
):
    return ShardService(db).shard_distribution()


@router.put("/websites/{website_id}/shard")
async def assign_shard(
    website_id: int,
    payload: ShardAssignment,
    admin: User = Depends(require_platform_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    website = _get_website(db, website_id, locale)
    result = ShardService(db).assign_shard(website, payload.shard_name, changed_by=admin.email, notes=payload.notes)
    if result.failure:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=result.error)

    invalidate_website_hosts(website)
    return {"success": True, **result.data}


@router.get("/websites/{website_id}/shard_audit")
async def shard_audit(
    website_id: int,
    admin: User = Depends(require_platform_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    website = _get_website(db, website_id, locale)
    return [
        {
            "old_shard_name": entry.old_shard_name,
            "new_shard_name": entry.new_shard_name,
            "changed_by_email": entry.changed_by_email,
            "notes": entry.notes,
            "status": entry.status,
            "created_at": entry.created_at,
        }
        for entry in ShardService(db).audit_log(website)
    ]


# Subdomain pool

@router.get("/subdomains/stats")
async def pool_stats(
    admin: User = Depends(require_platform_admin),
    db: Session = Depends(get_db),
):
    return subdomain_pool.pool_stats(db)


@router.post("/subdomains/populate")
async def populate_pool(
    payload: PoolPopulate,
    admin: User = Depends(require_platform_admin),
    db: Session = Depends(get_db),
):
    created = subdomain_pool.SubdomainGenerator(db).populate_pool(count=payload.count)
    return {"created": created, **subdomain_pool.pool_stats(db)}


@router.post("/subdomains/release_expired")
async def release_expired(
    admin: User = Depends(require_platform_admin),
    db: Session = Depends(get_db),
):
    return {"released": subdomain_pool.release_expired(db)}


# Exchange rates

@router.post("/websites/{website_id}/exchange_rates")
async def refresh_rates(
    website_id: int,
    admin: User = Depends(require_platform_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    website = _get_website(db, website_id, locale)
    try:
        rates = exchange_rates.update_rates(db, website)
    except RateFetchError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return {"base": website.default_currency, "rates": rates, "updated_at": website.exchange_rates_updated_at}
