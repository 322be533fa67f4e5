"""Public site configuration and site-admin website settings."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from pwb.core.database import get_db
from pwb.core.i18n import get_locale, translate
from pwb.core.security import require_website_admin
from pwb.middleware.tenant import get_current_website, invalidate_website_hosts
from pwb.models.user import User
from pwb.models.website import Website
from pwb.schemas.website import (
    AgencyContact,
    DomainStatusResponse,
    PublicSiteResponse,
    WebsiteAdminResponse,
    WebsiteUpdate,
)
from pwb.services import domains
from pwb.services.rendering import WebsiteRendering

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()

# Values offered in the search form price dropdowns, in currency units
PRICE_OPTIONS = {
    "sale": [
        25000, 50000, 75000, 100000, 150000, 200000, 250000, 300000,
        400000, 500000, 750000, 1000000, 2000000, 5000000,
    ],
    "rental": [250, 500, 750, 1000, 1250, 1500, 2000, 2500, 3000, 5000],
}

AREA_UNITS = ("sqmt", "sqft")


def domain_status(website: Website) -> DomainStatusResponse:
    return DomainStatusResponse(
        custom_domain=website.custom_domain,
        verified=bool(website.custom_domain_verified),
        verified_at=website.custom_domain_verified_at,
        active=domains.custom_domain_active(website),
        primary_url=domains.primary_url(website),
        dns_instructions=domains.dns_instructions(website),
    )


@router.get("/site", response_model=PublicSiteResponse)
async def public_site(website: Website = Depends(get_current_website), db: Session = Depends(get_db)):
    """Configuration the public pages and the client renderer need."""
    rendering = WebsiteRendering(db, website)
    agency = website.agency
    return PublicSiteResponse(
        id=website.id,
        subdomain=website.subdomain,
        company_display_name=website.display_name,
        theme_name=website.theme_name,
        main_logo_url=website.main_logo_url,
        default_client_locale=website.default_client_locale,
        supported_locales=website.supported_locales or [website.default_client_locale],
        default_currency=website.default_currency,
        available_currencies=website.available_currencies or [],
        exchange_rates=website.exchange_rates or {},
        default_area_unit=website.default_area_unit,
        rendering_mode=website.rendering_mode,
        client_theme_name=website.client_theme_name if website.client_rendering else None,
        client_theme_config=rendering.effective_client_theme_config(),
        client_theme_css=rendering.client_theme_css_variables(),
        primary_url=domains.primary_url(website),
        price_options=PRICE_OPTIONS,
        agency=AgencyContact.model_validate(agency) if agency else None,
    )


# Site admin

@admin_router.get("/website", response_model=WebsiteAdminResponse)
async def get_website(
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
):
    return website


@admin_router.put("/website", response_model=WebsiteAdminResponse)
async def update_website(
    payload: WebsiteUpdate,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
):
    """
    Update website settings.

    Returns 422 with field errors when the rendering mode is locked, the
    theme is unknown or the custom domain is invalid.
    """
    previous_mode = website.rendering_mode
    previous_domain = website.custom_domain
    changes = payload.model_dump(exclude_unset=True)
    custom_domain = changes.pop("custom_domain", website.custom_domain)

    errors = {}
    for field, value in changes.items():
        setattr(website, field, value)

    if "default_area_unit" in changes and website.default_area_unit not in AREA_UNITS:
        errors["default_area_unit"] = ["is not included in the list"]
    if "default_currency" in changes and len(website.default_currency or "") != 3:
        errors["default_currency"] = ["must be a 3-letter ISO code"]
    if "default_currency" in changes:
        website.default_currency = (website.default_currency or "").upper()

    errors.update(WebsiteRendering(db, website).validate(previous_mode=previous_mode))

    domain_errors = domains.validate_custom_domain(db, custom_domain, website.id)
    if domain_errors:
        errors["custom_domain"] = domain_errors
    else:
        domains.set_custom_domain(website, custom_domain)

    if errors:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=errors)

    db.commit()
    db.refresh(website)
    invalidate_website_hosts(website, previous_domain)
    logger.info(f"Website {website.id} settings updated by user {user.id}: {sorted(changes)}")
    return website


@admin_router.get("/domain", response_model=DomainStatusResponse)
async def get_domain_status(
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
):
    return domain_status(website)


@admin_router.post("/domain/verification_token", response_model=DomainStatusResponse)
async def regenerate_verification_token(
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    if not website.custom_domain:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=translate("custom_domain_missing", locale),
        )
    domains.generate_domain_verification_token(website)
    db.commit()
    return domain_status(website)


@admin_router.post("/domain/verify", response_model=DomainStatusResponse)
async def verify_domain(
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    """Look up the TXT record and mark the custom domain verified on a match."""
    if not website.custom_domain:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=translate("custom_domain_missing", locale),
        )
    if domains.verify_custom_domain(website):
        db.commit()
        invalidate_website_hosts(website)
    return domain_status(website)
