"""Self-service signup: reserve a subdomain, configure and provision a website."""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from pwb.core.database import get_db
from pwb.core.exceptions import SubdomainPoolEmptyError, SubdomainPoolExhaustedError
from pwb.core.i18n import get_locale, translate
from pwb.core.security import create_signup_token, require_signup_session, set_signup_cookie
from pwb.models.user import User
from pwb.models.website import Website
from pwb.schemas.website import ProvisioningStatus, SignupConfigure, SignupProvision, SignupStart
from pwb.services.domains import primary_url
from pwb.services.mailer import deliver_verification
from pwb.services.provisioning import ProvisioningService, WebsiteLifecycle

logger = logging.getLogger(__name__)

router = APIRouter()


def provisioning_status(db: Session, website: Website) -> ProvisioningStatus:
    lifecycle = WebsiteLifecycle(db, website)
    return ProvisioningStatus(
        website_id=website.id,
        subdomain=website.subdomain,
        primary_url=primary_url(website),
        checklist=lifecycle.checklist(),
        **lifecycle.summary(),
    )


def _get_website(db: Session, website_id: int, locale: str) -> Website:
    website = db.get(Website, website_id)
    if website is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=translate("website_not_found", locale))
    return website


def _signup_website(db: Session, signup: dict, website_id: int, locale: str) -> Website:
    """The website created in this signup session."""
    if signup.get("website_id") != website_id:
        logger.warning(f"Signup session for user {signup.get('user_id')} denied access to website {website_id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=translate("forbidden", locale))
    return _get_website(db, website_id, locale)


def _failed(result: dict) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail={"errors": result["errors"]})


@router.post("/start")
async def start_signup(
    payload: SignupStart,
    response: Response,
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    """Register the email and hold a random subdomain for it."""
    service = ProvisioningService(db)
    try:
        result = service.start_signup(payload.email)
    except (SubdomainPoolEmptyError, SubdomainPoolExhaustedError) as e:
        logger.error(f"Signup blocked for {payload.email}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=translate("subdomain_pool_empty", locale),
        )

    if not result["success"]:
        raise _failed(result)

    subdomain = result["subdomain"]
    token = create_signup_token(result["user"].id)
    set_signup_cookie(response, token)
    return {
        "success": True,
        "user_id": result["user"].id,
        "signup_token": token,
        "subdomain": subdomain.name,
        "reserved_until": subdomain.reserved_until,
    }


@router.get("/check_subdomain")
async def check_subdomain(
    name: str = Query(..., min_length=1),
    email: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    result = ProvisioningService(db).check_subdomain_availability(name, email)
    return {"available": result["valid"], "normalized": result["normalized"], "errors": result["errors"]}


@router.get("/suggest_subdomain")
async def suggest_subdomain(db: Session = Depends(get_db)):
    return {"subdomain": ProvisioningService(db).suggest_subdomain()}


@router.post("/configure", status_code=status.HTTP_201_CREATED)
async def configure_site(
    payload: SignupConfigure,
    response: Response,
    signup: dict = Depends(require_signup_session),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    user = db.get(User, signup["user_id"])
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=translate("signup_session_required", locale),
        )

    service = ProvisioningService(db)
    result = service.configure_site(user, payload.subdomain, payload.site_type, payload.theme_name)
    if not result["success"]:
        raise _failed(result)

    website = result["website"]
    token = create_signup_token(user.id, website.id)
    set_signup_cookie(response, token)
    return {"success": True, "website_id": website.id, "subdomain": website.subdomain, "signup_token": token}


@router.post("/provision", response_model=ProvisioningStatus)
async def provision_website(
    payload: SignupProvision,
    background_tasks: BackgroundTasks,
    signup: dict = Depends(require_signup_session),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    """
    Run provisioning to the locked state and email the verification link.

    A failed website is retried from the start.
    """
    website = _signup_website(db, signup, payload.website_id, locale)
    service = ProvisioningService(db)

    if website.provisioning_state == "failed":
        result = service.retry_provisioning(website, seed_properties=payload.seed_properties)
    else:
        result = service.provision_website(website, seed_properties=payload.seed_properties)

    if not result["success"]:
        raise _failed(result)

    background_tasks.add_task(deliver_verification, website.id)
    return provisioning_status(db, website)


@router.get("/status/{website_id}", response_model=ProvisioningStatus)
async def get_status(
    website_id: int,
    signup: dict = Depends(require_signup_session),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    return provisioning_status(db, _signup_website(db, signup, website_id, locale))


@router.post("/verify_email", response_model=ProvisioningStatus)
async def verify_email(
    token: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    result = ProvisioningService(db).verify_email(token)
    if not result["success"]:
        raise _failed(result)
    return provisioning_status(db, result["website"])


@router.post("/complete_registration/{website_id}", response_model=ProvisioningStatus)
async def complete_registration(
    website_id: int,
    signup: dict = Depends(require_signup_session),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    """Final step after the owner has set up their login; the site goes live."""
    website = _signup_website(db, signup, website_id, locale)
    result = ProvisioningService(db).complete_registration(website)
    if not result["success"]:
        raise _failed(result)
    return provisioning_status(db, website)
