"""
Tenant resolution middleware.

Resolves the website for each request from its host, exposes it on
``request.state`` and as the current tenant for the rest of the request.
"""

import logging
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from pwb.core.cache import cache_delete, cache_get_json, cache_set_json
from pwb.core.config import settings
from pwb.core.database import get_db, session_scope
from pwb.core.i18n import get_locale, translate
from pwb.core.tenant import clear_current_website, set_current_website
from pwb.models.website import Website
from pwb.services.domains import find_by_host, normalize_domain, platform_domains

logger = logging.getLogger(__name__)

UNSCOPED_PATH_PREFIXES = ("/health", "/tls", "/api/tenant_admin", "/api/signup", "/docs", "/redoc", "/openapi.json")

HOST_CACHE_PREFIX = "tenant:host:"


def request_host(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-host")
    host = forwarded.split(",")[0] if forwarded else request.headers.get("host", "")
    return normalize_domain(host)


def resolve_host(host: str) -> Optional[dict]:
    """``{"id", "shard"}`` for the website serving ``host``."""
    if not host:
        return None

    cache_key = f"{HOST_CACHE_PREFIX}{host}"
    cached = cache_get_json(cache_key)
    if cached:
        return cached

    with session_scope() as db:
        website = find_by_host(db, host)
        if website is None:
            return None
        resolved = {"id": website.id, "shard": website.shard_name or "default"}

    cache_set_json(cache_key, resolved, settings.TENANT_CACHE_TTL)
    return resolved


def invalidate_website_hosts(website: Website, *extra_hosts: Optional[str]) -> None:
    """Drop cached host lookups after a website's addressing changes."""
    hosts = set(normalize_domain(h) for h in extra_hosts if h)
    if website.custom_domain:
        domain = normalize_domain(website.custom_domain)
        hosts.update({domain, domain[4:] if domain.startswith("www.") else f"www.{domain}"})
    if website.subdomain:
        hosts.update(f"{website.subdomain.lower()}.{pd}" for pd in platform_domains())
    cache_delete(*(f"{HOST_CACHE_PREFIX}{h}" for h in hosts))


class TenantMiddleware(BaseHTTPMiddleware):
    """Resolves ``request.state.website_id`` from the Host header."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.website_id = None
        request.state.website_shard = None

        if request.url.path.startswith(UNSCOPED_PATH_PREFIXES):
            return await call_next(request)

        host = request_host(request)
        resolved = await run_in_threadpool(resolve_host, host)
        if resolved is None:
            logger.debug(f"No website for host '{host}'")
            return await call_next(request)

        request.state.website_id = resolved["id"]
        request.state.website_shard = resolved["shard"]

        token = set_current_website(resolved["id"])
        try:
            return await call_next(request)
        finally:
            clear_current_website(token)


async def get_current_website(
    request: Request, db: Session = Depends(get_db), locale: str = Depends(get_locale)
) -> Website:
    """Website resolved for this request; 404 when the host matches none."""
    website_id = getattr(request.state, "website_id", None)
    website = db.get(Website, website_id) if website_id else None
    if website is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=translate("website_not_found", locale))
    return website


async def get_current_website_optional(request: Request, db: Session = Depends(get_db)) -> Optional[Website]:
    website_id = getattr(request.state, "website_id", None)
    return db.get(Website, website_id) if website_id else None
