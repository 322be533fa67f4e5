"""
Reverse proxy to the client renderer for client-rendered websites.

Mounted last as a catch-all. Websites using server-rendered themes get a 404.
"""

import logging
from typing import Dict, Optional

import httpx
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from pwb.core.config import settings
from pwb.core.database import get_db
from pwb.core.i18n import get_locale, translate
from pwb.core.security import (
    create_proxy_token,
    get_current_user_optional,
    is_website_admin,
    website_role,
)
from pwb.middleware.tenant import get_current_website_optional, request_host
from pwb.models.user import User
from pwb.models.website import Website
from pwb.services.rendering import WebsiteRendering

logger = logging.getLogger(__name__)

router = APIRouter()

HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}

FORWARDED_REQUEST_HEADERS = ("Accept-Language", "Content-Type")

# httpx decodes bodies, so these no longer describe what we send back
DROPPED_RESPONSE_HEADERS = HOP_BY_HOP_HEADERS | {"content-encoding", "content-length"}

ADMIN_PATH_PREFIX = "client-admin"

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

_http_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    """Shared client for proxied requests."""
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.PROXY_READ_TIMEOUT, connect=settings.PROXY_CONNECT_TIMEOUT),
            follow_redirects=False,
        )
    return _http_client


async def close_http_client() -> None:
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


def proxy_headers(request: Request, website: Website) -> Dict[str, str]:
    """Tenant context for the renderer; visitor headers are forwarded from an allowlist only."""
    headers = {
        "X-Forwarded-Host": request_host(request),
        "X-Forwarded-Proto": request.headers.get("x-forwarded-proto", request.url.scheme),
        "X-Forwarded-For": request.client.host if request.client else "",
        "X-Website-Slug": website.subdomain or "",
        "X-Website-Id": str(website.id),
        "X-Rendering-Mode": website.rendering_mode,
        "X-Client-Theme": website.client_theme_name or "",
        "Accept": request.headers.get("accept", "*/*"),
    }
    for name in FORWARDED_REQUEST_HEADERS:
        value = request.headers.get(name)
        if value:
            headers[name] = value
    return headers


def auth_headers(user: User, website: Website, role: str) -> Dict[str, str]:
    return {
        "X-User-Id": str(user.id),
        "X-User-Email": user.email,
        "X-User-Role": role,
        "X-Auth-Token": create_proxy_token(user, website),
    }


@router.api_route("/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
async def proxy_to_client(
    path: str,
    request: Request,
    website: Optional[Website] = Depends(get_current_website_optional),
    user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
    http_client: httpx.AsyncClient = Depends(get_http_client),
):
    if website is None or not website.client_rendering or path.startswith("api/"):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Not Found"})

    rendering = WebsiteRendering(db, website)
    headers = proxy_headers(request, website)

    if path == ADMIN_PATH_PREFIX or path.startswith(f"{ADMIN_PATH_PREFIX}/"):
        if user is None:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": translate("not_authenticated", locale)},
            )
        if not is_website_admin(db, user, website):
            return JSONResponse(
                status_code=status.HTTP_403_FORBIDDEN,
                content={"detail": translate("forbidden", locale)},
            )
        headers.update(auth_headers(user, website, website_role(db, user, website)))

    url = f"{rendering.astro_client_url()}/{path}"
    body = await request.body()

    try:
        upstream = await http_client.request(
            request.method,
            url,
            params=request.query_params,
            headers=headers,
            content=body or None,
        )
    except httpx.HTTPError as e:
        logger.error(f"Client proxy to {url} failed for website {website.id}: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": translate("client_unavailable", locale)},
        )

    response_headers = {
        key: value for key, value in upstream.headers.items()
        if key.lower() not in DROPPED_RESPONSE_HEADERS and key.lower() != "set-cookie"
    }
    response = Response(content=upstream.content, status_code=upstream.status_code, headers=response_headers)
    for cookie in upstream.headers.get_list("set-cookie"):
        response.headers.append("set-cookie", cookie)
    return response
