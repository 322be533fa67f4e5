"""Health checks and the TLS certificate gate."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pwb.core.cache import redis_ping
from pwb.core.config import settings
from pwb.core.database import get_db
from pwb.services.domains import check_tls_domain

logger = logging.getLogger(__name__)

router = APIRouter()
tls_router = APIRouter()


@router.get("")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.VERSION}


@router.get("/live")
async def liveness():
    return {"status": "alive"}


@router.get("/ready")
async def readiness(db: Session = Depends(get_db)):
    """Database must answer; Redis is reported but optional."""
    checks = {"database": False, "redis": redis_ping()}
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except SQLAlchemyError as e:
        logger.error(f"Readiness check: database unavailable: {e}")

    ready = checks["database"]
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ready" if ready else "unavailable", "checks": checks},
    )


@tls_router.get("/check", response_class=PlainTextResponse)
async def tls_check(
    request: Request,
    domain: Optional[str] = Query(None),
    secret: Optional[str] = Query(None),
    x_tls_secret: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    """
    Asked by the reverse proxy before issuing an on-demand certificate.

    200 allows issuance, anything else refuses it.
    """
    if not domain or not domain.strip():
        return PlainTextResponse("Missing domain parameter", status_code=status.HTTP_400_BAD_REQUEST)

    if settings.TLS_CHECK_SECRET:
        provided = x_tls_secret or secret
        if provided != settings.TLS_CHECK_SECRET:
            logger.warning(f"TLS check with invalid secret from {request.client.host if request.client else '?'}")
            return PlainTextResponse("Unauthorized", status_code=status.HTTP_401_UNAUTHORIZED)

    code, reason = check_tls_domain(db, domain)
    logger.info(f"TLS check for {domain}: {code} {reason}")
    return PlainTextResponse("OK" if code == status.HTTP_200_OK else reason, status_code=code)
