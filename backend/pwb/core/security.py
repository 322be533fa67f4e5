"""
Session validation and access control for FastAPI routes.

Sessions are issued by the identity service and stored in ``user_sessions``;
the browser presents the token in the session cookie. API clients may send
it as a Bearer token instead.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from pwb.core.config import settings
from pwb.core.database import get_db
from pwb.core.i18n import get_locale, translate
from pwb.middleware.tenant import get_current_website
from pwb.models.user import User, UserMembership, UserSession
from pwb.models.website import Website

logger = logging.getLogger(__name__)

ADMIN_ROLES = ("owner", "admin")


def get_session_token(request: Request) -> Optional[str]:
    """
    Extract the session token from the cookie or Authorization header.

    Cookie format is "token.signature"; only the token part is stored.
    """
    cookie_value = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if cookie_value:
        return cookie_value.split(".")[0]

    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return None


def validate_session_token(session_token: Optional[str], db: Session) -> Optional[User]:
    """Return the active user owning an unexpired session, else None."""
    if not session_token:
        return None

    session = (
        db.query(UserSession)
        .join(User, UserSession.user_id == User.id)
        .filter(
            UserSession.token == session_token,
            UserSession.expires_at > datetime.utcnow(),
            User.is_active.is_(True),
        )
        .first()
    )
    return session.user if session else None


def _unauthorized(key: str, locale: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=translate(key, locale),
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request, db: Session = Depends(get_db), locale: str = Depends(get_locale)
) -> User:
    """
    Main dependency for protected routes.

    Raises:
        HTTPException: 401 if the session is missing, invalid or expired
    """
    session_token = get_session_token(request)
    if not session_token:
        logger.debug("No session cookie found")
        raise _unauthorized("not_authenticated", locale)

    user = validate_session_token(session_token, db)
    if user is None:
        logger.debug("Invalid or expired session")
        raise _unauthorized("invalid_session", locale)

    return user


async def get_current_user_optional(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """Current user if signed in, None otherwise."""
    return validate_session_token(get_session_token(request), db)


def website_role(db: Session, user: User, website: Website) -> str:
    """Active membership role on ``website``; platform admins without one count as admin."""
    membership = (
        db.query(UserMembership)
        .filter(
            UserMembership.user_id == user.id,
            UserMembership.website_id == website.id,
            UserMembership.active.is_(True),
        )
        .first()
    )
    if membership is not None:
        return membership.role
    return "admin" if user.is_superuser else "guest"


def is_website_admin(db: Session, user: User, website: Website) -> bool:
    if user.is_superuser:
        return True
    membership = (
        db.query(UserMembership)
        .filter(
            UserMembership.user_id == user.id,
            UserMembership.website_id == website.id,
            UserMembership.active.is_(True),
            UserMembership.role.in_(ADMIN_ROLES),
        )
        .first()
    )
    return membership is not None


async def require_website_admin(
    website: Website = Depends(get_current_website),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
) -> User:
    """Signed-in owner/admin of the current website (or a platform admin)."""
    if not is_website_admin(db, user, website):
        logger.warning(f"User {user.id} denied admin access to website {website.id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=translate("forbidden", locale))
    return user


async def require_platform_admin(
    user: User = Depends(get_current_user), locale: str = Depends(get_locale)
) -> User:
    if not user.is_superuser:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=translate("admin_required", locale))
    return user


# Tokens for the client renderer's admin pages

PROXY_TOKEN_PURPOSE = "client_proxy"


def create_proxy_token(user: User, website: Website, now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    payload = {
        "purpose": PROXY_TOKEN_PURPOSE,
        "user_id": user.id,
        "website_id": website.id,
        "iat": now,
        "exp": now + timedelta(minutes=settings.PROXY_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_proxy_token(token: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError as e:
        logger.debug(f"Rejected proxy token: {e}")
        return None
    if payload.get("purpose") != PROXY_TOKEN_PURPOSE:
        return None
    return payload


# Signup tokens tie each signup step to the browser that started it

SIGNUP_TOKEN_PURPOSE = "signup"


def create_signup_token(user_id: int, website_id: Optional[int] = None, now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    payload = {
        "purpose": SIGNUP_TOKEN_PURPOSE,
        "user_id": user_id,
        "website_id": website_id,
        "iat": now,
        "exp": now + timedelta(hours=settings.SIGNUP_TOKEN_EXPIRE_HOURS),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_signup_token(token: Optional[str]) -> Optional[dict]:
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError as e:
        logger.debug(f"Rejected signup token: {e}")
        return None
    if payload.get("purpose") != SIGNUP_TOKEN_PURPOSE:
        return None
    return payload


def set_signup_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.SIGNUP_COOKIE_NAME,
        token,
        max_age=settings.SIGNUP_TOKEN_EXPIRE_HOURS * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
    )


async def require_signup_session(request: Request, locale: str = Depends(get_locale)) -> dict:
    """Signup token from the signup cookie or an ``X-Signup-Token`` header."""
    token = request.cookies.get(settings.SIGNUP_COOKIE_NAME) or request.headers.get("x-signup-token")
    payload = decode_signup_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=translate("signup_session_required", locale),
        )
    return payload
