"""Public "guess the price" game."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from pwb.core.database import get_db
from pwb.core.i18n import get_locale, translate
from pwb.core.tokens import urlsafe_token
from pwb.middleware.tenant import get_current_website
from pwb.models.website import Website
from pwb.schemas.report import GuessCreate
from pwb.services.price_game import (
    VISITOR_COOKIE,
    VISITOR_COOKIE_MAX_AGE,
    GuessError,
    PriceGame,
    serialize_guess,
    serialize_leaderboard,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def visitor_token(request: Request, response: Response) -> str:
    """Anonymous visitor id, issued as a long-lived cookie on first visit."""
    token = request.cookies.get(VISITOR_COOKIE)
    if not token:
        token = urlsafe_token(16)
        response.set_cookie(
            VISITOR_COOKIE,
            token,
            max_age=VISITOR_COOKIE_MAX_AGE,
            httponly=True,
            samesite="lax",
        )
    return token


def _find_game(db: Session, website: Website, token: str, locale: str) -> PriceGame:
    game = PriceGame.find(db, website, token)
    if game is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=translate("game_not_found", locale))
    return game


@router.get("/game/{token}")
async def show_game(
    token: str,
    request: Request,
    response: Response,
    website: Website = Depends(get_current_website),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    """Game page data. The asking price is only revealed through the visitor's own guess."""
    game = _find_game(db, website, token, locale)
    visitor = visitor_token(request, response)
    game.record_view()

    existing = game.visitor_guess(visitor)
    return {
        "title": translate("price_game_title", locale, property=game.prop.title or game.prop.reference or ""),
        "listing_type": game.prop.listing_type,
        "currency": game.prop.currency,
        "property": game.property_details(),
        "existing_guess": serialize_guess(existing) if existing else None,
        "leaderboard": serialize_leaderboard(game.leaderboard()),
        "views": game.prop.game_views_count,
        "shares": game.prop.game_shares_count,
    }


@router.post("/game/{token}/guess")
async def submit_guess(
    token: str,
    payload: GuessCreate,
    request: Request,
    response: Response,
    website: Website = Depends(get_current_website),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    game = _find_game(db, website, token, locale)
    visitor = visitor_token(request, response)

    try:
        guess = game.guess(visitor, payload.guessed_price, payload.currency)
    except GuessError as e:
        error = JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": translate(e.code, locale),
                "guess": serialize_guess(e.existing) if e.existing else None,
            },
        )
        if "set-cookie" in response.headers:
            error.headers["set-cookie"] = response.headers["set-cookie"]
        return error

    return {
        "success": True,
        "result": serialize_guess(guess),
        "leaderboard": serialize_leaderboard(game.leaderboard()),
    }


@router.post("/game/{token}/share")
async def share_game(
    token: str,
    website: Website = Depends(get_current_website),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    game = _find_game(db, website, token, locale)
    return {"success": True, "shares": game.record_share()}


@router.get("/game/{token}/leaderboard")
async def leaderboard(
    token: str,
    website: Website = Depends(get_current_website),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    game = _find_game(db, website, token, locale)
    return {"leaderboard": serialize_leaderboard(game.leaderboard())}
