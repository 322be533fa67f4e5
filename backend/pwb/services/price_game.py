"""
"Guess the price" game for listings.
"""

import logging
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pwb.core.tenant import for_website
from pwb.models.market_report import format_price
from pwb.models.price_guess import PriceGuess
from pwb.models.prop import Prop
from pwb.models.website import Website

logger = logging.getLogger(__name__)

VISITOR_COOKIE = "price_game_visitor"
VISITOR_COOKIE_MAX_AGE = 365 * 24 * 60 * 60
LEADERBOARD_SIZE = 10

# (max absolute % difference, score)
SCORE_BRACKETS = (
    (5, 100),
    (10, 90),
    (15, 80),
    (20, 70),
    (25, 60),
    (30, 50),
    (40, 40),
    (50, 30),
    (75, 20),
    (100, 10),
)

# (min score, feedback, emoji)
FEEDBACK_BANDS = (
    (90, "Excellent! You really know this market!", "🎉"),
    (70, "Great Guess! You're close!", "👏"),
    (50, "Good Effort! Not too far off.", "👍"),
    (30, "Not Bad! Keep practising.", "🤔"),
)
FALLBACK_FEEDBACK = ("Keep trying! Property prices can be surprising.", "😅")


class GuessError(Exception):
    """A guess was rejected; ``code`` is an i18n message key."""

    def __init__(self, code: str, existing: Optional[PriceGuess] = None):
        super().__init__(code)
        self.code = code
        self.existing = existing


class ScoreCalculator:
    """Turns an estimate into a 0-100 score over fixed percentage brackets."""

    @staticmethod
    def percentage_diff(estimated_cents: int, actual_cents: int) -> Optional[Decimal]:
        if not actual_cents:
            return None
        diff = (Decimal(estimated_cents) - Decimal(actual_cents)) / Decimal(actual_cents) * 100
        return diff.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    @staticmethod
    def score_for(percentage_diff: Optional[Decimal]) -> int:
        if percentage_diff is None:
            return 0
        distance = abs(percentage_diff)
        for limit, score in SCORE_BRACKETS:
            if distance <= limit:
                return score
        return 0

    @classmethod
    def calculate(cls, estimated_cents: int, actual_cents: int) -> Dict[str, Any]:
        diff = cls.percentage_diff(estimated_cents, actual_cents)
        score = cls.score_for(diff)
        feedback, emoji = cls.feedback(score)
        return {"percentage_diff": diff, "score": score, "feedback": feedback, "emoji": emoji}

    @staticmethod
    def feedback(score: int):
        for minimum, message, emoji in FEEDBACK_BANDS:
            if score >= minimum:
                return message, emoji
        return FALLBACK_FEEDBACK


def parse_price_to_cents(value) -> Optional[int]:
    """
    Parse a user-typed price into cents.

    Accepts both ``1,234.56`` and ``1.234,56``; a lone comma followed by
    exactly two digits is a decimal separator, otherwise a thousands one.
    """
    if value is None or str(value).strip() == "":
        return None

    cleaned = re.sub(r"[^\d.,]", "", str(value))

    if "," in cleaned and "." in cleaned:
        if cleaned.rindex(",") > cleaned.rindex("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif "," in cleaned:
        if re.search(r",\d{2}$", cleaned):
            cleaned = cleaned.replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif cleaned.count(".") > 1:
        cleaned = cleaned.replace(".", "")

    number = re.match(r"\d*(?:\.\d+)?", cleaned).group(0)
    if not number or number == ".":
        return 0
    return int((Decimal(number) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def serialize_guess(guess: PriceGuess) -> Dict[str, Any]:
    feedback, emoji = ScoreCalculator.feedback(guess.score or 0)
    return {
        "id": guess.id,
        "guessed_price": format_price(guess.guessed_price_cents, guess.guessed_price_currency),
        "guessed_price_cents": guess.guessed_price_cents,
        "actual_price": format_price(guess.actual_price_cents, guess.actual_price_currency),
        "actual_price_cents": guess.actual_price_cents,
        "score": guess.score,
        "percentage_diff": float(guess.percentage_diff) if guess.percentage_diff is not None else None,
        "feedback": feedback,
        "emoji": emoji,
        "created_at": guess.created_at.isoformat() if guess.created_at else None,
    }


def serialize_leaderboard(guesses: List[PriceGuess]) -> List[Dict[str, Any]]:
    return [
        {
            "rank": index,
            "score": guess.score,
            "percentage_diff": round(abs(float(guess.percentage_diff)), 1) if guess.percentage_diff is not None else None,
            "created_at": guess.created_at.isoformat() if guess.created_at else None,
        }
        for index, guess in enumerate(guesses, start=1)
    ]


class PriceGame:
    """Game state for one listing."""

    def __init__(self, db: Session, prop: Prop):
        self.db = db
        self.prop = prop

    @classmethod
    def find(cls, db: Session, website: Website, token: str) -> Optional["PriceGame"]:
        prop = (
            for_website(db, Prop, website.id)
            .filter(Prop.game_token == token, Prop.game_enabled.is_(True))
            .first()
        )
        return cls(db, prop) if prop else None

    def record_view(self) -> None:
        self.prop.game_views_count = (self.prop.game_views_count or 0) + 1
        self.db.commit()

    def record_share(self) -> int:
        self.prop.game_shares_count = (self.prop.game_shares_count or 0) + 1
        self.db.commit()
        return self.prop.game_shares_count

    def visitor_guess(self, visitor_token: Optional[str]) -> Optional[PriceGuess]:
        if not visitor_token:
            return None
        return (
            for_website(self.db, PriceGuess, self.prop.website_id)
            .filter(PriceGuess.prop_id == self.prop.id, PriceGuess.visitor_token == visitor_token)
            .first()
        )

    def leaderboard(self, limit: int = LEADERBOARD_SIZE) -> List[PriceGuess]:
        return (
            for_website(self.db, PriceGuess, self.prop.website_id)
            .filter(PriceGuess.prop_id == self.prop.id)
            .order_by(PriceGuess.score.desc(), PriceGuess.created_at.asc(), PriceGuess.id.asc())
            .limit(limit)
            .all()
        )

    def property_details(self) -> Dict[str, Any]:
        prop = self.prop
        return {
            "title": prop.title,
            "description": prop.description,
            "bedrooms": prop.count_bedrooms,
            "bathrooms": prop.count_bathrooms,
            "built_area": prop.constructed_area,
            "plot_area": prop.plot_area,
            "city": prop.city,
            "region": prop.region,
            "street_address": prop.street_address,
            "year_built": prop.year_construction,
            "features": prop.feature_keys,
            "photo_url": prop.primary_image_url,
            "latitude": prop.latitude,
            "longitude": prop.longitude,
            "reference": prop.reference,
            "listing_type": prop.listing_type,
        }

    def guess(self, visitor_token: str, guessed_price, currency: Optional[str] = None) -> PriceGuess:
        existing = self.visitor_guess(visitor_token)
        if existing is not None:
            raise GuessError("already_guessed", existing)

        guessed_cents = parse_price_to_cents(guessed_price)
        if not guessed_cents or guessed_cents <= 0:
            raise GuessError("invalid_guess")

        actual_cents = self.prop.price_cents
        result = ScoreCalculator.calculate(guessed_cents, actual_cents)

        guess = PriceGuess(
            website_id=self.prop.website_id,
            prop_id=self.prop.id,
            visitor_token=visitor_token,
            listing_type=self.prop.listing_type,
            guessed_price_cents=guessed_cents,
            guessed_price_currency=currency or self.prop.currency,
            actual_price_cents=actual_cents,
            actual_price_currency=self.prop.currency,
            percentage_diff=result["percentage_diff"],
            score=result["score"],
        )
        self.db.add(guess)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise GuessError("already_guessed", self.visitor_guess(visitor_token))

        self.db.refresh(guess)
        logger.info(f"Price guess {guess.id} on property {self.prop.id}: score {guess.score}")
        return guess
