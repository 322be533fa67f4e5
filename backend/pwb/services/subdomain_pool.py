"""
Subdomain pool: Heroku-style name generation and reservation during signup.
"""

import logging
import random
import re
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from pwb.core.config import settings
from pwb.core.exceptions import DomainValidationError, SubdomainPoolEmptyError, SubdomainPoolExhaustedError
from pwb.models.subdomain import Subdomain
from pwb.models.website import Website
from pwb.services.domains import RESERVED_SUBDOMAINS

logger = logging.getLogger(__name__)

ADJECTIVES = """
amber ancient autumn azure bright calm clear coral cosmic crimson
crystal dapper dawn dusk ember fading fallen fierce fiery gentle
gilded golden graceful hidden icy jade keen lively lunar midnight
misty noble ocean pearl polished pristine proud quiet radiant rapid
royal rustic sacred serene shadow shining silent silver smooth snowy
solar starry steady still stormy summer sunny swift twilight violet
wandering warm wild winter wispy wooden young zesty
""".split()

NOUNS = """
bay beach bluff brook canyon cave cliff cloud coast cove creek
delta dune field forest garden glade glen grove harbor haven hill
hollow horizon inlet island lagoon lake landing meadow mesa mist
moon mountain oasis ocean orchard passage path peak pine plains
pond prairie rain reef ridge river rock sand shadow shore sky
slope spring star stone storm stream summit sun sunset surf tide
trail tree valley view village vista water wave willow wind wood
""".split()

POOL_NAME_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")
CUSTOM_NAME_PATTERN = POOL_NAME_PATTERN


def default_reservation() -> timedelta:
    return timedelta(minutes=settings.SUBDOMAIN_RESERVATION_MINUTES)


# Generation

class SubdomainGenerator:
    """Generates unique adjective-noun-NN names."""

    def __init__(self, db: Session, rng: Optional[random.Random] = None):
        self.db = db
        self.rng = rng or random.Random()

    def build_name(self) -> str:
        return f"{self.rng.choice(ADJECTIVES)}-{self.rng.choice(NOUNS)}-{self.rng.randint(10, 99)}"

    def _taken(self, name: str) -> bool:
        if self.db.query(Subdomain.id).filter(Subdomain.name == name).first():
            return True
        return self.db.query(Website.id).filter(func.lower(Website.subdomain) == name).first() is not None

    def generate(self) -> str:
        while True:
            name = self.build_name()
            if not self._taken(name):
                return name

    def generate_batch(self, count: int) -> List[str]:
        names: List[str] = []
        seen = set()
        while len(names) < count:
            name = self.build_name()
            if name in seen or self._taken(name):
                continue
            seen.add(name)
            names.append(name)
        return names

    def populate_pool(self, count: int = 1000, batch_size: int = 100) -> int:
        total_created = 0
        remaining = count
        while remaining > 0:
            size = min(batch_size, remaining)
            names = self.generate_batch(size)
            now = datetime.utcnow()
            self.db.add_all(
                Subdomain(name=name, aasm_state="available", created_at=now, updated_at=now)
                for name in names
            )
            self.db.commit()
            total_created += len(names)
            remaining -= size
            logger.info(f"SubdomainGenerator: Created {total_created} subdomains...")

        logger.info(f"SubdomainGenerator: Finished creating {total_created} subdomains")
        return total_created

    def ensure_pool_minimum(self, minimum: int = 100) -> int:
        available_count = self.db.query(Subdomain).filter(Subdomain.aasm_state == "available").count()
        if available_count >= minimum:
            return 0
        needed = minimum - available_count
        self.populate_pool(count=needed)
        logger.info(f"SubdomainGenerator: Pool replenished with {needed} subdomains")
        return needed

    def validate_custom_name(self, name: Optional[str], reserved_by_email: Optional[str] = None) -> dict:
        """Check a user-chosen subdomain. Returns ``{valid, errors, normalized}``."""
        errors: List[str] = []
        normalized = (name or "").strip().lower()

        if not CUSTOM_NAME_PATTERN.match(normalized):
            errors.append("can only contain lowercase letters, numbers, and hyphens (no leading/trailing hyphens)")

        if len(normalized) < 3:
            errors.append("must be at least 3 characters")
        elif len(normalized) > 40:
            errors.append("must be 40 characters or fewer")

        if normalized in RESERVED_SUBDOMAINS:
            errors.append("is reserved and cannot be used")

        if not errors:
            taken_by_website = self.db.query(Website.id).filter(
                func.lower(Website.subdomain) == normalized
            ).first()
            if taken_by_website:
                errors.append("is already taken")
            else:
                pooled = self.db.query(Subdomain).filter(Subdomain.name == normalized).first()
                if pooled is not None:
                    if pooled.state == "allocated":
                        errors.append("is already taken")
                    elif pooled.state == "reserved":
                        same_owner = reserved_by_email and pooled.reserved_by_email == reserved_by_email.lower()
                        if not same_owner:
                            errors.append("is not available")

        return {"valid": not errors, "errors": errors, "normalized": normalized}


# Pool operations

def validate_pool_name(db: Session, subdomain: Subdomain) -> None:
    errors = []
    name = subdomain.name or ""
    if not POOL_NAME_PATTERN.match(name):
        errors.append("can only contain lowercase letters, numbers, and hyphens")
    if not 5 <= len(name) <= 40:
        errors.append("must be between 5 and 40 characters")
    if name in RESERVED_SUBDOMAINS:
        errors.append("is reserved")
    duplicate = db.query(Subdomain.id).filter(Subdomain.name == name)
    if subdomain.id is not None:
        duplicate = duplicate.filter(Subdomain.id != subdomain.id)
    if duplicate.first():
        errors.append("has already been taken")
    if errors:
        raise DomainValidationError({"name": errors})


def _expired_reservations(db: Session, now: datetime):
    return db.query(Subdomain).filter(
        Subdomain.aasm_state == "reserved",
        Subdomain.reserved_until < now,
    )


def reserve_for_email(db: Session, email: str, duration: Optional[timedelta] = None) -> Subdomain:
    """Reserve a random pooled subdomain for a signup email.

    Reuses a still-valid reservation held by the same email.
    """
    duration = duration or default_reservation()
    email = email.strip().lower()
    now = datetime.utcnow()

    for expired in _expired_reservations(db, now).filter(Subdomain.reserved_by_email == email).all():
        expired.release()

    existing = db.query(Subdomain).filter(
        Subdomain.aasm_state == "reserved",
        Subdomain.reserved_by_email == email,
    ).first()
    if existing and existing.reserved_until and existing.reserved_until > now:
        db.commit()
        return existing

    subdomain = (
        db.query(Subdomain)
        .filter(Subdomain.aasm_state == "available")
        .order_by(func.random())
        .with_for_update()
        .first()
    )

    if subdomain is None:
        db.commit()
        total_count = db.query(Subdomain).count()
        available_count = db.query(Subdomain).filter(Subdomain.aasm_state == "available").count()
        logger.error(
            "[SubdomainPool] No available subdomains for reservation: "
            f"email={email} available={available_count} total={total_count}"
        )
        if total_count == 0:
            raise SubdomainPoolEmptyError("Subdomain pool is empty. Populate it before accepting signups.")
        raise SubdomainPoolExhaustedError(f"All {total_count} subdomains are in use. Populate more names.")

    subdomain.reserve(email, duration)
    db.commit()
    logger.info(f"[SubdomainPool] Reserved {subdomain.name} for {email}")
    return subdomain


def reserve_specific(db: Session, name: str, email: str, duration: Optional[timedelta] = None) -> Optional[Subdomain]:
    subdomain = db.query(Subdomain).filter(Subdomain.name == name.strip().lower()).first()
    if subdomain is None or not subdomain.may_reserve():
        return None
    subdomain.reserve(email, duration or default_reservation())
    db.commit()
    return subdomain


def name_available(db: Session, name: str) -> bool:
    """True when the name is not pooled or its pool entry is available."""
    subdomain = db.query(Subdomain).filter(Subdomain.name == name.strip().lower()).first()
    return subdomain is None or subdomain.state == "available"


def allocate_to_website(db: Session, name_or_email: str, website: Website) -> bool:
    """Allocate by reservation email first, then by name."""
    key = name_or_email.strip()
    subdomain = db.query(Subdomain).filter(
        Subdomain.aasm_state == "reserved",
        Subdomain.reserved_by_email == key.lower(),
    ).first()
    if subdomain is None:
        subdomain = db.query(Subdomain).filter(Subdomain.name == key.lower()).first()

    if subdomain is None or subdomain.state not in ("reserved", "available"):
        return False

    subdomain.allocate(website)
    db.commit()
    return True


def release_expired(db: Session) -> int:
    """Return expired reservations to the pool."""
    released = 0
    for subdomain in _expired_reservations(db, datetime.utcnow()).all():
        subdomain.release()
        subdomain.make_available()
        released += 1
    db.commit()
    if released:
        logger.info(f"[SubdomainPool] Released {released} expired reservations")
    return released


def pool_stats(db: Session) -> Dict[str, int]:
    rows = db.query(Subdomain.aasm_state, func.count(Subdomain.id)).group_by(Subdomain.aasm_state).all()
    stats = {state: 0 for state in ("available", "reserved", "allocated", "released")}
    stats.update({state: count for state, count in rows})
    stats["total"] = sum(count for _, count in rows)
    return stats


def release_for_website(db: Session, website: Website) -> Optional[Subdomain]:
    subdomain = db.query(Subdomain).filter(Subdomain.website_id == website.id).first()
    if subdomain is not None and subdomain.state in ("reserved", "allocated"):
        subdomain.release()
    return subdomain


