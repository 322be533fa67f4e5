"""Pre-generated subdomain pool."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timedelta
from typing import Optional

from pwb.core.database import Base
from pwb.core.exceptions import InvalidTransitionError


SUBDOMAIN_STATES = ("available", "reserved", "allocated", "released")


class Subdomain(Base):
    """A subdomain name in the signup pool.

    available -> reserved -> allocated -> released -> available
    """

    __tablename__ = "subdomains"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(40), unique=True, index=True, nullable=False)
    aasm_state = Column("state", String, default="available", nullable=False, index=True)
    reserved_at = Column(DateTime)
    reserved_until = Column(DateTime, index=True)
    reserved_by_email = Column(String, index=True)
    website_id = Column(Integer, ForeignKey("websites.id"), index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    website = relationship("Website")

    @property
    def state(self) -> str:
        return self.aasm_state or "available"

    def _require(self, event: str, *states: str):
        if self.state not in states:
            raise InvalidTransitionError(event, self.state)

    def reservation_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.utcnow()
        return self.reserved_until is None or self.reserved_until < now

    def may_reserve(self) -> bool:
        return self.state == "available" and self.reservation_expired()

    def reserve(self, email: str, duration: timedelta = timedelta(minutes=5)):
        self._require("reserve", "available")
        if not self.reservation_expired():
            raise InvalidTransitionError("reserve", self.state)
        now = datetime.utcnow()
        self.aasm_state = "reserved"
        self.reserved_at = now
        self.reserved_until = now + duration
        self.reserved_by_email = email.lower() if email else None

    def allocate(self, website):
        self._require("allocate", "reserved", "available")
        self.aasm_state = "allocated"
        self.website = website
        self.reserved_at = None
        self.reserved_until = None
        self.reserved_by_email = None

    def release(self):
        self._require("release", "reserved", "allocated")
        self.aasm_state = "released"
        self.website = None
        self.website_id = None
        self.reserved_at = None
        self.reserved_until = None
        self.reserved_by_email = None

    def make_available(self):
        self._require("make_available", "released")
        self.aasm_state = "available"

    def __repr__(self):
        return f"<Subdomain {self.name} ({self.state})>"
