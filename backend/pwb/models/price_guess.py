"""Guess-the-price game entries."""

from sqlalchemy import Column, Integer, String, DateTime, BigInteger, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from pwb.core.database import Base
from pwb.core.tenant import TenantScoped


class PriceGuess(TenantScoped, Base):
    """One visitor's guess at a listing's price."""

    __tablename__ = "price_guesses"
    __table_args__ = (
        UniqueConstraint("prop_id", "visitor_token", name="uq_price_guess_prop_visitor"),
    )

    id = Column(Integer, primary_key=True, index=True)
    prop_id = Column(Integer, ForeignKey("props.id"), nullable=False, index=True)
    visitor_token = Column(String, nullable=False)
    listing_type = Column(String, nullable=False, default="sale")
    guessed_price_cents = Column(BigInteger, nullable=False)
    guessed_price_currency = Column(String(3), default="EUR")
    actual_price_cents = Column(BigInteger, nullable=False)
    actual_price_currency = Column(String(3), default="EUR")
    percentage_diff = Column(Numeric(8, 2))
    score = Column(Integer, default=0, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    prop = relationship("Prop")
