"""Property listing models."""

from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, Text, BigInteger, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
import re

from pwb.core.database import Base
from pwb.core.tenant import ShardBound, TenantScoped


class Prop(TenantScoped, Base):
    """A property listed on a website, for sale and/or for rent."""

    __tablename__ = "props"

    id = Column(Integer, primary_key=True, index=True)
    reference = Column(String, index=True)
    slug = Column(String, index=True)
    title = Column(String)
    description = Column(Text)

    # Physical details
    year_construction = Column(Integer)
    count_bedrooms = Column(Integer, default=0)
    count_bathrooms = Column(Float, default=0)
    count_toilets = Column(Integer, default=0)
    count_garages = Column(Integer, default=0)
    plot_area = Column(Float, default=0)
    constructed_area = Column(Float, default=0)
    prop_type_key = Column(String, index=True)
    prop_state_key = Column(String)
    primary_image_url = Column(String)

    # Status flags
    visible = Column(Boolean, default=False, nullable=False, index=True)
    highlighted = Column(Boolean, default=False, nullable=False)
    reserved = Column(Boolean, default=False, nullable=False)
    sold = Column(Boolean, default=False, nullable=False)
    archived = Column(Boolean, default=False, nullable=False)
    furnished = Column(Boolean, default=False, nullable=False)
    for_sale = Column(Boolean, default=False, nullable=False, index=True)
    for_rent_long_term = Column(Boolean, default=False, nullable=False)
    for_rent_short_term = Column(Boolean, default=False, nullable=False)

    # Prices are stored in the currency's subunit
    price_sale_current_cents = Column(BigInteger, default=0, nullable=False)
    price_sale_current_currency = Column(String(3), default="EUR")
    price_rental_monthly_current_cents = Column(BigInteger, default=0, nullable=False)
    price_rental_monthly_current_currency = Column(String(3), default="EUR")
    price_rental_monthly_for_search_cents = Column(BigInteger, default=0, nullable=False)

    # Location
    street_address = Column(String)
    postal_code = Column(String)
    city = Column(String)
    region = Column(String)
    country = Column(String)
    latitude = Column(Float)
    longitude = Column(Float)

    # Price game
    game_token = Column(String, unique=True, index=True)
    game_enabled = Column(Boolean, default=False, nullable=False)
    game_views_count = Column(Integer, default=0, nullable=False)
    game_shares_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    features = relationship("Feature", back_populates="prop", cascade="all, delete-orphan")

    @property
    def for_rent(self) -> bool:
        return bool(self.for_rent_long_term or self.for_rent_short_term)

    @property
    def price_cents(self) -> int:
        """Price for the listing's primary operation."""
        if self.for_sale:
            return self.price_sale_current_cents or 0
        return self.price_rental_monthly_current_cents or 0

    @property
    def currency(self) -> str:
        if self.for_sale:
            return self.price_sale_current_currency or "EUR"
        return self.price_rental_monthly_current_currency or "EUR"

    @property
    def feature_keys(self):
        return sorted(f.feature_key for f in self.features)

    @property
    def url_friendly_title(self) -> str:
        if not self.title or len(self.title) <= 2:
            return "show"
        return re.sub(r"[^a-z0-9]+", "-", self.title.lower()).strip("-") or "show"

    @property
    def location(self) -> str:
        return ", ".join(p for p in (self.street_address, self.city, self.postal_code, self.country) if p)

    @property
    def show_map(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def listing_type(self) -> str:
        return "sale" if self.for_sale else "rental"


class Feature(ShardBound, Base):
    """A feature key (pool, garden, ...) attached to a property."""

    __tablename__ = "features"
    __table_args__ = (UniqueConstraint("prop_id", "feature_key", name="uq_feature_prop_key"),)

    id = Column(Integer, primary_key=True, index=True)
    prop_id = Column(Integer, ForeignKey("props.id", ondelete="CASCADE"), nullable=False, index=True)
    feature_key = Column(String, nullable=False, index=True)

    prop = relationship("Prop", back_populates="features")
