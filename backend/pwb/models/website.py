"""Website (tenant) and agency models."""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from pwb.core.database import Base
from pwb.core.tenant import TenantScoped


SITE_TYPES = ("residential", "commercial", "vacation_rental")
AREA_UNITS = ("sqmt", "sqft")
RENDERING_MODES = ("rails", "client")


class Website(Base):
    """A customer's real estate site, reachable by subdomain or custom domain."""

    __tablename__ = "websites"

    id = Column(Integer, primary_key=True, index=True)

    # Addressing
    subdomain = Column(String(63), unique=True, index=True)
    custom_domain = Column(String(253), unique=True, index=True)
    custom_domain_verified = Column(Boolean, default=False, nullable=False)
    custom_domain_verified_at = Column(DateTime)
    custom_domain_verification_token = Column(String(64))

    # Presentation
    company_display_name = Column(String)
    site_type = Column(String, default="residential")
    theme_name = Column(String, default="default", nullable=False)
    main_logo_url = Column(String)
    default_client_locale = Column(String, default="en-UK", nullable=False)
    supported_locales = Column(JSON, default=lambda: ["en-UK"])
    default_area_unit = Column(String, default="sqmt", nullable=False)
    email_for_general_contact_form = Column(String)

    # Currency
    default_currency = Column(String(3), default="EUR", nullable=False)
    available_currencies = Column(JSON, default=list)
    exchange_rates = Column(JSON, default=dict)
    exchange_rates_updated_at = Column(DateTime)

    # Rendering
    rendering_mode = Column(String, default="rails", nullable=False)
    client_theme_name = Column(String)
    client_theme_config = Column(JSON, default=dict)

    # Provisioning lifecycle
    provisioning_state = Column(String, default="pending", nullable=False, index=True)
    provisioning_started_at = Column(DateTime)
    provisioning_completed_at = Column(DateTime)
    provisioning_failed_at = Column(DateTime)
    provisioning_error = Column(Text)
    owner_email = Column(String)
    email_verification_token = Column(String, unique=True)
    email_verification_token_expires_at = Column(DateTime)
    email_verified_at = Column(DateTime)

    # Database shard holding this website's data
    shard_name = Column(String, default="default", nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    agency = relationship(
        "Agency", primaryjoin="Website.id == foreign(Agency.website_id)", back_populates="website", uselist=False
    )
    memberships = relationship("UserMembership", back_populates="website", cascade="all, delete-orphan")

    @property
    def rails_rendering(self) -> bool:
        return (self.rendering_mode or "rails") == "rails"

    @property
    def client_rendering(self) -> bool:
        return self.rendering_mode == "client"

    @property
    def display_name(self) -> str:
        return self.company_display_name or self.subdomain or f"Website {self.id}"

    def __repr__(self):
        return f"<Website id={self.id} subdomain={self.subdomain!r}>"


class Agency(TenantScoped, Base):
    """The real estate agency operating a website."""

    __tablename__ = "agencies"

    id = Column(Integer, primary_key=True, index=True)
    display_name = Column(String)
    company_name = Column(String)
    email_primary = Column(String)
    email_for_general_contact_form = Column(String)
    email_for_property_contact_form = Column(String)
    phone_number_primary = Column(String)
    phone_number_mobile = Column(String)
    street_address = Column(String)
    city = Column(String)
    postal_code = Column(String)
    country = Column(String)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    website = relationship("Website", primaryjoin="foreign(Agency.website_id) == Website.id", back_populates="agency")
