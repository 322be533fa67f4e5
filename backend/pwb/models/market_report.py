"""Comparative market analysis (CMA) and market report model."""

from sqlalchemy import Column, Integer, String, DateTime, Float, BigInteger, JSON, ForeignKey, event
from sqlalchemy.orm import relationship
from datetime import datetime
from typing import Optional

from pwb.core.database import Base
from pwb.core.tenant import TenantScoped
from pwb.core.tokens import reference_number, urlsafe_token


REPORT_TYPES = ("cma", "market_report")
REPORT_STATUSES = ("draft", "generating", "completed", "shared")

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£"}


def format_price(cents: Optional[int], currency: Optional[str]) -> Optional[str]:
    """Whole-unit price with a currency symbol and thousands separators."""
    if cents is None:
        return None
    symbol = CURRENCY_SYMBOLS.get(currency or "", currency or "")
    return f"{symbol}{round(cents / 100):,}"


class MarketReport(TenantScoped, Base):
    """A generated CMA or market report with its comparables and insights."""

    __tablename__ = "market_reports"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, index=True)
    subject_prop_id = Column(Integer, ForeignKey("props.id"), index=True)

    report_type = Column(String, default="cma", nullable=False)
    status = Column(String, default="draft", nullable=False, index=True)
    title = Column(String, nullable=False)
    reference_number = Column(String, index=True)

    # Subject and search area
    subject_details = Column(JSON, default=dict)
    city = Column(String)
    postal_code = Column(String)
    latitude = Column(Float)
    longitude = Column(Float)
    radius_km = Column(Float)

    # Results
    market_statistics = Column(JSON, default=dict)
    comparable_properties = Column(JSON, default=list)
    ai_insights = Column(JSON, default=dict)
    suggested_price_low_cents = Column(BigInteger)
    suggested_price_high_cents = Column(BigInteger)
    suggested_price_currency = Column(String(3), default="USD")
    error_message = Column(String)

    branding = Column(JSON, default=dict)

    # Sharing
    share_token = Column(String, unique=True, index=True)
    shared_at = Column(DateTime)
    view_count = Column(Integer, default=0, nullable=False)

    generated_at = Column(DateTime)
    workflow_id = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    subject_prop = relationship("Prop")

    # State transitions

    def mark_generating(self):
        self.status = "generating"

    def mark_completed(self, insights=None, statistics=None, comparables=None, suggested_price=None):
        self.status = "completed"
        self.generated_at = datetime.utcnow()
        if insights:
            self.ai_insights = insights
        if statistics:
            self.market_statistics = statistics
        if comparables:
            self.comparable_properties = comparables
        if suggested_price:
            self.suggested_price_low_cents = suggested_price.get("low_cents")
            self.suggested_price_high_cents = suggested_price.get("high_cents")
            self.suggested_price_currency = suggested_price.get("currency") or "USD"

    def mark_shared(self):
        self.status = "shared"
        self.shared_at = datetime.utcnow()
        self.share_token = urlsafe_token(16)

    def record_view(self):
        self.view_count = (self.view_count or 0) + 1

    # Status helpers

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def is_shared(self) -> bool:
        return self.status == "shared"

    @property
    def is_cma(self) -> bool:
        return self.report_type == "cma"

    @property
    def pdf_filename(self) -> str:
        return f"{self.report_type}_{self.reference_number}.pdf"

    @property
    def suggested_price_range(self) -> Optional[dict]:
        if self.suggested_price_low_cents is None or self.suggested_price_high_cents is None:
            return None
        return {
            "low": self.suggested_price_low_cents,
            "high": self.suggested_price_high_cents,
            "currency": self.suggested_price_currency,
            "formatted_low": format_price(self.suggested_price_low_cents, self.suggested_price_currency),
            "formatted_high": format_price(self.suggested_price_high_cents, self.suggested_price_currency),
        }

    # JSON accessors

    def _insight(self, key, default=None):
        return (self.ai_insights or {}).get(key, default)

    @property
    def executive_summary(self):
        return self._insight("executive_summary")

    @property
    def market_position(self):
        return self._insight("market_position")

    @property
    def pricing_rationale(self):
        return self._insight("pricing_rationale")

    @property
    def strengths(self):
        return self._insight("strengths") or []

    @property
    def considerations(self):
        return self._insight("considerations") or []

    @property
    def recommendation(self):
        return self._insight("recommendation")

    @property
    def time_to_sell_estimate(self):
        return self._insight("time_to_sell_estimate")

    @property
    def average_price(self):
        return (self.market_statistics or {}).get("average_price")

    @property
    def median_price(self):
        return (self.market_statistics or {}).get("median_price")

    @property
    def comparable_count(self) -> int:
        return len(self.comparable_properties or [])

    @property
    def company_name(self):
        return (self.branding or {}).get("company_name")

    @property
    def company_logo_url(self):
        return (self.branding or {}).get("company_logo_url")

    @property
    def agent_name(self):
        return (self.branding or {}).get("agent_name")


@event.listens_for(MarketReport, "before_insert")
def _assign_reference_number(mapper, connection, target):
    if not target.reference_number:
        target.reference_number = reference_number("CMA")
