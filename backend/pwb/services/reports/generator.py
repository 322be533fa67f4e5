"""
CMA generation: report record, comparables, statistics, insights.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from pwb.models.market_report import MarketReport
from pwb.models.prop import Prop
from pwb.models.user import User
from pwb.models.website import Website
from pwb.services.reports.comparables import ComparablesFinder, listing_currency
from pwb.services.reports.insights import CmaInsightsGenerator
from pwb.services.reports.statistics import StatisticsCalculator, StatisticsResult

logger = logging.getLogger(__name__)

NO_COMPARABLES_MESSAGE = "No comparable properties found within search criteria"

DEFAULT_OPTIONS = {
    "radius_km": 2,
    "months_back": 6,
    "max_comparables": 10,
    "title": None,
    "branding": None,
}


@dataclass
class CmaResult:
    success: bool
    report: Optional[MarketReport] = None
    comparables: List[Dict[str, Any]] = field(default_factory=list)
    statistics: Optional[StatisticsResult] = None
    insights: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


def default_title(prop: Prop) -> str:
    address = ", ".join(p for p in (prop.street_address, prop.city) if p) or "Subject Property"
    return f"CMA Report for {address}"


def default_branding(website: Website, user: Optional[User] = None) -> dict:
    agency = website.agency
    branding = {
        "company_name": (agency.display_name if agency else None) or website.company_display_name,
        "company_logo_url": website.main_logo_url,
        "agent_name": user.display_name if user else None,
        "agent_email": user.email if user else None,
        "agent_phone": agency.phone_number_primary if agency else None,
    }
    return {key: value for key, value in branding.items() if value is not None}


def subject_details(prop: Prop) -> dict:
    return {
        "property_id": prop.id,
        "reference": prop.reference,
        "address": {
            "street": prop.street_address,
            "city": prop.city,
            "region": prop.region,
            "postal_code": prop.postal_code,
            "country": prop.country,
        },
        "characteristics": {
            "property_type": prop.prop_type_key,
            "bedrooms": prop.count_bedrooms,
            "bathrooms": prop.count_bathrooms,
            "constructed_area": prop.constructed_area,
            "plot_area": prop.plot_area,
            "year_built": prop.year_construction,
            "garages": prop.count_garages,
        },
        "coordinates": {"latitude": prop.latitude, "longitude": prop.longitude},
    }


class CmaGenerator:
    """Runs a full CMA for one property."""

    def __init__(self, db: Session, prop: Prop, website: Website, user: Optional[User] = None,
                 options: Optional[dict] = None, insights_client=None):
        self.db = db
        self.prop = prop
        self.website = website
        self.user = user
        self.options = {**DEFAULT_OPTIONS, **(options or {})}
        self.insights_client = insights_client

    def currency(self) -> str:
        if self.prop.for_sale or self.prop.for_rent:
            return listing_currency(self.prop)
        return self.website.default_currency or "USD"

    def create_report(self) -> MarketReport:
        report = MarketReport(
            website_id=self.website.id,
            user_id=self.user.id if self.user else None,
            subject_prop_id=self.prop.id,
            report_type="cma",
            status="draft",
            title=self.options["title"] or default_title(self.prop),
            city=self.prop.city,
            postal_code=self.prop.postal_code,
            latitude=self.prop.latitude,
            longitude=self.prop.longitude,
            radius_km=self.options["radius_km"],
            subject_details=subject_details(self.prop),
            branding=self.options["branding"] or default_branding(self.website, self.user),
            suggested_price_currency=self.currency(),
        )
        self.db.add(report)
        self.db.commit()
        self.db.refresh(report)
        return report

    def generate(self, report: Optional[MarketReport] = None) -> CmaResult:
        report = report or self.create_report()

        try:
            report.mark_generating()
            self.db.commit()

            comparables = ComparablesFinder(
                self.db, self.prop, self.website,
                {k: self.options[k] for k in ("radius_km", "months_back", "max_comparables")},
            ).find().comparables

            if not comparables:
                report.mark_completed()
                report.error_message = NO_COMPARABLES_MESSAGE
                self.db.commit()
                return CmaResult(success=True, report=report, error=NO_COMPARABLES_MESSAGE)

            statistics = StatisticsCalculator(comparables, self.prop, self.currency()).calculate()
            insights = CmaInsightsGenerator(report, comparables, statistics, client=self.insights_client).generate()

            if insights.success:
                report.mark_completed(
                    insights=insights.insights,
                    statistics=statistics.statistics,
                    comparables=comparables,
                    suggested_price=insights.suggested_price,
                )
                self.db.commit()
                logger.info(f"CMA {report.reference_number} completed with {len(comparables)} comparables")
                return CmaResult(success=True, report=report, comparables=comparables,
                                 statistics=statistics, insights=insights.insights)

            report.mark_completed(statistics=statistics.statistics, comparables=comparables)
            report.error_message = insights.error
            self.db.commit()
            logger.warning(f"CMA {report.reference_number} completed without insights: {insights.error}")
            return CmaResult(success=False, report=report, comparables=comparables,
                             statistics=statistics, error=insights.error)

        except Exception as e:
            logger.error(f"CMA generation failed for report {report.id}: {e}", exc_info=True)
            self.db.rollback()
            report.status = "draft"
            report.error_message = str(e)
            self.db.commit()
            return CmaResult(success=False, report=report, error=str(e))
