"""
Temporal activities for market reports and platform maintenance.
Activities are the actual work units executed by Temporal workers.
"""

import logging
from typing import Any, Dict

from temporalio import activity

from pwb.core.database import session_scope
from pwb.core.tenant import website_scope
from pwb.models.market_report import MarketReport
from pwb.models.prop import Prop
from pwb.models.user import User
from pwb.models.website import Website
from pwb.services import exchange_rates, subdomain_pool
from pwb.services.reports.generator import CmaGenerator

logger = logging.getLogger(__name__)


@activity.defn(name="generate_market_report")
async def generate_market_report(report_id: int, website_id: int, shard: str) -> Dict[str, Any]:
    """
    Run CMA generation for an existing draft report.

    Returns:
        Dict with success, status and error
    """
    logger.info(f"Activity: Generating market report {report_id} (website {website_id}, shard {shard})")

    with session_scope(shard) as db, website_scope(website_id):
        website = db.get(Website, website_id)
        report = db.get(MarketReport, report_id)
        if website is None or report is None:
            raise ValueError(f"Market report {report_id} not found for website {website_id}")

        prop = db.get(Prop, report.subject_prop_id) if report.subject_prop_id else None
        if prop is None:
            report.status = "draft"
            report.error_message = "Subject property no longer exists"
            db.commit()
            return {"success": False, "status": report.status, "error": report.error_message}

        user = db.get(User, report.user_id) if report.user_id else None
        options = {"radius_km": report.radius_km or 2, "title": report.title, "branding": report.branding}
        result = CmaGenerator(db, prop, website, user=user, options=options).generate(report)

        logger.info(f"Market report {report_id} finished with status {report.status}")
        return {"success": result.success, "status": report.status, "error": result.error}


@activity.defn(name="refresh_exchange_rates")
async def refresh_exchange_rates() -> int:
    logger.info("Activity: Refreshing exchange rates")
    with session_scope() as db:
        return exchange_rates.update_all_rates(db)


@activity.defn(name="release_expired_subdomains")
async def release_expired_subdomains() -> int:
    logger.info("Activity: Releasing expired subdomain reservations")
    with session_scope() as db:
        return subdomain_pool.release_expired(db)
