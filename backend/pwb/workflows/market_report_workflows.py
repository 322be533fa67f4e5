"""
Temporal workflows for market reports and periodic maintenance.
Workflows orchestrate activities and define the processing logic.
"""

from datetime import timedelta
from typing import Any, Dict

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from pwb.workflows.activities import (
        generate_market_report,
        refresh_exchange_rates,
        release_expired_subdomains,
    )


RETRY_POLICY = RetryPolicy(
    initial_interval=timedelta(seconds=1),
    maximum_interval=timedelta(seconds=60),
    maximum_attempts=3,
    backoff_coefficient=2.0,
)


@workflow.defn(name="MarketReportWorkflow")
class MarketReportWorkflow:
    """
    Generate a CMA report.

    Comparable search, statistics and AI insights run in one activity; the
    generator already records partial results on the report when a step fails.
    """

    @workflow.run
    async def run(self, report_id: int, website_id: int, shard: str) -> Dict[str, Any]:
        workflow.logger.info(f"Starting market report workflow for report {report_id}")

        result = await workflow.execute_activity(
            generate_market_report,
            args=[report_id, website_id, shard],
            start_to_close_timeout=timedelta(minutes=5),
            retry_policy=RETRY_POLICY,
        )

        workflow.logger.info(f"Market report workflow finished for report {report_id}: {result.get('status')}")
        return result


@workflow.defn(name="MaintenanceWorkflow")
class MaintenanceWorkflow:
    """Daily housekeeping: exchange rates and the subdomain pool."""

    @workflow.run
    async def run(self) -> Dict[str, int]:
        rates_updated = await workflow.execute_activity(
            refresh_exchange_rates,
            start_to_close_timeout=timedelta(minutes=10),
            retry_policy=RETRY_POLICY,
        )
        released = await workflow.execute_activity(
            release_expired_subdomains,
            start_to_close_timeout=timedelta(minutes=2),
            retry_policy=RETRY_POLICY,
        )
        return {"websites_rates_updated": rates_updated, "subdomains_released": released}
