"""
Temporal client - for starting workflows from the FastAPI application.
"""

import logging
from typing import Dict, Optional
from temporalio.client import Client

from pwb.core.config import settings

logger = logging.getLogger(__name__)


class TemporalClient:
    """Client for interacting with Temporal workflows."""

    def __init__(self):
        self._client: Optional[Client] = None

    async def connect(self):
        """Connect to Temporal server."""
        if self._client is None:
            temporal_address = f"{settings.TEMPORAL_HOST}:{settings.TEMPORAL_PORT}"
            logger.info(f"Connecting to Temporal at {temporal_address}")

            self._client = await Client.connect(
                temporal_address,
                namespace=settings.TEMPORAL_NAMESPACE,
            )

            logger.info(f"Connected to Temporal namespace: {settings.TEMPORAL_NAMESPACE}")

    async def start_market_report(self, report_id: int, website_id: int, shard: str) -> Dict[str, str]:
        """
        Start CMA generation for a draft report.

        Returns:
            Dict with workflow_id and workflow_run_id
        """
        await self.connect()

        workflow_id = f"market-report-{shard}-{report_id}"
        logger.info(f"Starting market report workflow: {workflow_id}")

        handle = await self._client.start_workflow(
            "MarketReportWorkflow",
            args=[report_id, website_id, shard],
            id=workflow_id,
            task_queue=settings.TEMPORAL_TASK_QUEUE,
        )

        logger.info(f"Workflow started: {handle.id}, run_id: {handle.result_run_id}")
        return {"workflow_id": handle.id, "workflow_run_id": handle.result_run_id}

    async def start_maintenance(self) -> Dict[str, str]:
        """Refresh exchange rates and release expired subdomain reservations."""
        await self.connect()

        handle = await self._client.start_workflow(
            "MaintenanceWorkflow",
            id="platform-maintenance",
            task_queue=settings.TEMPORAL_TASK_QUEUE,
        )
        return {"workflow_id": handle.id, "workflow_run_id": handle.result_run_id}


# Singleton instance
_temporal_client: Optional[TemporalClient] = None


def get_temporal_client() -> TemporalClient:
    """Get or create Temporal client singleton."""
    global _temporal_client
    if _temporal_client is None:
        _temporal_client = TemporalClient()
    return _temporal_client
