"""
Temporal worker - runs activities and workflows.
Run as a separate process: ``python -m pwb.workflows.worker``.
"""

import asyncio
import logging
from temporalio.client import Client
from temporalio.worker import Worker

from pwb.core.config import settings
from pwb.core.logging_config import setup_logging
from pwb.workflows.market_report_workflows import MaintenanceWorkflow, MarketReportWorkflow
from pwb.workflows.activities import (
    generate_market_report,
    refresh_exchange_rates,
    release_expired_subdomains,
)

logger = logging.getLogger(__name__)


async def main():
    """Start the Temporal worker."""
    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)

    temporal_address = f"{settings.TEMPORAL_HOST}:{settings.TEMPORAL_PORT}"
    logger.info(f"Connecting to Temporal at {temporal_address}")

    client = await Client.connect(
        temporal_address,
        namespace=settings.TEMPORAL_NAMESPACE,
    )

    logger.info(f"Connected to Temporal namespace: {settings.TEMPORAL_NAMESPACE}")

    worker = Worker(
        client,
        task_queue=settings.TEMPORAL_TASK_QUEUE,
        workflows=[MarketReportWorkflow, MaintenanceWorkflow],
        activities=[
            generate_market_report,
            refresh_exchange_rates,
            release_expired_subdomains,
        ],
    )

    logger.info(f"Starting worker on task queue: {settings.TEMPORAL_TASK_QUEUE}")
    await worker.run()


if __name__ == "__main__":
    asyncio.run(main())
