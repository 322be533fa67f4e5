"""
Per-request shard selection.

Demo hosts always use the demo shard so demo data never mixes with
customer data; other requests use the resolved website's shard.
"""

import logging
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from pwb.core.config import settings
from pwb.core.database import DEFAULT_SHARD, available_shards, using_shard
from pwb.middleware.tenant import request_host

logger = logging.getLogger(__name__)


def is_demo_host(host: str) -> bool:
    for demo_host in settings.DEMO_HOSTS:
        demo_host = demo_host.strip().lower()
        if demo_host and (host == demo_host or host.endswith(f".{demo_host}")):
            return True
    return False


def shard_for_request(request: Request) -> str:
    if is_demo_host(request_host(request)):
        return settings.DEMO_SHARD_NAME
    return getattr(request.state, "website_shard", None) or DEFAULT_SHARD


class DemoShardMiddleware(BaseHTTPMiddleware):
    """Runs the rest of the request against the selected shard."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        shard = shard_for_request(request)
        if shard not in available_shards():
            logger.error(f"Shard '{shard}' is not configured, using '{DEFAULT_SHARD}'")
            shard = DEFAULT_SHARD

        request.state.shard = shard
        with using_shard(shard):
            return await call_next(request)
