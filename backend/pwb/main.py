"""
Main FastAPI application entry point for PropertyWebBuilder.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from pwb.core.config import settings
from pwb.core.logging_config import setup_logging
from pwb.api import (
    client_proxy,
    enquiries,
    health,
    listing_videos,
    market_reports,
    price_game,
    properties,
    signup,
    site,
    tenant_admin,
)
from pwb.middleware.shards import DemoShardMiddleware
from pwb.middleware.tenant import TenantMiddleware

# Initialize logging
setup_logging(settings.LOG_LEVEL, settings.LOG_DIR if settings.ENVIRONMENT == "production" else None)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    yield
    await client_proxy.close_http_client()


# Create FastAPI app
app = FastAPI(
    title="PropertyWebBuilder API",
    description="Multi-tenant real estate website builder",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Middleware runs in reverse order of registration: tenant resolution first,
# then shard selection (which needs the resolved website's shard).
app.add_middleware(DemoShardMiddleware)
app.add_middleware(TenantMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(health.tls_router, prefix="/tls", tags=["health"])
app.include_router(signup.router, prefix="/api/signup", tags=["signup"])
app.include_router(tenant_admin.router, prefix="/api/tenant_admin", tags=["tenant-admin"])

app.include_router(site.router, prefix="/api/public", tags=["site"])
app.include_router(properties.router, prefix="/api/public", tags=["properties"])
app.include_router(enquiries.router, prefix="/api/public", tags=["enquiries"])
app.include_router(market_reports.router, prefix="/api/public", tags=["market-reports"])
app.include_router(price_game.router, prefix="/api/public", tags=["price-game"])
app.include_router(listing_videos.router, prefix="/api/public", tags=["listing-videos"])

app.include_router(site.admin_router, prefix="/api/site_admin", tags=["site-admin"])
app.include_router(properties.admin_router, prefix="/api/site_admin", tags=["site-admin"])
app.include_router(enquiries.admin_router, prefix="/api/site_admin", tags=["site-admin"])
app.include_router(market_reports.admin_router, prefix="/api/site_admin", tags=["site-admin"])
app.include_router(listing_videos.admin_router, prefix="/api/site_admin", tags=["site-admin"])

# Must stay last: everything unmatched goes to the client renderer
app.include_router(client_proxy.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "pwb.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
