"""
FastAPI Main Application - Unified API entry point.

Run with: uvicorn tripscout.interfaces.api.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tripscout import __version__
from tripscout.config import Settings, get_settings

from .deps import cleanup_services, init_services
from .middleware import (
    ErrorHandlerMiddleware,
    RateLimitMiddleware,
    RequestContextMiddleware,
)
from .routes import health, search

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting TripScout API...")
    logger.info("  Database: %s", settings.db_path)
    logger.info(
        "  Index: %s",
        settings.index_data_store_id or "not configured (store fallback only)",
    )

    await init_services()
    logger.info("  Services initialized")

    yield

    logger.info("Shutting down TripScout API...")
    await cleanup_services()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="TripScout API",
        description="Itinerary search with store fallback and generated suggestions",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters - last added = outermost)
    # Rate limiting sits innermost so RateLimited reaches the error handler
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=settings.api_rate_limit_per_minute,
    )
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestContextMiddleware)

    # CORS (framework middleware, outermost)
    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000",
    ]
    if settings.api_debug:
        allowed_origins.append("http://localhost:*")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(search.router, prefix="/api/itineraries", tags=["Search"])

    return app


# Create app instance
app = create_app()
