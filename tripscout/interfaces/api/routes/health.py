"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter

from tripscout import __version__

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "tripscout"}


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "TripScout API",
        "version": __version__,
        "description": "Itinerary search with store fallback and generated suggestions",
        "docs": "/docs",
        "endpoints": [
            "POST /api/itineraries/search",
            "GET /api/itineraries/{itinerary_id}",
        ],
    }
