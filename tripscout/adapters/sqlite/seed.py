"""
Catalog Seeding - Load a JSON catalog export into the repository.

Expected document shape::

    {
        "locations": [{"id": "loc-moab", "city": "Moab", "state": "Utah"}],
        "activities": [...],
        "lodging": [...],
        "transportation": [...],
        "itineraries": [...]
    }

Every key is optional. Rows are upserted, so seeding is repeatable.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from tripscout.domains.generation.models import (
    CatalogActivity,
    CatalogLocation,
    CatalogLodging,
    CatalogTransportation,
)

from .repository import CatalogRepository

logger = logging.getLogger(__name__)

__all__ = ["seed_catalog", "seed_catalog_file"]


async def seed_catalog(repo: CatalogRepository, data: dict[str, Any]) -> dict[str, int]:
    """
    Upsert catalog primitives and itineraries.

    Args:
        repo: Initialized repository
        data: Parsed catalog document

    Returns:
        Rows written per section

    Raises:
        pydantic.ValidationError: If a catalog row is malformed
    """
    stats = {
        "locations": 0,
        "activities": 0,
        "lodging": 0,
        "transportation": 0,
        "itineraries": 0,
    }

    for row in data.get("locations", []):
        await repo.insert_location(CatalogLocation.model_validate(row))
        stats["locations"] += 1

    for row in data.get("activities", []):
        await repo.insert_activity(CatalogActivity.model_validate(row))
        stats["activities"] += 1

    for row in data.get("lodging", []):
        await repo.insert_lodging(CatalogLodging.model_validate(row))
        stats["lodging"] += 1

    for row in data.get("transportation", []):
        await repo.insert_transportation(CatalogTransportation.model_validate(row))
        stats["transportation"] += 1

    for row in data.get("itineraries", []):
        await repo.insert_itinerary(row)
        stats["itineraries"] += 1

    logger.info(
        "Seeded %d locations, %d activities, %d lodging, %d transportation, %d itineraries",
        stats["locations"],
        stats["activities"],
        stats["lodging"],
        stats["transportation"],
        stats["itineraries"],
    )
    return stats


async def seed_catalog_file(repo: CatalogRepository, path: Path) -> dict[str, int]:
    """Read a JSON catalog export from disk and seed it."""
    data = json.loads(path.read_text(encoding="utf-8"))
    return await seed_catalog(repo, data)
