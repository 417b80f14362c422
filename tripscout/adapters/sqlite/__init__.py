"""SQLite adapter - itinerary catalog storage."""

from .repository import CatalogRepository
from .seed import seed_catalog, seed_catalog_file

__all__ = ["CatalogRepository", "seed_catalog", "seed_catalog_file"]
