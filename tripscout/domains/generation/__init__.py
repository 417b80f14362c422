"""
Generation Domain - Synthesized itineraries from catalog primitives.
"""

from .generator import GENERATED_SCORE, ItineraryGenerator
from .models import (
    CatalogActivity,
    CatalogLocation,
    CatalogLodging,
    CatalogSnapshot,
    CatalogTransportation,
)

__all__ = [
    "CatalogLocation",
    "CatalogActivity",
    "CatalogLodging",
    "CatalogTransportation",
    "CatalogSnapshot",
    "ItineraryGenerator",
    "GENERATED_SCORE",
]
