"""
Search Contracts - Interfaces for search domain.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .models import IndexSearchResult, ItineraryCandidate, SearchCriteria

if TYPE_CHECKING:
    from tripscout.domains.generation.models import CatalogSnapshot


@runtime_checkable
class IndexSearchAdapter(Protocol):
    """Contract for the remote search index."""

    async def search(self, criteria: SearchCriteria) -> IndexSearchResult:
        """
        Query the index.

        Raises:
            IndexUnavailableError: network or service failure
            IndexMalformedError: the index rejected the query
        """
        ...


@runtime_checkable
class ItineraryStore(Protocol):
    """Contract for structured reads over persisted itineraries."""

    async def find_itineraries(
        self,
        adults: int,
        children: int,
        infants: int,
        arrival: date | None = None,
        departure: date | None = None,
    ) -> list[dict[str, Any]]:
        """Return itinerary rows whose capacity and availability fit."""
        ...


@runtime_checkable
class CatalogReader(Protocol):
    """Contract for point-in-time reads of catalog building blocks."""

    async def load_catalog(self) -> CatalogSnapshot:
        """Load locations, activities, lodging and transportation."""
        ...


@runtime_checkable
class FallbackQuerier(Protocol):
    """Contract for the structured-store fallback."""

    async def query(self, criteria: SearchCriteria) -> list[ItineraryCandidate]:
        """Return store candidates with deterministic base scores."""
        ...


@runtime_checkable
class CandidateGenerator(Protocol):
    """Contract for synthesizing itineraries from catalog primitives."""

    def generate(
        self,
        criteria: SearchCriteria,
        needed_count: int,
        catalog: CatalogSnapshot,
        exclude_ids: set[str] | None = None,
    ) -> list[ItineraryCandidate]:
        """Generate up to ``needed_count`` candidates."""
        ...
