"""
Store Fallback - Structured itinerary query against the primary store.

Used when the index is degraded or returns too few matches. Every result
gets a deterministic base score so that store results sit between strong
and weak index matches:

    score = min(0.9, 0.5 + 0.1 * dimensions_matched)

where ``dimensions_matched`` counts constrained criteria dimensions beyond
the party-capacity minimum (locations, activities, lodging, date range,
transportation).
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any

from .models import Capacity, ItineraryCandidate, Origin, SearchCriteria
from .vocabulary import canonical_tag, location_key

if TYPE_CHECKING:
    from .contracts import ItineraryStore

logger = logging.getLogger(__name__)

__all__ = ["StoreFallbackQuerier", "candidate_from_row"]

BASE_SCORE = 0.5
DIMENSION_BONUS = 0.1
MAX_SCORE = 0.9


class StoreFallbackQuerier:
    """
    Applies SearchCriteria as a predicate over persisted itineraries.

    Example:
        >>> querier = StoreFallbackQuerier(repository)
        >>> candidates = await querier.query(criteria)
    """

    def __init__(self, store: ItineraryStore) -> None:
        self._store = store

    async def query(self, criteria: SearchCriteria) -> list[ItineraryCandidate]:
        """
        Query the store.

        Raises:
            StoreError: the store could not be read
        """
        date_range = criteria.date_range
        rows = await self._store.find_itineraries(
            adults=criteria.party.adults,
            children=criteria.party.children,
            infants=criteria.party.infants,
            arrival=date_range.arrival if date_range else None,
            departure=date_range.departure if date_range else None,
        )

        candidates = []
        for row in rows:
            candidate = candidate_from_row(row, Origin.STORED)
            matched = matched_dimensions(candidate, criteria)
            if matched is None:
                continue
            candidate.score = min(MAX_SCORE, BASE_SCORE + DIMENSION_BONUS * matched)
            candidates.append(candidate)

        candidates.sort(key=lambda c: (-c.score, c.price, c.id))

        logger.info(
            "Store fallback: %d rows -> %d candidates",
            len(rows),
            len(candidates),
        )
        return candidates


def matched_dimensions(
    candidate: ItineraryCandidate,
    criteria: SearchCriteria,
) -> int | None:
    """
    Count matched criteria dimensions, or None if the candidate fails one.

    Transportation only adds to the count; it never excludes.
    """
    if candidate.capacity is not None and not candidate.capacity.fits(criteria.party):
        return None

    matched = 0

    if criteria.locations:
        wanted = {location_key(name) for name in criteria.locations}
        if not wanted & {location_key(name) for name in candidate.locations}:
            return None
        matched += 1

    if criteria.activities:
        if not criteria.activities & {canonical_tag(a) for a in candidate.activities}:
            return None
        matched += 1

    if criteria.lodging:
        if not criteria.lodging & {canonical_tag(item) for item in candidate.lodging}:
            return None
        matched += 1

    if criteria.date_range is not None:
        if not _available(candidate, criteria.date_range.arrival, criteria.date_range.departure):
            return None
        matched += 1

    if (
        criteria.transportation
        and candidate.transportation
        and canonical_tag(candidate.transportation) == criteria.transportation
    ):
        matched += 1

    return matched


def _available(candidate: ItineraryCandidate, arrival: date, departure: date) -> bool:
    if candidate.available_from is not None and candidate.available_from > arrival:
        return False
    if candidate.available_to is not None and candidate.available_to < departure:
        return False
    return True


def candidate_from_row(
    row: dict[str, Any],
    origin: Origin,
    score: float = 0.0,
) -> ItineraryCandidate:
    """Build a candidate from a store row or an index document."""
    capacity = None
    if row.get("capacity_adults") is not None:
        capacity = Capacity(
            adults=row.get("capacity_adults") or 0,
            children=row.get("capacity_children") or 0,
            infants=row.get("capacity_infants") or 0,
        )

    return ItineraryCandidate(
        id=str(row["id"]),
        title=row.get("title") or "",
        locations=list(row.get("locations") or []),
        activities=list(row.get("activities") or []),
        lodging=list(row.get("lodging") or []),
        transportation=row.get("transportation") or None,
        price=float(row.get("price") or 0.0),
        duration_days=int(row.get("duration_days") or 1),
        media_refs=list(row.get("media_refs") or []),
        capacity=capacity,
        available_from=row.get("available_from") or None,
        available_to=row.get("available_to") or None,
        origin=origin,
        score=score,
    )
