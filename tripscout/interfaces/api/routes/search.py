"""
Search Routes - Itinerary search and lookup endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from tripscout.adapters.sqlite import CatalogRepository
from tripscout.config.errors import NotFoundError
from tripscout.domains.search import (
    ItineraryCandidate,
    Origin,
    RawSearchRequest,
    SearchOrchestrator,
    SearchStep,
    candidate_from_row,
)
from tripscout.interfaces.api.deps import get_catalog_repository, get_search_orchestrator

router = APIRouter()


class SearchResponse(BaseModel):
    """Search response."""

    results: list[ItineraryCandidate]
    total: int
    index_status: str
    fallback_used: bool
    generated_count: int
    shortfall: int
    took_ms: float
    trace: list[SearchStep] | None = None


@router.post("/search", response_model=SearchResponse)
async def search_itineraries(
    request: RawSearchRequest,
    include_trace: bool = Query(default=False, description="Include per-step timings"),
    orchestrator: SearchOrchestrator = Depends(get_search_orchestrator),
):
    """
    Search itineraries.

    - **locations**: "City, State" names; empty means anywhere
    - **arrival_datetime** / **departure_datetime**: both or neither
    - **adults** / **children** / **infants**: party composition
    - **activities** / **lodging** / **transportation**: preference tags
    - **trip_pace**: relaxed, moderate or adventure

    Results are ordered by relevance, then price. When too few real
    itineraries match, generated ones (``origin: "generated"``) fill the gap.
    """
    outcome = await orchestrator.search(request)

    return SearchResponse(
        results=outcome.candidates,
        total=len(outcome.candidates),
        index_status=outcome.index_status.value,
        fallback_used=outcome.fallback_used,
        generated_count=outcome.generated_count,
        shortfall=outcome.shortfall,
        took_ms=round(outcome.total_duration_ms, 2),
        trace=outcome.steps if include_trace else None,
    )


@router.get("/{itinerary_id}", response_model=ItineraryCandidate)
async def get_itinerary(
    itinerary_id: str,
    repo: CatalogRepository = Depends(get_catalog_repository),
):
    """Get a stored itinerary by ID."""
    row = await repo.get_itinerary(itinerary_id)
    if row is None:
        raise NotFoundError("itinerary", itinerary_id)
    return candidate_from_row(row, Origin.STORED)
