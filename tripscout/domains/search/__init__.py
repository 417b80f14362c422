"""
Search Domain - Itinerary search with store fallback and generation.

This domain handles:
- Criteria validation and canonicalization
- Store fallback when the index fails or under-delivers
- Deduplication and deterministic ordering
- Match-score breakdowns
- The search state machine
"""

from .contracts import (
    CandidateGenerator,
    CatalogReader,
    FallbackQuerier,
    IndexSearchAdapter,
    ItineraryStore,
)
from .criteria import CriteriaNormalizer
from .fallback import StoreFallbackQuerier, candidate_from_row
from .merger import ACCEPTANCE_FLOOR, ResultMerger, ranking_key
from .models import (
    Capacity,
    DateRange,
    DayItem,
    IndexSearchResult,
    ItineraryCandidate,
    Origin,
    Party,
    RawSearchRequest,
    ScoreBreakdown,
    SearchCriteria,
    SearchOutcome,
    SearchPolicy,
    SearchState,
    SearchStep,
    TripPace,
)
from .orchestrator import SearchOrchestrator
from .scoring import MatchScorer, ScoreWeights

__all__ = [
    # Contracts
    "IndexSearchAdapter",
    "ItineraryStore",
    "CatalogReader",
    "FallbackQuerier",
    "CandidateGenerator",
    # Models
    "Origin",
    "TripPace",
    "Party",
    "Capacity",
    "DateRange",
    "DayItem",
    "SearchCriteria",
    "RawSearchRequest",
    "ItineraryCandidate",
    "ScoreBreakdown",
    "IndexSearchResult",
    "SearchPolicy",
    "SearchState",
    "SearchStep",
    "SearchOutcome",
    # Implementations
    "CriteriaNormalizer",
    "StoreFallbackQuerier",
    "candidate_from_row",
    "ResultMerger",
    "ranking_key",
    "ACCEPTANCE_FLOOR",
    "MatchScorer",
    "ScoreWeights",
    "SearchOrchestrator",
]
