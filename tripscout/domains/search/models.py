"""
Search Models - Data types for search domain.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from tripscout.config.errors import IndexStatus
from tripscout.config.settings import Settings


class Origin(str, Enum):
    """Where a candidate came from."""

    INDEXED = "indexed"
    STORED = "stored"
    GENERATED = "generated"


class TripPace(str, Enum):
    """How packed the traveler wants each day to be."""

    RELAXED = "relaxed"
    MODERATE = "moderate"
    ADVENTURE = "adventure"

    @property
    def typical_activities_per_day(self) -> int:
        return {"relaxed": 2, "moderate": 3, "adventure": 5}[self.value]

    @property
    def max_activity_hours_per_day(self) -> float:
        return {"relaxed": 4.0, "moderate": 6.0, "adventure": 10.0}[self.value]


class Party(BaseModel):
    """Who is travelling."""

    adults: int = Field(default=1, ge=1)
    children: int = Field(default=0, ge=0)
    infants: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    @property
    def total(self) -> int:
        return self.adults + self.children + self.infants


class Capacity(BaseModel):
    """Maximum party an itinerary can host."""

    adults: int = Field(default=1, ge=0)
    children: int = Field(default=0, ge=0)
    infants: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    @property
    def total(self) -> int:
        return self.adults + self.children + self.infants

    def fits(self, party: Party) -> bool:
        return (
            self.adults >= party.adults
            and self.children >= party.children
            and self.infants >= party.infants
        )


class DateRange(BaseModel):
    """
    Arrival and departure days.

    Time-of-day ordering is checked by CriteriaNormalizer; a same-day
    trip counts as one day.
    """

    arrival: date
    departure: date

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _arrival_not_after_departure(self) -> DateRange:
        if self.arrival > self.departure:
            raise ValueError("arrival must be before departure")
        return self

    @property
    def days(self) -> int:
        return max(1, (self.departure - self.arrival).days)


class SearchCriteria(BaseModel):
    """
    Canonical search request, built once per request by CriteriaNormalizer.

    Empty sets mean "unconstrained". Tags are stored lower-cased.
    """

    locations: frozenset[str] = frozenset()
    date_range: DateRange | None = None
    party: Party = Field(default_factory=Party)
    activities: frozenset[str] = frozenset()
    lodging: frozenset[str] = frozenset()
    transportation: str | None = None
    trip_pace: TripPace | None = None

    model_config = {"frozen": True}


class RawSearchRequest(BaseModel):
    """Inbound search body; every field is optional."""

    locations: list[str] | None = None
    arrival_datetime: str | None = None
    departure_datetime: str | None = None
    adults: int | None = None
    children: int | None = None
    infants: int | None = None
    activities: list[str] | None = None
    lodging: list[str] | None = None
    transportation: str | None = None
    trip_pace: str | None = None


class ScoreBreakdown(BaseModel):
    """Per-dimension match percentages (0-100)."""

    location_score: float = 0.0
    activity_score: float = 0.0
    group_size_score: float = 0.0
    lodging_score: float = 0.0
    transportation_score: float = 0.0
    trip_pace_score: float = 0.0


class DayItem(BaseModel):
    """One scheduled entry in a day-by-day plan."""

    kind: str  # transportation, activity
    time: str  # HH:MM:SS
    name: str
    activity_id: str | None = None
    location: str | None = None

    model_config = {"frozen": True}


class ItineraryCandidate(BaseModel):
    """A recommendation surfaced to the caller."""

    id: str
    title: str = ""
    locations: list[str] = Field(default_factory=list)
    activities: list[str] = Field(default_factory=list)
    lodging: list[str] = Field(default_factory=list)
    transportation: str | None = None
    price: float = 0.0
    duration_days: int = 1
    media_refs: list[str] = Field(default_factory=list)
    capacity: Capacity | None = None
    available_from: date | None = None
    available_to: date | None = None
    origin: Origin = Field(frozen=True)
    score: float = 0.0
    match_score: int | None = None
    score_breakdown: ScoreBreakdown | None = None
    days: dict[str, list[DayItem]] = Field(default_factory=dict)


class IndexSearchResult(BaseModel):
    """Candidates from the index plus the native relevance they came with."""

    candidates: list[ItineraryCandidate] = Field(default_factory=list)
    raw_scores: list[float] = Field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.candidates


class SearchPolicy(BaseModel):
    """Thresholds and budgets handed to the orchestrator."""

    min_index_results: int = Field(default=3, ge=0)
    min_results: int = Field(default=3, ge=0)
    index_retries: int = Field(default=1, ge=0)
    timeout_seconds: float = Field(default=10.0, gt=0)
    speculative_fallback: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings: Settings) -> SearchPolicy:
        return cls(
            min_index_results=settings.search_min_index_results,
            min_results=settings.search_min_results,
            index_retries=settings.search_index_retries,
            timeout_seconds=settings.search_timeout_seconds,
            speculative_fallback=settings.search_speculative_fallback,
        )


class SearchState(str, Enum):
    """Orchestrator states."""

    NORMALIZING = "normalizing"
    QUERYING = "querying"
    EVALUATING = "evaluating"
    FALLING_BACK = "falling_back"
    GENERATING = "generating"
    DONE = "done"


class SearchStep(BaseModel):
    """Single step in a search execution."""

    name: str
    status: str  # completed, failed, skipped
    duration_ms: float = 0.0
    detail: dict[str, Any] = Field(default_factory=dict)


class SearchOutcome(BaseModel):
    """Result of one search request."""

    candidates: list[ItineraryCandidate] = Field(default_factory=list)
    states: list[SearchState] = Field(default_factory=list)
    steps: list[SearchStep] = Field(default_factory=list)
    index_status: IndexStatus = IndexStatus.OK
    fallback_used: bool = False
    generated_count: int = 0
    shortfall: int = 0
    total_duration_ms: float = 0.0
