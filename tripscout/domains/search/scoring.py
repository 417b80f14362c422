"""
Match Scorer - User-facing match percentage and per-dimension breakdown.

This is display data only. Ranking uses ``ItineraryCandidate.score``.
"""

from __future__ import annotations

from pydantic import BaseModel

from tripscout.config.settings import Settings

from .models import ItineraryCandidate, ScoreBreakdown, SearchCriteria
from .vocabulary import activity_matches, canonical_tag, split_location

__all__ = ["MatchScorer", "ScoreWeights"]

# Activity hours assumed when the catalog carries no duration.
HOURS_PER_ACTIVITY = 2.0


class ScoreWeights(BaseModel):
    """Relative weight of each dimension in the match score."""

    location: float = 35.0
    activity: float = 30.0
    group_size: float = 15.0
    lodging: float = 5.0
    transportation: float = 3.0
    trip_pace: float = 12.0

    model_config = {"frozen": True}

    @property
    def total(self) -> float:
        return (
            self.location
            + self.activity
            + self.group_size
            + self.lodging
            + self.transportation
            + self.trip_pace
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> ScoreWeights:
        return cls(
            location=settings.score_location_weight,
            activity=settings.score_activity_weight,
            group_size=settings.score_group_size_weight,
            lodging=settings.score_lodging_weight,
            transportation=settings.score_transportation_weight,
            trip_pace=settings.score_trip_pace_weight,
        )


class MatchScorer:
    """
    Scores a candidate against criteria on six weighted dimensions.

    Example:
        >>> scorer = MatchScorer()
        >>> annotated = scorer.annotate(candidates, criteria)
        >>> annotated[0].match_score
        82
    """

    def __init__(self, weights: ScoreWeights | None = None) -> None:
        self.weights = weights or ScoreWeights()

    def annotate(
        self,
        candidates: list[ItineraryCandidate],
        criteria: SearchCriteria,
    ) -> list[ItineraryCandidate]:
        """Set ``match_score`` and ``score_breakdown`` on each candidate, in order."""
        for candidate in candidates:
            breakdown = self.breakdown(candidate, criteria)
            candidate.score_breakdown = breakdown
            candidate.match_score = self.match_score(breakdown)
        return candidates

    def match_score(self, breakdown: ScoreBreakdown) -> int:
        """Weighted 0-100 total from a breakdown."""
        w = self.weights
        if w.total <= 0:
            return 0
        weighted = (
            breakdown.location_score * w.location
            + breakdown.activity_score * w.activity
            + breakdown.group_size_score * w.group_size
            + breakdown.lodging_score * w.lodging
            + breakdown.transportation_score * w.transportation
            + breakdown.trip_pace_score * w.trip_pace
        )
        return max(0, min(100, int(weighted / w.total)))

    def breakdown(
        self,
        candidate: ItineraryCandidate,
        criteria: SearchCriteria,
    ) -> ScoreBreakdown:
        """Per-dimension match percentages."""
        return ScoreBreakdown(
            location_score=_pct(_location(candidate, criteria)),
            activity_score=_pct(_activities(candidate, criteria)),
            group_size_score=_pct(_group_size(candidate, criteria)),
            lodging_score=_pct(_lodging(candidate, criteria)),
            transportation_score=_pct(_transportation(candidate, criteria)),
            trip_pace_score=_pct(_trip_pace(candidate, criteria)),
        )


def _pct(fraction: float) -> float:
    return round(max(0.0, min(1.0, fraction)) * 100.0, 1)


def _location(candidate: ItineraryCandidate, criteria: SearchCriteria) -> float:
    if not criteria.locations:
        return 0.0

    best = 0.0
    for wanted in criteria.locations:
        search_city, search_state = split_location(wanted)
        for name in candidate.locations:
            city, state = split_location(name)
            best = max(best, _location_match(search_city, search_state, city, state))
    return best


def _location_match(search_city: str, search_state: str, city: str, state: str) -> float:
    if search_city == city and search_state == state:
        return 1.0
    if search_city == city:
        return 0.7
    if search_city and city and (search_city in city or city in search_city):
        return 0.5
    if search_state and search_state == state:
        return 0.3
    return 0.0


def _activities(candidate: ItineraryCandidate, criteria: SearchCriteria) -> float:
    if not criteria.activities:
        # Partial credit for having any activities when none were asked for
        return 0.5 if candidate.activities else 0.0

    texts = [*candidate.activities, candidate.title]
    matched = sum(1 for wanted in criteria.activities if activity_matches(wanted, texts))
    return matched / len(criteria.activities)


def _group_size(candidate: ItineraryCandidate, criteria: SearchCriteria) -> float:
    if candidate.capacity is None:
        return 0.5
    if candidate.capacity.fits(criteria.party):
        return 1.0

    over = criteria.party.total - candidate.capacity.total
    if over <= 1:
        return 0.7
    if over <= 2:
        return 0.4
    return 0.0


def _lodging(candidate: ItineraryCandidate, criteria: SearchCriteria) -> float:
    if not criteria.lodging:
        return 0.0
    offered = {canonical_tag(item) for item in candidate.lodging}
    if criteria.lodging & offered:
        return 1.0
    return 0.6 if offered else 0.0


def _transportation(candidate: ItineraryCandidate, criteria: SearchCriteria) -> float:
    if not criteria.transportation:
        return 0.0
    if not candidate.transportation:
        return 0.0
    if criteria.transportation in canonical_tag(candidate.transportation):
        return 1.0
    return 0.3


def _trip_pace(candidate: ItineraryCandidate, criteria: SearchCriteria) -> float:
    pace = criteria.trip_pace
    if pace is None:
        return 0.5

    days = max(candidate.duration_days, 1)
    per_day = len(candidate.activities) / days
    hours_per_day = per_day * HOURS_PER_ACTIVITY

    activity_diff = abs(per_day - pace.typical_activities_per_day)
    if activity_diff <= 0.5:
        activity_match = 1.0
    elif activity_diff <= 1.0:
        activity_match = 0.8
    elif activity_diff <= 2.0:
        activity_match = 0.5
    else:
        activity_match = 0.2

    hours_diff = abs(hours_per_day - pace.max_activity_hours_per_day)
    if hours_diff <= 1.0:
        hours_match = 1.0
    elif hours_diff <= 2.0:
        hours_match = 0.8
    elif hours_diff <= 3.0:
        hours_match = 0.5
    else:
        hours_match = 0.2

    return (activity_match + hours_match) / 2
