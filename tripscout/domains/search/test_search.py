"""
Tests for search domain models, criteria normalization, merging, fallback and scoring.
"""

from __future__ import annotations

from datetime import date
from typing import Any
from unittest.mock import AsyncMock

import pytest

from tripscout.config.errors import StoreError, ValidationError

from .criteria import CriteriaNormalizer
from .fallback import StoreFallbackQuerier, candidate_from_row
from .merger import ResultMerger, ranking_key
from .models import (
    Capacity,
    DateRange,
    ItineraryCandidate,
    Origin,
    Party,
    RawSearchRequest,
    SearchCriteria,
    TripPace,
)
from .scoring import MatchScorer, ScoreWeights
from .vocabulary import activity_matches, location_key, split_location


def _candidate(
    id: str,
    score: float = 0.5,
    price: float = 100.0,
    origin: Origin = Origin.INDEXED,
    **fields: Any,
) -> ItineraryCandidate:
    return ItineraryCandidate(id=id, score=score, price=price, origin=origin, **fields)


def _row(id: str, **overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": id,
        "title": f"Trip {id}",
        "locations": ["Moab, UT"],
        "activities": ["hiking"],
        "lodging": ["cabin"],
        "transportation": "rental car",
        "price": 450.0,
        "duration_days": 3,
        "media_refs": [],
        "capacity_adults": 4,
        "capacity_children": 2,
        "capacity_infants": 1,
        "available_from": "2026-05-01",
        "available_to": "2026-09-30",
    }
    row.update(overrides)
    return row


# --- Model Tests ---


def test_date_range_allows_same_day_trip() -> None:
    """Test DateRange counts whole days and rejects inverted ranges."""
    assert DateRange(arrival=date(2026, 6, 1), departure=date(2026, 6, 4)).days == 3
    assert DateRange(arrival=date(2026, 6, 1), departure=date(2026, 6, 1)).days == 1

    with pytest.raises(ValueError):
        DateRange(arrival=date(2026, 6, 4), departure=date(2026, 6, 1))


def test_capacity_fits_party() -> None:
    """Test capacity is checked per traveler class."""
    capacity = Capacity(adults=2, children=2, infants=0)
    assert capacity.fits(Party(adults=2, children=1))
    assert not capacity.fits(Party(adults=3))
    assert not capacity.fits(Party(adults=1, infants=1))


def test_candidate_origin_is_immutable() -> None:
    """Test origin cannot be changed after construction."""
    candidate = _candidate("a")
    with pytest.raises(Exception):
        candidate.origin = Origin.GENERATED  # type: ignore


def test_trip_pace_profiles() -> None:
    """Test trip pace activity and hour budgets."""
    assert TripPace.RELAXED.typical_activities_per_day == 2
    assert TripPace.MODERATE.typical_activities_per_day == 3
    assert TripPace.ADVENTURE.typical_activities_per_day == 5
    assert TripPace.ADVENTURE.max_activity_hours_per_day == 10.0


# --- Vocabulary Tests ---


def test_split_location() -> None:
    """Test "City, State" parsing."""
    assert split_location("Moab, UT") == ("moab", "ut")
    assert split_location("Moab") == ("moab", "")
    assert location_key("  Idaho Springs , CO") == "idaho springs"


def test_activity_matches_synonyms() -> None:
    """Test activity matching by tag, synonym and alias."""
    assert activity_matches("Hiking", ["hiking"])
    assert activity_matches("hiking", ["Canyon Trail Trek"])
    assert activity_matches("rafting", ["Whitewater Adventure"])
    assert activity_matches("hot spring", ["Thermal Baths"])
    assert not activity_matches("skiing", ["Whitewater Adventure"])


# --- CriteriaNormalizer Tests ---


@pytest.fixture
def normalizer() -> CriteriaNormalizer:
    return CriteriaNormalizer()


def test_normalize_empty_request_is_unconstrained(normalizer: CriteriaNormalizer) -> None:
    """Test an empty request means "anything" rather than "nothing"."""
    criteria = normalizer.normalize(RawSearchRequest())

    assert criteria.locations == frozenset()
    assert criteria.activities == frozenset()
    assert criteria.lodging == frozenset()
    assert criteria.date_range is None
    assert criteria.party == Party(adults=1)
    assert criteria.trip_pace is None


def test_normalize_canonicalizes_fields(normalizer: CriteriaNormalizer) -> None:
    """Test tags are lower-cased and whitespace is collapsed."""
    criteria = normalizer.normalize(
        {
            "locations": ["  Moab,  UT ", ""],
            "activities": ["Hiking", " Hot   Springs "],
            "lodging": ["Cabin"],
            "transportation": "Rental Car",
            "trip_pace": "Adventure",
            "adults": 2,
            "children": 1,
            "arrival_datetime": "2026-06-01 12:00:00",
            "departure_datetime": "2026-06-04",
        }
    )

    assert criteria.locations == frozenset({"Moab, UT"})
    assert criteria.activities == frozenset({"hiking", "hot springs"})
    assert criteria.lodging == frozenset({"cabin"})
    assert criteria.transportation == "rental car"
    assert criteria.trip_pace is TripPace.ADVENTURE
    assert criteria.party == Party(adults=2, children=1)
    assert criteria.date_range == DateRange(arrival=date(2026, 6, 1), departure=date(2026, 6, 4))


def test_normalize_accepts_same_day_range(normalizer: CriteriaNormalizer) -> None:
    """Test an earlier time on the same day is a valid one-day trip."""
    criteria = normalizer.normalize(
        {
            "arrival_datetime": "2026-06-01 09:00:00",
            "departure_datetime": "2026-06-01 18:00:00",
        }
    )

    assert criteria.date_range == DateRange(arrival=date(2026, 6, 1), departure=date(2026, 6, 1))
    assert criteria.date_range.days == 1


@pytest.mark.parametrize(
    ("arrival", "departure"),
    [
        ("2026-06-01 10:00:00", "2026-06-01 10:00:00"),
        ("2026-06-01T18:00:00", "2026-06-01T09:00:00"),
        ("2026-06-04", "2026-06-01"),
    ],
)
def test_normalize_rejects_arrival_not_before_departure(
    normalizer: CriteriaNormalizer,
    arrival: str,
    departure: str,
) -> None:
    """Test equal or inverted datetimes are rejected."""
    with pytest.raises(ValidationError) as exc_info:
        normalizer.normalize({"arrival_datetime": arrival, "departure_datetime": departure})
    assert exc_info.value.field == "date_range"


@pytest.mark.parametrize(
    ("raw", "field"),
    [
        ({"adults": 0}, "party"),
        ({"adults": 0, "children": 2}, "party.adults"),
        ({"children": -1}, "party.children"),
        ({"infants": -1}, "party.infants"),
        ({"arrival_datetime": "2026-06-01"}, "date_range.departure"),
        ({"departure_datetime": "2026-06-01"}, "date_range.arrival"),
        ({"arrival_datetime": "June 1st", "departure_datetime": "2026-06-04"}, "date_range.arrival"),
        ({"trip_pace": "leisurely"}, "trip_pace"),
        ({"adults": "many"}, "adults"),
    ],
)
def test_normalize_names_offending_field(
    normalizer: CriteriaNormalizer,
    raw: dict[str, Any],
    field: str,
) -> None:
    """Test every validation failure names its field."""
    with pytest.raises(ValidationError) as exc_info:
        normalizer.normalize(raw)
    assert exc_info.value.field == field
    assert exc_info.value.to_dict()["details"] == {"field": field}


# --- ResultMerger Tests ---


def test_merge_prefers_index_copy_on_duplicate_id() -> None:
    """Test the index copy and its score win over the store copy."""
    indexed = [_candidate("a", score=0.95, origin=Origin.INDEXED)]
    stored = [
        _candidate("a", score=0.6, origin=Origin.STORED),
        _candidate("b", score=0.6, origin=Origin.STORED),
    ]

    merged = ResultMerger().merge(indexed, stored)

    assert [c.id for c in merged] == ["a", "b"]
    assert merged[0].origin == Origin.INDEXED
    assert merged[0].score == 0.95


def test_merge_orders_by_score_price_then_id() -> None:
    """Test deterministic ordering with ties."""
    candidates = [
        _candidate("d", score=0.5, price=200),
        _candidate("c", score=0.5, price=100),
        _candidate("b", score=0.5, price=100),
        _candidate("a", score=0.9, price=900),
    ]

    merged = ResultMerger().merge(candidates)

    assert [c.id for c in merged] == ["a", "b", "c", "d"]
    assert merged == sorted(merged, key=ranking_key)


def test_merge_keeps_zero_scores_and_copies() -> None:
    """Test nothing is dropped by score and inputs are not mutated."""
    original = _candidate("z", score=0.0)
    merged = ResultMerger().merge([original])

    assert [c.id for c in merged] == ["z"]
    merged[0].score = 0.7
    assert original.score == 0.0


def test_append_generated_ranks_after_real_results() -> None:
    """Test generated candidates follow real ones and skip taken ids."""
    merger = ResultMerger()
    ranked = merger.merge([_candidate("real", score=0.05, price=900)])
    generated = [
        _candidate("gen-1", score=0.1, price=10, origin=Origin.GENERATED),
        _candidate("real", score=0.1, price=10, origin=Origin.GENERATED),
    ]

    result = merger.append_generated(ranked, generated)

    assert [c.id for c in result] == ["real", "gen-1"]
    assert result[1].origin == Origin.GENERATED
    assert result[1].score == result[0].score == 0.05


def test_append_generated_onto_empty_list() -> None:
    """Test generated candidates keep their score with nothing to rank after."""
    result = ResultMerger().append_generated(
        [],
        [_candidate("gen-1", score=0.1, origin=Origin.GENERATED)],
    )
    assert [c.score for c in result] == [0.1]


def test_append_generated_follows_zero_scored_real_results() -> None:
    """Test a real candidate scored 0.0 still ranks above generated ones."""
    merger = ResultMerger()
    ranked = merger.merge(
        [_candidate("i1", score=1.0, price=500), _candidate("i2", score=0.0, price=900)]
    )
    generated = [
        _candidate("g2", score=0.1, price=80, origin=Origin.GENERATED),
        _candidate("g1", score=0.1, price=40, origin=Origin.GENERATED),
    ]

    result = merger.append_generated(ranked, generated)

    assert [c.id for c in result] == ["i1", "i2", "g1", "g2"]
    assert [c.score for c in result] == [1.0, 0.0, 0.0, 0.0]
    assert generated[0].score == 0.1


# --- StoreFallbackQuerier Tests ---


@pytest.fixture
def mock_store() -> AsyncMock:
    """Create a mock itinerary store."""
    mock = AsyncMock()
    mock.find_itineraries.return_value = [
        _row("moab-hike"),
        _row("moab-ski", activities=["skiing"]),
        _row("denver-hike", locations=["Denver, CO"]),
        _row("moab-small", capacity_adults=1),
    ]
    return mock


async def test_fallback_scores_by_matched_dimensions(mock_store: AsyncMock) -> None:
    """Test base score grows with each matched dimension."""
    criteria = SearchCriteria(
        locations=frozenset({"Moab, UT"}),
        activities=frozenset({"hiking"}),
        party=Party(adults=2),
    )

    results = await StoreFallbackQuerier(mock_store).query(criteria)

    assert [c.id for c in results] == ["moab-hike"]
    assert results[0].origin == Origin.STORED
    assert results[0].score == pytest.approx(0.7)


async def test_fallback_unconstrained_gets_base_score(mock_store: AsyncMock) -> None:
    """Test only capacity filters an unconstrained query."""
    results = await StoreFallbackQuerier(mock_store).query(SearchCriteria(party=Party(adults=2)))

    assert {c.id for c in results} == {"moab-hike", "moab-ski", "denver-hike"}
    assert all(c.score == pytest.approx(0.5) for c in results)


async def test_fallback_score_is_capped(mock_store: AsyncMock) -> None:
    """Test a result matching every dimension stays below strong index matches."""
    criteria = SearchCriteria(
        locations=frozenset({"Moab, UT"}),
        activities=frozenset({"hiking"}),
        lodging=frozenset({"cabin"}),
        transportation="rental car",
        date_range=DateRange(arrival=date(2026, 6, 1), departure=date(2026, 6, 4)),
    )

    results = await StoreFallbackQuerier(mock_store).query(criteria)

    assert results[0].id == "moab-hike"
    assert results[0].score == pytest.approx(0.9)


async def test_fallback_transportation_never_excludes(mock_store: AsyncMock) -> None:
    """Test an unmatched transportation preference only withholds the bonus."""
    criteria = SearchCriteria(locations=frozenset({"Moab"}), transportation="shuttle")

    results = await StoreFallbackQuerier(mock_store).query(criteria)

    assert {c.id for c in results} == {"moab-hike", "moab-ski", "moab-small"}
    assert all(c.score == pytest.approx(0.6) for c in results)


async def test_fallback_passes_party_and_dates(mock_store: AsyncMock) -> None:
    """Test the store receives capacity and window constraints."""
    criteria = SearchCriteria(
        party=Party(adults=2, children=1),
        date_range=DateRange(arrival=date(2026, 6, 1), departure=date(2026, 6, 4)),
    )

    await StoreFallbackQuerier(mock_store).query(criteria)

    mock_store.find_itineraries.assert_awaited_once_with(
        adults=2,
        children=1,
        infants=0,
        arrival=date(2026, 6, 1),
        departure=date(2026, 6, 4),
    )


async def test_fallback_rejects_outside_window(mock_store: AsyncMock) -> None:
    """Test availability windows are enforced."""
    criteria = SearchCriteria(
        date_range=DateRange(arrival=date(2026, 12, 1), departure=date(2026, 12, 4)),
    )
    assert await StoreFallbackQuerier(mock_store).query(criteria) == []


async def test_fallback_propagates_store_error(mock_store: AsyncMock) -> None:
    """Test store failures are left to the orchestrator."""
    mock_store.find_itineraries.side_effect = StoreError("database is locked")

    with pytest.raises(StoreError):
        await StoreFallbackQuerier(mock_store).query(SearchCriteria())


def test_candidate_from_row_without_capacity() -> None:
    """Test rows without capacity produce an unconstrained candidate."""
    candidate = candidate_from_row(
        {"id": 7, "title": "Open trip", "price": None},
        Origin.INDEXED,
        score=0.4,
    )
    assert candidate.id == "7"
    assert candidate.capacity is None
    assert candidate.price == 0.0
    assert candidate.score == 0.4


# --- MatchScorer Tests ---


def test_scorer_exact_match_scores_full_marks() -> None:
    """Test a candidate matching every dimension scores 100."""
    criteria = SearchCriteria(
        locations=frozenset({"Moab, UT"}),
        activities=frozenset({"hiking", "rafting"}),
        lodging=frozenset({"cabin"}),
        transportation="rental car",
        trip_pace=TripPace.RELAXED,
        party=Party(adults=2),
    )
    candidate = _candidate(
        "a",
        locations=["Moab, UT"],
        activities=["hiking", "whitewater rafting"],
        lodging=["Cabin"],
        transportation="Rental Car",
        duration_days=1,
        capacity=Capacity(adults=4),
    )

    [scored] = MatchScorer().annotate([candidate], criteria)

    assert scored.match_score == 100
    assert scored.score_breakdown is not None
    assert scored.score_breakdown.location_score == 100.0
    assert scored.score_breakdown.trip_pace_score == 100.0


def test_scorer_partial_dimensions() -> None:
    """Test partial location, group size and lodging credit."""
    criteria = SearchCriteria(
        locations=frozenset({"Moab, UT"}),
        lodging=frozenset({"hotel"}),
        party=Party(adults=3),
    )
    candidate = _candidate(
        "a",
        locations=["Moab, CO"],
        lodging=["cabin"],
        capacity=Capacity(adults=2),
    )

    breakdown = MatchScorer().breakdown(candidate, criteria)

    assert breakdown.location_score == 70.0
    assert breakdown.group_size_score == 70.0
    assert breakdown.lodging_score == 60.0
    assert breakdown.activity_score == 0.0
    assert breakdown.trip_pace_score == 50.0


def test_scorer_never_reorders() -> None:
    """Test annotation keeps the ranking order."""
    criteria = SearchCriteria(locations=frozenset({"Moab, UT"}))
    candidates = [
        _candidate("first", locations=["Denver, CO"]),
        _candidate("second", locations=["Moab, UT"]),
    ]

    scored = MatchScorer().annotate(candidates, criteria)

    assert [c.id for c in scored] == ["first", "second"]
    assert scored[1].match_score > scored[0].match_score


def test_scorer_zero_weights() -> None:
    """Test all-zero weights produce a zero match score."""
    weights = ScoreWeights(
        location=0, activity=0, group_size=0, lodging=0, transportation=0, trip_pace=0
    )
    [scored] = MatchScorer(weights).annotate([_candidate("a")], SearchCriteria())
    assert scored.match_score == 0
