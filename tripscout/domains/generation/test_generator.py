"""
Tests for the itinerary generator.
"""

from __future__ import annotations

from datetime import date

import pytest

from tripscout.config.errors import GenerationExhausted
from tripscout.domains.search.models import (
    Capacity,
    DateRange,
    DayItem,
    Origin,
    Party,
    SearchCriteria,
    TripPace,
)

from .generator import GENERATED_SCORE, ItineraryGenerator
from .models import (
    CatalogActivity,
    CatalogLocation,
    CatalogLodging,
    CatalogSnapshot,
    CatalogTransportation,
)


@pytest.fixture
def catalog() -> CatalogSnapshot:
    """Small catalog around Moab and Denver."""
    return CatalogSnapshot(
        locations=[
            CatalogLocation(id="moab", city="Moab", state="UT"),
            CatalogLocation(id="denver", city="Denver", state="CO"),
        ],
        activities=[
            CatalogActivity(
                id="a-hike",
                label="Canyon Hike",
                tags=["hiking"],
                location="Moab, UT",
                price_per_person=40.0,
                media_refs=["img/hike.jpg"],
            ),
            CatalogActivity(
                id="a-raft",
                label="Colorado River Rafting",
                tags=["rafting"],
                location="Moab, UT",
                price_per_person=90.0,
            ),
            CatalogActivity(
                id="a-arch",
                label="Arches Trail Walk",
                tags=["hiking", "sightseeing"],
                location="Moab, UT",
                price_per_person=25.0,
            ),
            CatalogActivity(
                id="a-jeep",
                label="Jeep Safari",
                tags=["atv"],
                location="Moab, UT",
                price_per_person=70.0,
                min_group=4,
            ),
            CatalogActivity(
                id="a-ski",
                label="Powder Day",
                tags=["skiing"],
                location="Denver, CO",
                price_per_person=120.0,
            ),
        ],
        lodging=[
            CatalogLodging(
                id="l-cabin",
                name="Red Rock Cabin",
                tags=["Cabin"],
                location="Moab, UT",
                price_per_night=150.0,
                capacity=Capacity(adults=4, children=2, infants=1),
                media_refs=["img/cabin.jpg"],
            ),
            CatalogLodging(
                id="l-hotel",
                name="Moab Hotel",
                tags=["hotel"],
                location="Moab, UT",
                price_per_night=120.0,
                capacity=Capacity(adults=2),
            ),
            CatalogLodging(
                id="l-lodge",
                name="Ski Lodge",
                tags=["lodge"],
                location="Denver, CO",
                price_per_night=200.0,
                capacity=Capacity(adults=6, children=4, infants=2),
            ),
        ],
        transportation=[
            CatalogTransportation(id="t-car", name="Rental Car", tag="rental car", price=60.0),
            CatalogTransportation(id="t-shuttle", name="Park Shuttle", tag="shuttle", price=20.0),
        ],
    )


@pytest.fixture
def generator() -> ItineraryGenerator:
    return ItineraryGenerator(default_trip_days=3)


def _moab_criteria(**overrides: object) -> SearchCriteria:
    fields: dict[str, object] = {
        "locations": frozenset({"Moab, UT"}),
        "activities": frozenset({"hiking", "rafting"}),
        "lodging": frozenset({"cabin"}),
        "transportation": "rental car",
        "date_range": DateRange(arrival=date(2026, 6, 1), departure=date(2026, 6, 4)),
        "party": Party(adults=2),
    }
    fields.update(overrides)
    return SearchCriteria(**fields)  # type: ignore[arg-type]


# --- Generation Tests ---


def test_generate_flexible_location(
    generator: ItineraryGenerator,
    catalog: CatalogSnapshot,
) -> None:
    """Test an unconstrained location picks a real catalog city."""
    criteria = SearchCriteria(activities=frozenset({"hiking"}), party=Party(adults=2))

    [candidate] = generator.generate(criteria, needed_count=1, catalog=catalog)

    assert candidate.origin == Origin.GENERATED
    assert candidate.score == GENERATED_SCORE
    assert candidate.id.startswith("gen-")
    assert len(candidate.id) == len("gen-") + 12
    assert candidate.locations == ["Moab, UT"]
    assert candidate.title == "Arches Trail Walk & Canyon Hike in Moab"
    assert "hiking" in candidate.activities
    assert candidate.duration_days == 3
    # 25 + 40 activities, 3 nights at 120, shuttle 20
    assert candidate.price == 445.0


def test_generate_flexible_keeps_each_trip_in_one_city(
    generator: ItineraryGenerator,
    catalog: CatalogSnapshot,
) -> None:
    """Test activities and lodging always share a city when none is requested."""
    results = generator.generate(SearchCriteria(party=Party(adults=2)), needed_count=20, catalog=catalog)

    assert {c.locations[0] for c in results} == {"Denver, CO", "Moab, UT"}
    # Cities come out in a fixed order
    assert results[0].locations == ["Denver, CO"]
    for candidate in results:
        place = candidate.locations[0]
        activity_places = {
            item.location for items in candidate.days.values() for item in items if item.kind == "activity"
        }
        assert activity_places == {place}
        if place == "Denver, CO":
            assert candidate.lodging == ["lodge"]
        else:
            assert candidate.lodging in (["cabin"], ["hotel"])


def test_generate_flexible_never_pairs_distant_lodging(generator: ItineraryGenerator) -> None:
    """Test an activity in one city is never paired with lodging in another."""
    catalog = CatalogSnapshot(
        activities=[
            CatalogActivity(id="a-hike", label="Canyon Hike", tags=["hiking"], location="Moab, UT"),
        ],
        lodging=[
            CatalogLodging(id="l-beach", name="Beach Hotel", tags=["hotel"], location="Miami, FL"),
        ],
    )

    with pytest.raises(GenerationExhausted):
        generator.generate(SearchCriteria(), needed_count=1, catalog=catalog)


def test_generate_flexible_names_uncatalogued_city(generator: ItineraryGenerator) -> None:
    """Test a city missing from the location catalog is named from its items."""
    catalog = CatalogSnapshot(
        activities=[
            CatalogActivity(id="a-boat", label="Bay Cruise", tags=["boating"], location="Miami, FL"),
        ],
        lodging=[
            CatalogLodging(id="l-beach", name="Beach Hotel", tags=["hotel"], location="Miami,  FL"),
        ],
    )

    [candidate] = generator.generate(SearchCriteria(), needed_count=1, catalog=catalog)

    assert candidate.locations == ["Miami, FL"]
    assert candidate.title == "Bay Cruise in Miami"


# --- Day Plan Tests ---


def test_generate_day_plan(generator: ItineraryGenerator, catalog: CatalogSnapshot) -> None:
    """Test activities are spread one per day between arrival and departure."""
    [candidate] = generator.generate(_moab_criteria(), needed_count=1, catalog=catalog)

    plan = {
        day: [(item.time, item.activity_id or item.name) for item in items]
        for day, items in candidate.days.items()
    }
    assert plan == {
        "day1": [("09:00:00", "Arrival and Check-in"), ("10:00:00", "a-arch")],
        "day2": [("10:00:00", "a-hike")],
        "day3": [("10:00:00", "a-raft"), ("17:00:00", "Check-out and Departure")],
    }
    assert candidate.days["day1"][0] == DayItem(
        kind="transportation",
        time="09:00:00",
        name="Arrival and Check-in",
        location="Moab, UT",
    )
    assert candidate.days["day2"][0].name == "Canyon Hike"


def test_generate_same_day_plan(generator: ItineraryGenerator, catalog: CatalogSnapshot) -> None:
    """Test a same-day trip packs activities two hours apart on one day."""
    criteria = _moab_criteria(
        date_range=DateRange(arrival=date(2026, 6, 1), departure=date(2026, 6, 1)),
        trip_pace=TripPace.RELAXED,
    )

    [candidate] = generator.generate(criteria, needed_count=1, catalog=catalog)

    assert candidate.duration_days == 1
    assert [(item.time, item.activity_id or item.name) for item in candidate.days["day1"]] == [
        ("09:00:00", "Arrival and Check-in"),
        ("10:00:00", "a-arch"),
        ("12:00:00", "a-raft"),
        ("17:00:00", "Check-out and Departure"),
    ]
    assert list(candidate.days) == ["day1"]
    # 25 + 90 activities, 1 night at 150, rental car 60
    assert candidate.price == 325.0


def test_generate_matches_all_criteria(
    generator: ItineraryGenerator,
    catalog: CatalogSnapshot,
) -> None:
    """Test location, lodging, transport and dates flow into the candidate."""
    [candidate] = generator.generate(_moab_criteria(), needed_count=1, catalog=catalog)

    assert candidate.title == "Arches Trail Walk & Canyon Hike & Colorado River Rafting in Moab"
    assert candidate.locations == ["Moab, UT"]
    assert candidate.lodging == ["cabin"]
    assert candidate.transportation == "rental car"
    assert candidate.capacity == Capacity(adults=4, children=2, infants=1)
    assert candidate.available_from == date(2026, 6, 1)
    assert candidate.available_to == date(2026, 6, 4)
    assert candidate.media_refs == ["img/hike.jpg", "img/cabin.jpg"]
    assert candidate.price == 25 + 40 + 90 + 150 * 3 + 60


def test_generate_multiple_distinct(
    generator: ItineraryGenerator,
    catalog: CatalogSnapshot,
) -> None:
    """Test requested count is honored with unique ids."""
    results = generator.generate(_moab_criteria(), needed_count=3, catalog=catalog)

    assert len(results) == 3
    assert len({c.id for c in results}) == 3
    # Every generated itinerary still covers both requested activities
    for candidate in results:
        assert {"hiking", "rafting"} <= set(candidate.activities)


def test_generate_is_deterministic(
    generator: ItineraryGenerator,
    catalog: CatalogSnapshot,
) -> None:
    """Test identical inputs give identical output."""
    first = generator.generate(_moab_criteria(), needed_count=4, catalog=catalog)
    second = ItineraryGenerator(default_trip_days=3).generate(
        _moab_criteria(), needed_count=4, catalog=catalog
    )
    assert first == second


def test_generate_respects_trip_pace(
    generator: ItineraryGenerator,
    catalog: CatalogSnapshot,
) -> None:
    """Test relaxed pace caps activities at two."""
    results = generator.generate(
        _moab_criteria(trip_pace=TripPace.RELAXED),
        needed_count=5,
        catalog=catalog,
    )

    assert results
    assert all(c.title.count(" & ") <= 1 for c in results)


def test_generate_respects_group_size(
    generator: ItineraryGenerator,
    catalog: CatalogSnapshot,
) -> None:
    """Test activities outside the group range are never picked."""
    criteria = SearchCriteria(locations=frozenset({"Moab"}), party=Party(adults=2))

    results = generator.generate(criteria, needed_count=20, catalog=catalog)

    assert results
    assert all("Jeep Safari" not in c.title for c in results)
    assert all(c.capacity is not None and c.capacity.fits(criteria.party) for c in results)


def test_generate_excludes_ids(
    generator: ItineraryGenerator,
    catalog: CatalogSnapshot,
) -> None:
    """Test ids already present are skipped."""
    [first] = generator.generate(_moab_criteria(), needed_count=1, catalog=catalog)
    [second] = generator.generate(
        _moab_criteria(), needed_count=1, catalog=catalog, exclude_ids={first.id}
    )
    assert second.id != first.id


def test_generate_returns_fewer_when_catalog_is_small(
    generator: ItineraryGenerator,
    catalog: CatalogSnapshot,
) -> None:
    """Test a short list is returned rather than an error."""
    criteria = SearchCriteria(
        locations=frozenset({"Denver, CO"}),
        transportation="shuttle",
        party=Party(adults=2),
    )
    results = generator.generate(criteria, needed_count=5, catalog=catalog)
    assert [c.title for c in results] == ["Powder Day in Denver"]


def test_generate_without_transportation_catalog(
    generator: ItineraryGenerator,
    catalog: CatalogSnapshot,
) -> None:
    """Test an empty transport catalog still yields itineraries."""
    bare = catalog.model_copy(update={"transportation": []})
    criteria = SearchCriteria(locations=frozenset({"Denver"}))

    [candidate] = generator.generate(criteria, needed_count=1, catalog=bare)

    assert candidate.transportation is None
    assert candidate.price == 120.0 + 200.0 * 3


def test_generate_zero_needed(generator: ItineraryGenerator, catalog: CatalogSnapshot) -> None:
    """Test nothing is generated when nothing is needed."""
    assert generator.generate(SearchCriteria(), needed_count=0, catalog=catalog) == []


@pytest.mark.parametrize(
    "criteria",
    [
        SearchCriteria(activities=frozenset({"scuba"})),
        SearchCriteria(locations=frozenset({"Paris"})),
        SearchCriteria(transportation="helicopter"),
        SearchCriteria(party=Party(adults=10)),
        SearchCriteria(lodging=frozenset({"castle"})),
    ],
)
def test_generate_exhausted(
    generator: ItineraryGenerator,
    catalog: CatalogSnapshot,
    criteria: SearchCriteria,
) -> None:
    """Test unsatisfiable criteria raise GenerationExhausted."""
    with pytest.raises(GenerationExhausted):
        generator.generate(criteria, needed_count=1, catalog=catalog)


def test_generate_empty_catalog(generator: ItineraryGenerator) -> None:
    """Test an empty catalog cannot produce anything."""
    with pytest.raises(GenerationExhausted):
        generator.generate(SearchCriteria(), needed_count=3, catalog=CatalogSnapshot())
