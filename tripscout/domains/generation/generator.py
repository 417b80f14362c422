"""
Itinerary Generator - Synthesize itineraries from catalog primitives.

Used when real matches fall short. Each generated itinerary pairs one
location, one to three activities, one lodging option and a
transportation choice, all consistent with the criteria and the party.
Activities and lodging always share the location, including when the
criteria leave the location open. Output is fully determined by the
criteria and the catalog snapshot.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterator
from itertools import combinations

from tripscout.config.errors import GenerationExhausted
from tripscout.domains.search.models import DayItem, ItineraryCandidate, Origin, SearchCriteria
from tripscout.domains.search.vocabulary import activity_matches, canonical_tag, location_key

from .models import (
    CatalogActivity,
    CatalogLocation,
    CatalogLodging,
    CatalogSnapshot,
    CatalogTransportation,
)

logger = logging.getLogger(__name__)

__all__ = ["GENERATED_SCORE", "ItineraryGenerator"]

GENERATED_SCORE = 0.1
MAX_ACTIVITIES = 3

ARRIVAL_TIME = "09:00:00"
FIRST_ACTIVITY_HOUR = 10
ACTIVITY_SPACING_HOURS = 2
DEPARTURE_TIME = "17:00:00"


class ItineraryGenerator:
    """
    Deterministic combinatorial itinerary builder.

    Example:
        >>> generator = ItineraryGenerator(default_trip_days=3)
        >>> extra = generator.generate(criteria, needed_count=2, catalog=snapshot)
    """

    def __init__(self, default_trip_days: int = 3) -> None:
        """
        Initialize generator.

        Args:
            default_trip_days: Trip length used when criteria carry no dates
        """
        self._default_trip_days = max(default_trip_days, 1)

    def generate(
        self,
        criteria: SearchCriteria,
        needed_count: int,
        catalog: CatalogSnapshot,
        exclude_ids: set[str] | None = None,
    ) -> list[ItineraryCandidate]:
        """
        Generate up to ``needed_count`` candidates.

        Args:
            criteria: Canonical search criteria
            needed_count: How many candidates are wanted
            catalog: Catalog snapshot for this request
            exclude_ids: Ids already present in the response

        Returns:
            Generated candidates (possibly fewer than requested)

        Raises:
            GenerationExhausted: not a single combination satisfies the criteria
        """
        if needed_count <= 0:
            return []

        taken = set(exclude_ids or ())
        generated: list[ItineraryCandidate] = []

        for location, group, lodging, transport in self._combinations(criteria, catalog):
            candidate = self._build(criteria, location, group, lodging, transport)
            if candidate.id in taken:
                continue
            taken.add(candidate.id)
            generated.append(candidate)
            if len(generated) >= needed_count:
                break

        if not generated:
            raise GenerationExhausted(
                "Catalog has no combination matching the criteria",
                {
                    "activities": sorted(criteria.activities),
                    "lodging": sorted(criteria.lodging),
                    "locations": sorted(criteria.locations),
                },
            )

        logger.info("Generated %d/%d itineraries", len(generated), needed_count)
        return generated

    def _combinations(
        self,
        criteria: SearchCriteria,
        catalog: CatalogSnapshot,
    ) -> Iterator[
        tuple[
            CatalogLocation,
            tuple[CatalogActivity, ...],
            CatalogLodging,
            CatalogTransportation | None,
        ]
    ]:
        """Yield (location, activities, lodging, transport) in a fixed order."""
        transports = self._transport_options(criteria, catalog)
        if not transports:
            return

        cap = MAX_ACTIVITIES
        if criteria.trip_pace is not None:
            cap = min(cap, criteria.trip_pace.typical_activities_per_day)

        for location in self._locations(criteria, catalog):
            pool = self._activity_pool(criteria, catalog, location)
            lodgings = self._lodging_options(criteria, catalog, location)
            if not pool or not lodgings:
                continue

            for lodging in lodgings:
                for transport in transports:
                    for group in _activity_groups(pool, cap, criteria):
                        yield location, group, lodging, transport

    @staticmethod
    def _locations(
        criteria: SearchCriteria,
        catalog: CatalogSnapshot,
    ) -> list[CatalogLocation]:
        """
        Requested locations, or every place the catalog stocks.

        With no requested location, each distinct activity or lodging city
        is a candidate location, ordered by city. Cities missing from the
        location catalog are named from the first item found there.
        """
        known = sorted(catalog.locations, key=_location_order)
        if criteria.locations:
            wanted = {location_key(name) for name in criteria.locations}
            return [loc for loc in known if location_key(loc.city) in wanted]

        by_key: dict[str, CatalogLocation] = {}
        for loc in known:
            by_key.setdefault(location_key(loc.city), loc)

        places: dict[str, CatalogLocation] = {}
        for item in sorted([*catalog.activities, *catalog.lodging], key=lambda item: item.id):
            key = location_key(item.location)
            if not key or key in places:
                continue
            if key in by_key:
                places[key] = by_key[key]
            else:
                city, _, state = item.location.partition(",")
                places[key] = CatalogLocation(id=key, city=city.strip(), state=state.strip())

        return [places[key] for key in sorted(places)]

    @staticmethod
    def _activity_pool(
        criteria: SearchCriteria,
        catalog: CatalogSnapshot,
        location: CatalogLocation,
    ) -> list[CatalogActivity]:
        headcount = criteria.party.total
        pool = []
        for activity in catalog.activities:
            if location_key(activity.location) != location_key(location.city):
                continue
            if not activity.min_group <= headcount <= activity.max_group:
                continue
            if criteria.activities and not _covered(activity, criteria):
                continue
            pool.append(activity)

        return sorted(
            pool,
            key=lambda a: (-len(_covered(a, criteria)), a.price_per_person, a.id),
        )

    @staticmethod
    def _lodging_options(
        criteria: SearchCriteria,
        catalog: CatalogSnapshot,
        location: CatalogLocation,
    ) -> list[CatalogLodging]:
        options = []
        for lodging in catalog.lodging:
            if location_key(lodging.location) != location_key(location.city):
                continue
            if not lodging.capacity.fits(criteria.party):
                continue
            if criteria.lodging and not criteria.lodging & {canonical_tag(t) for t in lodging.tags}:
                continue
            options.append(lodging)
        return sorted(options, key=lambda item: (item.price_per_night, item.id))

    @staticmethod
    def _transport_options(
        criteria: SearchCriteria,
        catalog: CatalogSnapshot,
    ) -> list[CatalogTransportation | None]:
        options = sorted(catalog.transportation, key=lambda t: (t.price, t.id))
        if criteria.transportation:
            return [
                t
                for t in options
                if canonical_tag(t.tag) == criteria.transportation
                or criteria.transportation in canonical_tag(t.name)
            ]
        return [*options] or [None]

    def _build(
        self,
        criteria: SearchCriteria,
        location: CatalogLocation,
        group: tuple[CatalogActivity, ...],
        lodging: CatalogLodging,
        transport: CatalogTransportation | None,
    ) -> ItineraryCandidate:
        if criteria.date_range is not None:
            days = criteria.date_range.days
        else:
            days = self._default_trip_days

        price = (
            sum(a.price_per_person for a in group)
            + lodging.price_per_night * days
            + (transport.price if transport else 0.0)
        )

        tags: list[str] = []
        for activity in group:
            for tag in activity.tags or [activity.label]:
                tag = canonical_tag(tag)
                if tag not in tags:
                    tags.append(tag)

        media: list[str] = []
        for ref in [*(r for a in group for r in a.media_refs), *lodging.media_refs]:
            if ref not in media:
                media.append(ref)

        labels = " & ".join(a.label for a in group)

        key = "|".join(
            [
                location.id,
                *sorted(a.id for a in group),
                lodging.id,
                transport.id if transport else "-",
                str(days),
            ]
        )

        return ItineraryCandidate(
            id="gen-" + hashlib.sha256(key.encode()).hexdigest()[:12],
            title=f"{labels} in {location.city}",
            locations=[location.name],
            activities=tags,
            lodging=sorted({canonical_tag(t) for t in lodging.tags}),
            transportation=transport.tag if transport else None,
            price=round(price, 2),
            duration_days=days,
            media_refs=media,
            capacity=lodging.capacity,
            available_from=criteria.date_range.arrival if criteria.date_range else None,
            available_to=criteria.date_range.departure if criteria.date_range else None,
            origin=Origin.GENERATED,
            score=GENERATED_SCORE,
            days=_daily_schedule(group, days, location.name),
        )


def _covered(activity: CatalogActivity, criteria: SearchCriteria) -> set[str]:
    """Requested activity tags this catalog activity satisfies."""
    texts = [activity.label, *activity.tags]
    return {wanted for wanted in criteria.activities if activity_matches(wanted, texts)}


def _activity_groups(
    pool: list[CatalogActivity],
    cap: int,
    criteria: SearchCriteria,
) -> Iterator[tuple[CatalogActivity, ...]]:
    """Largest groups first; with requested tags, only groups covering all reachable ones."""
    reachable: set[str] = set()
    for activity in pool:
        reachable |= _covered(activity, criteria)

    for size in range(min(cap, len(pool)), 0, -1):
        for group in combinations(pool, size):
            if reachable:
                covered: set[str] = set()
                for activity in group:
                    covered |= _covered(activity, criteria)
                if len(covered) < min(len(reachable), size):
                    continue
            yield group


def _daily_schedule(
    group: tuple[CatalogActivity, ...],
    days: int,
    place: str,
) -> dict[str, list[DayItem]]:
    """
    Spread activities over the trip, one per day in turn.

    Day 1 opens with arrival at 09:00 and the last day closes with
    departure at 17:00. Activities start at 10:00, two hours apart. A
    group never holds more activities than the pace allows per day, so
    no day overflows.
    """
    plan: dict[str, list[DayItem]] = {f"day{n}": [] for n in range(1, days + 1)}
    plan["day1"].append(
        DayItem(kind="transportation", time=ARRIVAL_TIME, name="Arrival and Check-in", location=place)
    )

    for i, activity in enumerate(group):
        slot, day = divmod(i, days)
        hour = FIRST_ACTIVITY_HOUR + ACTIVITY_SPACING_HOURS * slot
        plan[f"day{day + 1}"].append(
            DayItem(
                kind="activity",
                time=f"{hour:02d}:00:00",
                name=activity.label,
                activity_id=activity.id,
                location=activity.location,
            )
        )

    plan[f"day{days}"].append(
        DayItem(kind="transportation", time=DEPARTURE_TIME, name="Check-out and Departure", location=place)
    )
    return plan


def _location_order(location: CatalogLocation) -> tuple[str, str, str]:
    return (location.city.lower(), location.state.lower(), location.id)
