"""
Criteria Normalizer - Validate raw search input into SearchCriteria.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from tripscout.config.errors import ValidationError

from .models import DateRange, Party, RawSearchRequest, SearchCriteria, TripPace
from .vocabulary import canonical_tag

__all__ = ["CriteriaNormalizer"]

_DATE_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d")


class CriteriaNormalizer:
    """Turns a possibly partial request into canonical SearchCriteria."""

    def normalize(self, raw: RawSearchRequest | dict[str, Any]) -> SearchCriteria:
        """
        Validate and canonicalize a raw request.

        Raises:
            ValidationError: naming the offending field
        """
        request = self._coerce(raw)

        party = self._party(request)
        date_range = self._date_range(request)

        trip_pace = None
        if request.trip_pace:
            try:
                trip_pace = TripPace(canonical_tag(request.trip_pace))
            except ValueError:
                raise ValidationError(
                    "trip_pace",
                    f"unknown pace {request.trip_pace!r}",
                ) from None

        transportation = canonical_tag(request.transportation or "") or None

        return SearchCriteria(
            locations=_names(request.locations),
            date_range=date_range,
            party=party,
            activities=_tags(request.activities),
            lodging=_tags(request.lodging),
            transportation=transportation,
            trip_pace=trip_pace,
        )

    @staticmethod
    def _coerce(raw: RawSearchRequest | dict[str, Any]) -> RawSearchRequest:
        if isinstance(raw, RawSearchRequest):
            return raw
        try:
            return RawSearchRequest.model_validate(raw)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or "request"
            raise ValidationError(field, first["msg"]) from None

    @staticmethod
    def _party(request: RawSearchRequest) -> Party:
        adults = 1 if request.adults is None else request.adults
        children = request.children or 0
        infants = request.infants or 0

        if children < 0:
            raise ValidationError("party.children", "must not be negative")
        if infants < 0:
            raise ValidationError("party.infants", "must not be negative")
        if adults + children + infants <= 0:
            raise ValidationError("party", "party must include at least one traveler")
        if adults < 1:
            raise ValidationError("party.adults", "at least one adult is required")

        return Party(adults=adults, children=children, infants=infants)

    @staticmethod
    def _date_range(request: RawSearchRequest) -> DateRange | None:
        if request.arrival_datetime is None and request.departure_datetime is None:
            return None
        if request.arrival_datetime is None:
            raise ValidationError("date_range.arrival", "required when departure is given")
        if request.departure_datetime is None:
            raise ValidationError("date_range.departure", "required when arrival is given")

        arrival = _parse_datetime(request.arrival_datetime, "date_range.arrival")
        departure = _parse_datetime(request.departure_datetime, "date_range.departure")
        if arrival >= departure:
            raise ValidationError("date_range", "arrival must be before departure")

        return DateRange(arrival=arrival.date(), departure=departure.date())


def _parse_datetime(value: str, field: str) -> datetime:
    text = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValidationError(field, f"unrecognised date {value!r}")


def _tags(values: list[str] | None) -> frozenset[str]:
    return frozenset(t for t in (canonical_tag(v) for v in values or []) if t)


def _names(values: list[str] | None) -> frozenset[str]:
    return frozenset(n for n in (" ".join(v.split()) for v in values or []) if n)
