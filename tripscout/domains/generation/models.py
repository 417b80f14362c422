"""
Generation Models - Catalog building blocks for synthesized itineraries.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from tripscout.domains.search.models import Capacity


class CatalogLocation(BaseModel):
    """A destination city."""

    id: str
    city: str
    state: str = ""
    coordinates: tuple[float, float] | None = None

    @property
    def name(self) -> str:
        return f"{self.city}, {self.state}" if self.state else self.city


class CatalogActivity(BaseModel):
    """A bookable activity at a location."""

    id: str
    label: str
    tags: list[str] = Field(default_factory=list)
    location: str
    price_per_person: float = 0.0
    duration_hours: float = 2.0
    min_group: int = 1
    max_group: int = 99
    media_refs: list[str] = Field(default_factory=list)


class CatalogLodging(BaseModel):
    """A place to stay at a location."""

    id: str
    name: str
    tags: list[str] = Field(default_factory=list)
    location: str
    price_per_night: float = 0.0
    capacity: Capacity = Field(default_factory=Capacity)
    media_refs: list[str] = Field(default_factory=list)


class CatalogTransportation(BaseModel):
    """A way of getting around, not tied to a location."""

    id: str
    name: str
    tag: str
    price: float = 0.0


class CatalogSnapshot(BaseModel):
    """Point-in-time read of the catalog, fixed for one request."""

    locations: list[CatalogLocation] = Field(default_factory=list)
    activities: list[CatalogActivity] = Field(default_factory=list)
    lodging: list[CatalogLodging] = Field(default_factory=list)
    transportation: list[CatalogTransportation] = Field(default_factory=list)
    loaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": True}
