"""
SQLite Repository - Itinerary catalog storage.

Features:
- Async operations via aiosqlite
- Persisted itineraries with capacity and availability filtering
- Catalog primitives (locations, activities, lodging, transportation)
- Point-in-time catalog snapshots for the generator
"""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any

import aiosqlite

from tripscout.config.errors import StoreError
from tripscout.domains.generation.models import (
    CatalogActivity,
    CatalogLocation,
    CatalogLodging,
    CatalogSnapshot,
    CatalogTransportation,
)
from tripscout.domains.search.models import Capacity

logger = logging.getLogger(__name__)

__all__ = ["CatalogRepository"]

_JSON_COLUMNS = ("locations", "activities", "lodging", "media_refs", "tags")


class CatalogRepository:
    """
    SQLite repository for itineraries and catalog primitives.

    Implements both ItineraryStore and CatalogReader.

    Example:
        >>> repo = CatalogRepository("data/tripscout.db")
        >>> await repo.initialize()
        >>> await repo.insert_itinerary({"id": "moab-3d", "title": "Moab Weekend"})
        >>> rows = await repo.find_itineraries(adults=2, children=0, infants=0)
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize repository.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection: aiosqlite.Connection | None = None

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = await aiosqlite.connect(str(self.db_path))
            self._connection.row_factory = aiosqlite.Row
        return self._connection

    async def initialize(self) -> None:
        """Initialize database schema."""
        conn = await self._get_connection()

        await conn.executescript("""
            -- Bookable itineraries
            CREATE TABLE IF NOT EXISTS itineraries (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                locations TEXT,
                activities TEXT,
                lodging TEXT,
                transportation TEXT,
                price REAL DEFAULT 0,
                duration_days INTEGER DEFAULT 1,
                media_refs TEXT,
                capacity_adults INTEGER,
                capacity_children INTEGER,
                capacity_infants INTEGER,
                available_from TEXT,
                available_to TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            -- Catalog primitives
            CREATE TABLE IF NOT EXISTS locations (
                id TEXT PRIMARY KEY,
                city TEXT NOT NULL,
                state TEXT,
                latitude REAL,
                longitude REAL
            );

            CREATE TABLE IF NOT EXISTS activities (
                id TEXT PRIMARY KEY,
                label TEXT NOT NULL,
                tags TEXT,
                location TEXT NOT NULL,
                price_per_person REAL DEFAULT 0,
                duration_hours REAL DEFAULT 2,
                min_group INTEGER DEFAULT 1,
                max_group INTEGER DEFAULT 99,
                media_refs TEXT
            );

            CREATE TABLE IF NOT EXISTS lodging (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                tags TEXT,
                location TEXT NOT NULL,
                price_per_night REAL DEFAULT 0,
                capacity_adults INTEGER DEFAULT 1,
                capacity_children INTEGER DEFAULT 0,
                capacity_infants INTEGER DEFAULT 0,
                media_refs TEXT
            );

            CREATE TABLE IF NOT EXISTS transportation (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                tag TEXT NOT NULL,
                price REAL DEFAULT 0
            );

            -- Indexes
            CREATE INDEX IF NOT EXISTS idx_itineraries_capacity
                ON itineraries(capacity_adults, capacity_children, capacity_infants);
            CREATE INDEX IF NOT EXISTS idx_activities_location ON activities(location);
            CREATE INDEX IF NOT EXISTS idx_lodging_location ON lodging(location);
        """)

        await conn.commit()
        logger.info("Database initialized: %s", self.db_path)

    async def insert_itinerary(self, itinerary: dict[str, Any]) -> str:
        """
        Insert or replace an itinerary.

        Args:
            itinerary: Itinerary fields; ``capacity`` may be a nested dict

        Returns:
            Itinerary ID
        """
        conn = await self._get_connection()

        capacity = itinerary.get("capacity") or {}
        await conn.execute(
            """
            INSERT OR REPLACE INTO itineraries
            (id, title, locations, activities, lodging, transportation, price, duration_days,
             media_refs, capacity_adults, capacity_children, capacity_infants,
             available_from, available_to)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                itinerary["id"],
                itinerary.get("title", ""),
                json.dumps(itinerary.get("locations") or []),
                json.dumps(itinerary.get("activities") or []),
                json.dumps(itinerary.get("lodging") or []),
                itinerary.get("transportation"),
                itinerary.get("price", 0.0),
                itinerary.get("duration_days", 1),
                json.dumps(itinerary.get("media_refs") or []),
                itinerary.get("capacity_adults", capacity.get("adults")),
                itinerary.get("capacity_children", capacity.get("children", 0)),
                itinerary.get("capacity_infants", capacity.get("infants", 0)),
                _iso(itinerary.get("available_from")),
                _iso(itinerary.get("available_to")),
            ),
        )

        await conn.commit()
        return str(itinerary["id"])

    async def get_itinerary(self, itinerary_id: str) -> dict[str, Any] | None:
        """Get itinerary by ID."""
        conn = await self._get_connection()

        cursor = await conn.execute(
            "SELECT * FROM itineraries WHERE id = ?", (itinerary_id,)
        )
        row = await cursor.fetchone()

        if row:
            return _decode(row)
        return None

    async def find_itineraries(
        self,
        adults: int,
        children: int,
        infants: int,
        arrival: date | None = None,
        departure: date | None = None,
    ) -> list[dict[str, Any]]:
        """
        Itineraries that can host the party within the requested window.

        Rows without capacity are treated as unconstrained; rows without an
        availability bound are open on that side.

        Raises:
            StoreError: the database could not be read
        """
        sql = """
            SELECT * FROM itineraries
            WHERE (
                capacity_adults IS NULL
                OR (
                    capacity_adults >= ?
                    AND COALESCE(capacity_children, 0) >= ?
                    AND COALESCE(capacity_infants, 0) >= ?
                )
            )
        """
        params: list[Any] = [adults, children, infants]

        if arrival is not None:
            sql += " AND (available_from IS NULL OR available_from <= ?)"
            params.append(arrival.isoformat())
        if departure is not None:
            sql += " AND (available_to IS NULL OR available_to >= ?)"
            params.append(departure.isoformat())

        sql += " ORDER BY id"

        try:
            conn = await self._get_connection()
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            logger.error("Itinerary query failed: %s", e)
            raise StoreError("Itinerary store query failed", {"reason": str(e)}) from e

        return [_decode(row) for row in rows]

    async def insert_location(self, location: CatalogLocation) -> None:
        """Insert or replace a catalog location."""
        conn = await self._get_connection()
        lat, lng = location.coordinates or (None, None)
        await conn.execute(
            "INSERT OR REPLACE INTO locations (id, city, state, latitude, longitude) VALUES (?, ?, ?, ?, ?)",
            (location.id, location.city, location.state, lat, lng),
        )
        await conn.commit()

    async def insert_activity(self, activity: CatalogActivity) -> None:
        """Insert or replace a catalog activity."""
        conn = await self._get_connection()
        await conn.execute(
            """
            INSERT OR REPLACE INTO activities
            (id, label, tags, location, price_per_person, duration_hours, min_group, max_group, media_refs)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                activity.id,
                activity.label,
                json.dumps(activity.tags),
                activity.location,
                activity.price_per_person,
                activity.duration_hours,
                activity.min_group,
                activity.max_group,
                json.dumps(activity.media_refs),
            ),
        )
        await conn.commit()

    async def insert_lodging(self, lodging: CatalogLodging) -> None:
        """Insert or replace a catalog lodging option."""
        conn = await self._get_connection()
        await conn.execute(
            """
            INSERT OR REPLACE INTO lodging
            (id, name, tags, location, price_per_night,
             capacity_adults, capacity_children, capacity_infants, media_refs)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                lodging.id,
                lodging.name,
                json.dumps(lodging.tags),
                lodging.location,
                lodging.price_per_night,
                lodging.capacity.adults,
                lodging.capacity.children,
                lodging.capacity.infants,
                json.dumps(lodging.media_refs),
            ),
        )
        await conn.commit()

    async def insert_transportation(self, transportation: CatalogTransportation) -> None:
        """Insert or replace a transportation option."""
        conn = await self._get_connection()
        await conn.execute(
            "INSERT OR REPLACE INTO transportation (id, name, tag, price) VALUES (?, ?, ?, ?)",
            (transportation.id, transportation.name, transportation.tag, transportation.price),
        )
        await conn.commit()

    async def load_catalog(self) -> CatalogSnapshot:
        """
        Read every catalog primitive in one pass, ordered by id.

        Raises:
            StoreError: the database could not be read
        """
        try:
            conn = await self._get_connection()
            locations = await self._fetch_all(conn, "SELECT * FROM locations ORDER BY id")
            activities = await self._fetch_all(conn, "SELECT * FROM activities ORDER BY id")
            lodging = await self._fetch_all(conn, "SELECT * FROM lodging ORDER BY id")
            transportation = await self._fetch_all(conn, "SELECT * FROM transportation ORDER BY id")
        except aiosqlite.Error as e:
            logger.error("Catalog load failed: %s", e)
            raise StoreError("Catalog could not be loaded", {"reason": str(e)}) from e

        snapshot = CatalogSnapshot(
            locations=[
                CatalogLocation(
                    id=row["id"],
                    city=row["city"],
                    state=row["state"] or "",
                    coordinates=(
                        (row["latitude"], row["longitude"])
                        if row["latitude"] is not None and row["longitude"] is not None
                        else None
                    ),
                )
                for row in locations
            ],
            activities=[CatalogActivity(**row) for row in activities],
            lodging=[
                CatalogLodging(
                    id=row["id"],
                    name=row["name"],
                    tags=row["tags"],
                    location=row["location"],
                    price_per_night=row["price_per_night"],
                    capacity=Capacity(
                        adults=row["capacity_adults"],
                        children=row["capacity_children"],
                        infants=row["capacity_infants"],
                    ),
                    media_refs=row["media_refs"],
                )
                for row in lodging
            ],
            transportation=[CatalogTransportation(**row) for row in transportation],
        )

        logger.debug(
            "Catalog loaded: %d locations, %d activities, %d lodging, %d transportation",
            len(snapshot.locations),
            len(snapshot.activities),
            len(snapshot.lodging),
            len(snapshot.transportation),
        )
        return snapshot

    async def get_itinerary_count(self) -> int:
        """Get total itinerary count."""
        conn = await self._get_connection()
        cursor = await conn.execute("SELECT COUNT(*) FROM itineraries")
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    @staticmethod
    async def _fetch_all(conn: aiosqlite.Connection, sql: str) -> list[dict[str, Any]]:
        cursor = await conn.execute(sql)
        return [_decode(row) for row in await cursor.fetchall()]


def _decode(row: aiosqlite.Row) -> dict[str, Any]:
    """Row to dict with JSON list columns parsed."""
    data = dict(row)
    for column in _JSON_COLUMNS:
        if column in data:
            data[column] = json.loads(data[column]) if data[column] else []
    return data


def _iso(value: date | str | None) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value.isoformat()
    return value
