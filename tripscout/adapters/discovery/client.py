"""
Discovery Search Client - Itinerary index over a Discovery Engine data store.

Features:
- Async HTTP client
- Criteria translated to structured filters plus a free-text query
- Relevance scores min-max normalized per batch
- Failures classified as unavailable or malformed
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from tripscout.config.errors import IndexMalformedError, IndexUnavailableError
from tripscout.domains.search.fallback import candidate_from_row
from tripscout.domains.search.models import (
    IndexSearchResult,
    Origin,
    SearchCriteria,
)

if TYPE_CHECKING:
    from tripscout.config.settings import Settings

logger = logging.getLogger(__name__)

__all__ = ["DiscoverySearchClient", "normalize_scores"]

DEFAULT_QUERY = "itineraries"


class DiscoverySearchClient:
    """
    Discovery Engine (Vertex AI Search) client for itinerary documents.

    Documents are expected to carry the itinerary fields in ``structData``
    (id, title, locations, activities, lodging, transportation, price,
    capacity_adults/children/infants, available_from/to) plus the numeric
    ``available_from_day`` / ``available_to_day`` (YYYYMMDD) used for filtering.

    Example:
        >>> client = DiscoverySearchClient(project_id="acme", data_store_id="itineraries")
        >>> result = await client.search(criteria)
        >>> [c.score for c in result.candidates]
    """

    def __init__(
        self,
        project_id: str,
        data_store_id: str,
        endpoint: str = "https://discoveryengine.googleapis.com",
        location: str = "global",
        serving_config: str = "default_config",
        access_token: str | None = None,
        timeout: float = 5.0,
        page_size: int = 20,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize Discovery client.

        Args:
            project_id: Cloud project id
            data_store_id: Data store holding itinerary documents
            endpoint: API base URL
            location: Data store location
            serving_config: Serving config name
            access_token: Bearer token (omitted from requests when None)
            timeout: Request timeout in seconds
            page_size: Results requested per search
            transport: Custom httpx transport
        """
        self.endpoint = endpoint.rstrip("/")
        self.project_id = project_id
        self.data_store_id = data_store_id
        self.location = location
        self.serving_config = serving_config
        self.timeout = timeout
        self.page_size = page_size
        self._access_token = access_token
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> DiscoverySearchClient:
        return cls(
            project_id=settings.index_project_id,
            data_store_id=settings.index_data_store_id,
            endpoint=settings.index_endpoint,
            location=settings.index_location,
            serving_config=settings.index_serving_config,
            access_token=settings.index_access_token,
            timeout=settings.index_timeout_seconds,
            page_size=settings.index_page_size,
        )

    @property
    def configured(self) -> bool:
        return bool(self.project_id and self.data_store_id)

    @property
    def search_path(self) -> str:
        return (
            f"/v1/projects/{self.project_id}/locations/{self.location}"
            f"/dataStores/{self.data_store_id}/servingConfigs/{self.serving_config}:search"
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self._access_token:
                headers["Authorization"] = f"Bearer {self._access_token}"
            self._client = httpx.AsyncClient(
                base_url=self.endpoint,
                timeout=self.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def search(self, criteria: SearchCriteria) -> IndexSearchResult:
        """
        Search the index.

        Args:
            criteria: Canonical search criteria

        Returns:
            Candidates in index order with scores normalized to [0, 1]

        Raises:
            IndexUnavailableError: network, auth, quota or server failure
            IndexMalformedError: the index rejected the query
        """
        if not self.configured:
            raise IndexUnavailableError("Search index is not configured")

        client = await self._get_client()
        payload = self.build_request(criteria)

        try:
            response = await client.post(self.search_path, json=payload)
        except httpx.TimeoutException as e:
            raise IndexUnavailableError("Search index timed out", {"timeout": self.timeout}) from e
        except httpx.HTTPError as e:
            raise IndexUnavailableError(f"Search index request failed: {e}") from e

        if response.status_code == 400:
            logger.warning("Index rejected query: %s (filter=%s)", response.text[:200], payload.get("filter"))
            raise IndexMalformedError(
                "Search index rejected the query",
                {"status": response.status_code, "filter": payload.get("filter")},
            )
        if response.is_error:
            raise IndexUnavailableError(
                f"Search index returned {response.status_code}",
                {"status": response.status_code},
            )

        try:
            return self.parse_response(response.json())
        except (ValueError, KeyError, TypeError) as e:
            raise IndexUnavailableError(f"Unreadable index response: {e}") from e

    def build_request(self, criteria: SearchCriteria) -> dict[str, Any]:
        """Request body for the :search method."""
        payload: dict[str, Any] = {
            "query": self.build_query(criteria),
            "pageSize": self.page_size,
            "queryExpansionSpec": {"condition": "AUTO"},
            "spellCorrectionSpec": {"mode": "AUTO"},
        }
        filter_expr = build_filter(criteria)
        if filter_expr:
            payload["filter"] = filter_expr
        return payload

    @staticmethod
    def build_query(criteria: SearchCriteria) -> str:
        """Free-text part: activities, then locations, then lodging."""
        parts = [
            *sorted(criteria.activities),
            *sorted(criteria.locations),
            *sorted(criteria.lodging),
        ]
        return " ".join(parts) or DEFAULT_QUERY

    @staticmethod
    def parse_response(data: dict[str, Any]) -> IndexSearchResult:
        """Turn a :search response into candidates with normalized scores."""
        results = data.get("results") or []

        rows: list[dict[str, Any]] = []
        raw_scores: list[float] = []
        for position, item in enumerate(results):
            document = item.get("document") or {}
            row = dict(document.get("structData") or {})
            row.setdefault("id", document.get("id") or item["id"])
            rows.append(row)
            raw_scores.append(_relevance(item, position, len(results)))

        scores = normalize_scores(raw_scores)
        candidates = [
            candidate_from_row(row, Origin.INDEXED, score=score)
            for row, score in zip(rows, scores)
        ]

        logger.debug("Index returned %d results", len(candidates))
        return IndexSearchResult(candidates=candidates, raw_scores=raw_scores)

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None


def build_filter(criteria: SearchCriteria) -> str | None:
    """
    Structured filter for the criteria.

    Empty tag sets and a missing date range add nothing to the filter.
    """
    clauses = []

    if criteria.locations:
        clauses.append(f"locations: ANY({_quoted(criteria.locations)})")
    if criteria.activities:
        clauses.append(f"activities: ANY({_quoted(criteria.activities)})")
    if criteria.lodging:
        clauses.append(f"lodging: ANY({_quoted(criteria.lodging)})")

    party = criteria.party
    clauses.append(f"capacity_adults >= {party.adults}")
    if party.children:
        clauses.append(f"capacity_children >= {party.children}")
    if party.infants:
        clauses.append(f"capacity_infants >= {party.infants}")

    if criteria.date_range is not None:
        arrival = int(criteria.date_range.arrival.strftime("%Y%m%d"))
        departure = int(criteria.date_range.departure.strftime("%Y%m%d"))
        clauses.append(f"available_from_day <= {arrival}")
        clauses.append(f"available_to_day >= {departure}")

    return " AND ".join(clauses) or None


def normalize_scores(scores: list[float]) -> list[float]:
    """Min-max scale to [0, 1]; a single result or a flat batch is 1.0."""
    if not scores:
        return []
    low, high = min(scores), max(scores)
    if high == low:
        return [1.0] * len(scores)
    return [(s - low) / (high - low) for s in scores]


def _relevance(item: dict[str, Any], position: int, total: int) -> float:
    """Native relevance score, or rank order when the index sends none."""
    model_scores = item.get("modelScores") or {}
    values = (model_scores.get("relevance_score") or {}).get("values") or []
    if values:
        return float(values[0])
    return float(total - position)


def _quoted(values: frozenset[str]) -> str:
    return ", ".join('"' + v.replace("\\", "\\\\").replace('"', '\\"') + '"' for v in sorted(values))
