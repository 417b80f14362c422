"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from tripscout.config.errors import ErrorCode, TripScoutError

    raise ValidationError("party.adults", "at least one adult is required")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Criteria errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Index errors (recovered internally, never surfaced)
    SEARCH_INDEX_UNAVAILABLE = "SEARCH_INDEX_UNAVAILABLE"
    SEARCH_INDEX_MALFORMED = "SEARCH_INDEX_MALFORMED"

    # Store / catalog errors
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"

    # Generation
    GENERATION_EXHAUSTED = "GENERATION_EXHAUSTED"

    # Terminal search errors
    SEARCH_TIMEOUT = "SEARCH_TIMEOUT"
    SEARCH_UNAVAILABLE = "SEARCH_UNAVAILABLE"

    # Security errors
    SECURITY_RATE_LIMITED = "SECURITY_RATE_LIMITED"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    NOT_FOUND = "NOT_FOUND"


class IndexStatus(str, Enum):
    """How the index call of a search ended."""

    OK = "ok"
    EMPTY = "empty"
    UNAVAILABLE = "unavailable"
    MALFORMED = "malformed"


class TripScoutError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }

    @property
    def retryable(self) -> bool:
        return False


class ValidationError(TripScoutError):
    """Search criteria rejected before any downstream call."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(
            ErrorCode.VALIDATION_ERROR,
            f"{field}: {message}",
            {"field": field},
        )


class IndexSearchError(TripScoutError):
    """Search index call failed."""

    kind: IndexStatus = IndexStatus.UNAVAILABLE


class IndexUnavailableError(IndexSearchError):
    """Network or service failure talking to the index."""

    kind = IndexStatus.UNAVAILABLE

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.SEARCH_INDEX_UNAVAILABLE, message, details)


class IndexMalformedError(IndexSearchError):
    """The index rejected the query built from the criteria."""

    kind = IndexStatus.MALFORMED

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.SEARCH_INDEX_MALFORMED, message, details)


class StoreError(TripScoutError):
    """Primary store / catalog read failed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.STORE_UNAVAILABLE, message, details)


class GenerationExhausted(TripScoutError):
    """The catalog cannot produce a single criteria-satisfying combination."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.GENERATION_EXHAUSTED, message, details)


class SearchTimeout(TripScoutError):
    """The per-request search budget was exceeded."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(
            ErrorCode.SEARCH_TIMEOUT,
            f"Search exceeded its {timeout_seconds:g}s budget",
            {"timeout_seconds": timeout_seconds},
        )

    @property
    def retryable(self) -> bool:
        return True


class SearchUnavailable(TripScoutError):
    """Every search strategy failed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.SEARCH_UNAVAILABLE, message, details)

    @property
    def retryable(self) -> bool:
        return True


class NotFoundError(TripScoutError):
    """A stored record does not exist."""

    def __init__(self, resource: str, resource_id: str) -> None:
        super().__init__(
            ErrorCode.NOT_FOUND,
            f"{resource} {resource_id!r} not found",
            {"resource": resource, "id": resource_id},
        )


class RateLimited(TripScoutError):
    """The client used up its request budget for the current window."""

    def __init__(self, retry_after: int) -> None:
        super().__init__(
            ErrorCode.SECURITY_RATE_LIMITED,
            f"Too many requests. Please retry after {retry_after} seconds.",
            {"retry_after": retry_after},
        )

    @property
    def retryable(self) -> bool:
        return True
