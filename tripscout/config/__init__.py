"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    ErrorCode,
    GenerationExhausted,
    IndexMalformedError,
    IndexSearchError,
    IndexStatus,
    IndexUnavailableError,
    NotFoundError,
    RateLimited,
    SearchTimeout,
    SearchUnavailable,
    StoreError,
    TripScoutError,
    ValidationError,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "IndexStatus",
    "NotFoundError",
    "RateLimited",
    "TripScoutError",
    "ValidationError",
    "IndexSearchError",
    "IndexUnavailableError",
    "IndexMalformedError",
    "StoreError",
    "GenerationExhausted",
    "SearchTimeout",
    "SearchUnavailable",
]
