"""
API Middleware - Request/response processing.

Provides:
- Request context (ID and latency headers, access log)
- Error handling with taxonomy codes
- Per-client rate limiting in fixed one-minute windows
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from tripscout.config.errors import ErrorCode, RateLimited, TripScoutError

logger = logging.getLogger(__name__)

# Suggested client back-off for retryable search failures.
RETRY_AFTER_SECONDS = 2

WINDOW_SECONDS = 60
UNLIMITED_PATHS = frozenset({"/health"})


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID and report how long it took."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"

        logger.info(
            "%s %s status=%d latency_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Convert TripScoutError exceptions to structured JSON responses."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = getattr(request.state, "request_id", "unknown")
        try:
            return await call_next(request)
        except TripScoutError as e:
            status = _error_code_to_status(e.code)
            log = logger.warning if status < 500 else logger.error
            log(
                "%s: %s request_id=%s details=%s",
                e.code.value,
                e.message,
                request_id,
                e.details,
            )
            headers = None
            if e.retryable:
                headers = {"Retry-After": str(e.details.get("retry_after", RETRY_AFTER_SECONDS))}
            return JSONResponse(
                status_code=status,
                content={
                    "error": {**e.to_dict(), "retryable": e.retryable},
                    "request_id": request_id,
                },
                headers=headers,
            )
        except Exception:
            logger.exception("Unhandled error request_id=%s", request_id)
            return JSONResponse(
                status_code=500,
                content={
                    "error": {
                        "code": ErrorCode.INTERNAL_ERROR.value,
                        "message": "Internal server error",
                        "details": {},
                        "retryable": False,
                    },
                    "request_id": request_id,
                },
            )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory request budget per client address.

    Counts only cover the current window; moving to a new window drops
    every client's count, so memory is bounded by the clients seen in
    the last minute.
    """

    def __init__(self, app: ASGIApp, requests_per_minute: int = 60) -> None:
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self._window = -1
        self._counts: dict[str, int] = {}

    def consume(self, client: str, now: float) -> int:
        """Count one request for ``client``; returns the remaining budget (negative once over)."""
        window = int(now // WINDOW_SECONDS)
        if window != self._window:
            self._window = window
            self._counts.clear()

        count = self._counts.get(client, 0) + 1
        self._counts[client] = count
        return self.requests_per_minute - count

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path in UNLIMITED_PATHS:
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        now = time.time()
        remaining = self.consume(client, now)

        if remaining < 0:
            raise RateLimited(retry_after=max(1, int(WINDOW_SECONDS - now % WINDOW_SECONDS)))

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.requests_per_minute)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response


def _error_code_to_status(code: ErrorCode) -> int:
    """Map error codes to HTTP status codes."""
    mapping = {
        ErrorCode.VALIDATION_ERROR: 400,
        ErrorCode.SEARCH_INDEX_MALFORMED: 400,
        ErrorCode.NOT_FOUND: 404,
        ErrorCode.SECURITY_RATE_LIMITED: 429,
        ErrorCode.SEARCH_UNAVAILABLE: 503,
        ErrorCode.SEARCH_INDEX_UNAVAILABLE: 503,
        ErrorCode.STORE_UNAVAILABLE: 503,
        ErrorCode.SEARCH_TIMEOUT: 504,
    }
    return mapping.get(code, 500)
