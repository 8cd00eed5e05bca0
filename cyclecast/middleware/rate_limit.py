"""In-memory fixed-window rate limiter for the ``/api/`` routes.

Each client IP gets ``rate_limit_requests`` requests per window.  Responses
carry the standard ``RateLimit-Limit``, ``RateLimit-Remaining`` and
``RateLimit-Reset`` headers.  Counters live in process memory, so limits are
per instance.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Any, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from cyclecast.config import Settings, get_settings

LIMITED_PREFIX = "/api/"


@dataclass
class _Window:
    started_at: float
    count: int = 0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP fixed window rate limiter."""

    def __init__(
        self,
        app: Any,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(app)
        s = settings or get_settings()
        self._max_requests = s.rate_limit_requests
        self._window_seconds = s.rate_limit_window_seconds
        self._clock = clock
        # ip -> current window
        self._windows: dict[str, _Window] = {}

    def _client_ip(self, request: Request) -> str:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def _window_for(self, ip: str, now: float) -> _Window:
        window = self._windows.get(ip)
        if window is None or now - window.started_at >= self._window_seconds:
            window = _Window(started_at=now)
            self._windows[ip] = window
        return window

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not request.url.path.startswith(LIMITED_PREFIX):
            return await call_next(request)

        now = self._clock()
        window = self._window_for(self._client_ip(request), now)
        reset_in = max(math.ceil(self._window_seconds - (now - window.started_at)), 1)

        if window.count >= self._max_requests:
            return Response(
                content='{"detail":"Too many requests from this IP, please try again later."}',
                status_code=429,
                media_type="application/json",
                headers={
                    "Retry-After": str(reset_in),
                    "RateLimit-Limit": str(self._max_requests),
                    "RateLimit-Remaining": "0",
                    "RateLimit-Reset": str(reset_in),
                },
            )

        window.count += 1
        response = await call_next(request)

        # Inform clients of their remaining budget
        response.headers["RateLimit-Limit"] = str(self._max_requests)
        response.headers["RateLimit-Remaining"] = str(max(self._max_requests - window.count, 0))
        response.headers["RateLimit-Reset"] = str(reset_in)
        return response
