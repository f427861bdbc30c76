"""In-memory sliding-window limits for the endpoints that queue worker jobs."""

from __future__ import annotations

import math
import time
from collections import defaultdict, deque

from fastapi import HTTPException, Request, status

from app.config import settings


class RateLimiter:
    """Allow ``max_requests`` per ``window_seconds`` for each client and project.

    Requests without a ``project_id`` path parameter share one bucket per client.
    """

    def __init__(self, max_requests: int, window_seconds: int):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._hits: dict[tuple[str, str], deque[float]] = defaultdict(deque)

    @staticmethod
    def _client_ip(request: Request) -> str:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def _key(self, request: Request) -> tuple[str, str]:
        return self._client_ip(request), str(request.path_params.get("project_id", ""))

    def check(self, request: Request) -> None:
        """Record a hit, or raise 429 with Retry-After when the window is full."""
        now = time.monotonic()
        hits = self._hits[self._key(request)]
        while hits and hits[0] <= now - self.window_seconds:
            hits.popleft()

        if len(hits) >= self.max_requests:
            retry_after = math.ceil(hits[0] + self.window_seconds - now)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=(
                    f"Rate limit exceeded. Max {self.max_requests} requests "
                    f"per {self.window_seconds}s."
                ),
                headers={"Retry-After": str(max(retry_after, 1))},
            )
        hits.append(now)

    def reset(self) -> None:
        self._hits.clear()


analysis_limiter = RateLimiter(
    settings.analysis_rate_limit, settings.analysis_rate_window_seconds
)
reference_limiter = RateLimiter(
    settings.reference_rate_limit, settings.reference_rate_window_seconds
)
