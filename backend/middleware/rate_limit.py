"""Per-client request throttling for the VelocityChip HTTP API."""

import math
import time
from collections import defaultdict, deque
from typing import Callable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

# Paths that are never throttled
EXEMPT_PATHS = ("/api/health",)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window limiter kept in process memory.

    Every HTTP request counts against the client's general bucket; batch
    simulation requests additionally count against a smaller batch bucket,
    since each one runs the engine for up to thousands of steps. WebSocket
    traffic bypasses HTTP middleware and is not counted.
    """

    # Prune idle client buckets every 5 minutes
    _CLEANUP_INTERVAL = 300

    def __init__(
        self,
        app,
        requests_per_minute: int = 120,
        batch_requests_per_minute: int = 20,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(app)
        self.limits = {
            "general": requests_per_minute,
            "batch": batch_requests_per_minute,
        }
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque] = defaultdict(deque)
        self._last_cleanup = clock()

    def _client_key(self, request: Request) -> str:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def _buckets_for(self, request: Request) -> list[str]:
        """Buckets a request counts against, strictest first."""
        if request.method == "POST" and request.url.path.endswith("/simulate"):
            return ["batch", "general"]
        return ["general"]

    def _prune(self, now: float) -> None:
        if now - self._last_cleanup < self._CLEANUP_INTERVAL:
            return
        self._last_cleanup = now
        cutoff = now - self.window_seconds
        for key in [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]:
            del self._hits[key]

    def _retry_after(self, key: str, now: float) -> Optional[float]:
        """Seconds until the bucket frees a slot, or None if a request fits now."""
        hits = self._hits[key]
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        limit = self.limits[key.rsplit(":", 1)[1]]
        if len(hits) < limit:
            return None
        return hits[0] + self.window_seconds - now

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        now = self._clock()
        self._prune(now)
        client = self._client_key(request)
        keys = [f"{client}:{bucket}" for bucket in self._buckets_for(request)]

        for key in keys:
            wait = self._retry_after(key, now)
            if wait is not None:
                bucket = key.rsplit(":", 1)[1]
                detail = (
                    "Batch simulation rate limit exceeded. Please wait before trying again."
                    if bucket == "batch"
                    else "Rate limit exceeded. Please wait before trying again."
                )
                return JSONResponse(
                    status_code=429,
                    content={"detail": detail},
                    headers={"Retry-After": str(max(1, math.ceil(wait)))},
                )

        # Only record once every bucket has room, so a rejected request costs nothing
        for key in keys:
            self._hits[key].append(now)
        return await call_next(request)
