"""
Admission control applied before routing.

Two gates run for every request:

* origin check - a browser ``Origin`` must be on the configured allow-list
  (``*`` admits everything). Outside production, loopback / dev hosts are
  admitted too. Requests without an ``Origin`` header (curl, mobile apps,
  server-to-server) always pass.
* rate limit - a fixed-window counter per client address on ``/api/`` paths.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Dict, Iterable, Optional, Tuple
from urllib.parse import urlsplit

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware

logger = logging.getLogger(__name__)

DEV_HOSTS = {"localhost", "127.0.0.1", "::1"}
ORIGIN_REJECTED = "Not allowed by CORS"
RATE_LIMITED = "Too many requests, please try again later."


class OriginPolicy:
    def __init__(self, allowed_origins: Iterable[str], production: bool):
        self.allowed_origins = [o.rstrip("/") for o in allowed_origins]
        self.allow_any = "*" in self.allowed_origins
        self.production = production

    @staticmethod
    def is_dev_host(origin: str) -> bool:
        try:
            host = urlsplit(origin).hostname or ""
        except ValueError:
            return False
        return host in DEV_HOSTS or host.endswith(".localhost")

    def allows(self, origin: Optional[str]) -> bool:
        if not origin:
            return True
        if self.allow_any or origin.rstrip("/") in self.allowed_origins:
            return True
        return not self.production and self.is_dev_host(origin)


class PolicyCORSMiddleware(CORSMiddleware):
    """Starlette's CORS handling with the origin decision taken from an :class:`OriginPolicy`."""

    def __init__(self, app, policy: OriginPolicy):
        super().__init__(
            app,
            allow_origins=[],
            allow_methods=["*"],
            allow_headers=["*"],
            allow_credentials=True,
        )
        self.policy = policy

    def is_allowed_origin(self, origin: str) -> bool:
        return self.policy.allows(origin)


class OriginGateMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, policy: OriginPolicy):
        super().__init__(app)
        self.policy = policy

    async def dispatch(self, request, call_next):
        origin = request.headers.get("origin")
        if not self.policy.allows(origin):
            logger.warning("Rejected request from origin %s", origin)
            return JSONResponse(status_code=403, content={"error": ORIGIN_REJECTED})
        return await call_next(request)


class FixedWindowRateLimiter:
    """Counts hits per key inside fixed windows of ``window_seconds``."""

    def __init__(self, max_requests: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_prune = clock()

    def _current(self, key: str, now: float) -> Tuple[float, int]:
        start, count = self._windows.get(key, (now, 0))
        if now - start >= self.window_seconds:
            return now, 0
        return start, count

    def _prune(self, now: float) -> None:
        # At most one sweep per window.
        if now - self._last_prune < self.window_seconds:
            return
        self._last_prune = now
        expired = [k for k, (start, _) in self._windows.items() if now - start >= self.window_seconds]
        for k in expired:
            del self._windows[k]

    def hit(self, key: str) -> bool:
        """Record one request for ``key``; False once it is over the limit."""
        now = self._clock()
        self._prune(now)
        start, count = self._current(key, now)
        count += 1
        self._windows[key] = (start, count)
        return count <= self.max_requests

    def remaining(self, key: str) -> int:
        _, count = self._current(key, self._clock())
        return max(self.max_requests - count, 0)

    def retry_after(self, key: str) -> int:
        now = self._clock()
        start, _ = self._current(key, now)
        return max(int(math.ceil(self.window_seconds - (now - start))), 0)


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiter: FixedWindowRateLimiter, prefix: str = "/api/"):
        super().__init__(app)
        self.limiter = limiter
        self.prefix = prefix

    async def dispatch(self, request, call_next):
        if not request.url.path.startswith(self.prefix):
            return await call_next(request)

        key = request.client.host if request.client else "unknown"
        if not self.limiter.hit(key):
            logger.info("Rate limit exceeded for %s", key)
            return JSONResponse(
                status_code=429,
                content={"error": RATE_LIMITED},
                headers={"Retry-After": str(self.limiter.retry_after(key))},
            )

        response = await call_next(request)
        response.headers["RateLimit-Limit"] = str(self.limiter.max_requests)
        response.headers["RateLimit-Remaining"] = str(self.limiter.remaining(key))
        return response
