"""Rate limiting and security headers for the HTTP app."""

import logging
import math
import threading
import time
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings
from app.core.errors import ErrorMessages, error_response

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-XSS-Protection": "0",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}
HSTS_VALUE = "max-age=15552000; includeSubDomains"


class RateLimiter:
    """Fixed-window request counter keyed by client.

    Each key gets ``max_requests`` hits per ``window_seconds``; the window
    starts at the key's first hit. Counters are in-process, so the limit is
    per worker.
    """

    # expired windows are pruned once the table grows past this size
    PRUNE_THRESHOLD = 10_000

    def __init__(self, max_requests: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> tuple[bool, int]:
        """Count one request for ``key``; returns (allowed, retry_after_seconds)."""
        now = self._clock()
        with self._lock:
            start, count = self._hits.get(key, (now, 0))
            if now - start >= self.window_seconds:
                start, count = now, 0
            if count >= self.max_requests:
                retry_after = max(1, math.ceil(start + self.window_seconds - now))
                return False, retry_after
            self._hits[key] = (start, count + 1)
            if len(self._hits) > self.PRUNE_THRESHOLD:
                self._prune(now)
            return True, 0

    def _prune(self, now: float) -> None:
        expired = [k for k, (start, _) in self._hits.items() if now - start >= self.window_seconds]
        for k in expired:
            del self._hits[k]

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


rate_limiter = RateLimiter(settings.rate_limit_max_requests, settings.rate_limit_window_seconds)


def client_ip(request: Request, trusted_hops: Optional[int] = None) -> str:
    """Client address as seen by the outermost trusted proxy.

    Each trusted proxy appends the address it received the request from, so
    with N trusted hops the client is the Nth X-Forwarded-For entry from the
    right. Entries further left are written by the client and never used.
    """
    hops = settings.trusted_proxy_hops if trusted_hops is None else trusted_hops
    peer = request.client.host if request.client else "unknown"
    forwarded = request.headers.get("x-forwarded-for")
    if hops <= 0 or not forwarded:
        return peer
    entries = [e.strip() for e in forwarded.split(",") if e.strip()]
    if not entries:
        return peer
    return entries[-hops] if len(entries) >= hops else entries[0]


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiter: RateLimiter = rate_limiter, path_prefix: str = "/api"):
        super().__init__(app)
        self.limiter = limiter
        self.path_prefix = path_prefix

    async def dispatch(self, request, call_next):
        if request.url.path.startswith(self.path_prefix):
            ip = client_ip(request)
            allowed, retry_after = self.limiter.hit(ip)
            if not allowed:
                logger.warning("Rate limit exceeded for IP: %s", ip)
                response = error_response(429, ErrorMessages.RATE_LIMITED)
                response.headers["Retry-After"] = str(retry_after)
                return response
        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        if settings.is_production:
            response.headers.setdefault("Strict-Transport-Security", HSTS_VALUE)
        return response
