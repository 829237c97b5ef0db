"""Request context middleware: request id, timing, access log, rate limiting.

One middleware does all four in a single pass. The token-bucket arithmetic
lives in the pure function ``check_rate_limit`` so it can be tested without
a running app; ``RateLimiter`` adds locking and stale-entry eviction.
"""

import logging
import threading
import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..core.config import settings
from ..core.logging_config import principal_var, request_id_var
from ..exceptions import ErrorCode

logger = logging.getLogger(__name__)

# {client_key: (available_tokens, last_refill_timestamp)}
Bucket = dict[str, tuple[float, float]]


def check_rate_limit(
    bucket: Bucket,
    key: str,
    max_per_minute: int,
    now: Optional[float] = None,
) -> tuple[bool, float]:
    """Take one token for *key* if available.

    Returns ``(allowed, retry_after)``; *retry_after* is the number of
    seconds until a token is next available, 0.0 when allowed. A limit of 0
    or less disables limiting.
    """
    if max_per_minute <= 0:
        return True, 0.0

    if now is None:
        now = time.monotonic()

    refill_rate = max_per_minute / 60.0  # tokens per second

    if key in bucket:
        tokens, last_refill = bucket[key]
        tokens = min(max_per_minute, tokens + (now - last_refill) * refill_rate)
    else:
        tokens = float(max_per_minute)

    if tokens >= 1.0:
        bucket[key] = (tokens - 1.0, now)
        return True, 0.0

    bucket[key] = (tokens, now)
    return False, (1.0 - tokens) / refill_rate


class RateLimiter:
    """Thread-safe bucket store. Drops idle clients every ``evict_every`` calls."""

    def __init__(self, evict_every: int = 100, evict_age: float = 120.0):
        self.buckets: Bucket = {}
        self._lock = threading.Lock()
        self._calls = 0
        self._evict_every = evict_every
        self._evict_age = evict_age

    def check(self, key: str, max_per_minute: int, now: Optional[float] = None) -> tuple[bool, float]:
        if now is None:
            now = time.monotonic()
        with self._lock:
            self._calls += 1
            if self._calls % self._evict_every == 0:
                self._evict(now)
            return check_rate_limit(self.buckets, key, max_per_minute, now)

    def reset(self) -> None:
        with self._lock:
            self.buckets.clear()
            self._calls = 0

    def _evict(self, now: float) -> None:
        cutoff = now - self._evict_age
        for key in [k for k, (_, ts) in self.buckets.items() if ts < cutoff]:
            del self.buckets[key]


rate_limiter = RateLimiter()

# Health probes and docs are never throttled.
_EXEMPT_PATHS = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json"})


def _client_key(request: Request) -> str:
    """First ``X-Forwarded-For`` hop when proxied, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        rid_token = request_id_var.set(rid)
        principal_token = principal_var.set("")
        try:
            return await self._handle(request, call_next, rid)
        finally:
            principal_var.reset(principal_token)
            request_id_var.reset(rid_token)

    async def _handle(self, request: Request, call_next: RequestResponseEndpoint, rid: str) -> Response:
        if request.url.path not in _EXEMPT_PATHS:
            key = _client_key(request)
            allowed, retry_after = rate_limiter.check(key, settings.rate_limit_per_minute)
            if not allowed:
                logger.warning(
                    "Rate limit exceeded",
                    extra={"client": key, "path": request.url.path, "retry_after": round(retry_after, 1)},
                )
                return JSONResponse(
                    status_code=429,
                    content={
                        "error": ErrorCode.RATE_LIMITED.value,
                        "message": "Too many requests",
                        "details": {"retry_after": round(retry_after, 1)},
                    },
                    headers={
                        "Retry-After": str(int(retry_after) + 1),
                        "X-Request-ID": rid,
                    },
                )

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        response.headers["X-Request-ID"] = rid
        response.headers["X-Response-Time"] = f"{duration_ms}ms"

        logger.info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response
