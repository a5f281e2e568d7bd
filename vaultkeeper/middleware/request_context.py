"""Request context middleware: request id, timing, access log, rate limiting.

All four concerns run in one pass. The token bucket lives in
``check_rate_limit``, a pure function testable without a server.
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
from ..core.logging_config import request_id_var
from ..exceptions import ErrorCode

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------

# {client_key: (available_tokens, last_refill_timestamp)}
_rate_buckets: dict[str, tuple[float, float]] = {}
_rate_lock = threading.Lock()

_EVICT_AGE = 120.0  # seconds a silent client keeps its bucket
_last_eviction = 0.0


def check_rate_limit(
    bucket: dict[str, tuple[float, float]],
    key: str,
    max_per_minute: int,
    now: Optional[float] = None,
) -> tuple[bool, float]:
    """Spend one token for *key* if available.

    Args:
        bucket: Per-key state, modified in place.
        key: Client identifier.
        max_per_minute: Sustained rate and burst size. ``<= 0`` disables limiting.
        now: Injectable clock, defaults to ``time.monotonic()``.

    Returns:
        ``(allowed, retry_after)`` where *retry_after* is the number of
        seconds until a token is available (0.0 when allowed).
    """
    if max_per_minute <= 0:
        return True, 0.0

    if now is None:
        now = time.monotonic()

    refill_rate = max_per_minute / 60.0
    tokens, last_refill = bucket.get(key, (float(max_per_minute), now))
    tokens = min(float(max_per_minute), tokens + (now - last_refill) * refill_rate)

    if tokens >= 1.0:
        bucket[key] = (tokens - 1.0, now)
        return True, 0.0

    bucket[key] = (tokens, now)
    return False, (1.0 - tokens) / refill_rate


def evict_stale(bucket: dict[str, tuple[float, float]], now: float, max_age: float = _EVICT_AGE) -> int:
    """Drop buckets idle for longer than *max_age* seconds."""
    stale = [k for k, (_, ts) in bucket.items() if now - ts > max_age]
    for k in stale:
        del bucket[k]
    return len(stale)


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

_EXEMPT_PATHS = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json"})


def _client_key(request: Request) -> str:
    """Rate-limit key: proxy-asserted user when trusted, else client IP."""
    if settings.trust_proxy_headers:
        user_id = request.headers.get("x-user-id")
        if user_id:
            return f"user:{user_id.strip()}"
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Request id, timing, structured access log and rate limiting."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        global _last_eviction

        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        token = request_id_var.set(rid)
        try:
            if request.url.path not in _EXEMPT_PATHS:
                key = _client_key(request)
                with _rate_lock:
                    now = time.monotonic()
                    if now - _last_eviction > _EVICT_AGE:
                        evict_stale(_rate_buckets, now)
                        _last_eviction = now
                    allowed, retry_after = check_rate_limit(
                        _rate_buckets, key, settings.rate_limit_per_minute, now=now
                    )
                if not allowed:
                    logger.warning(
                        "Rate limit exceeded",
                        extra={"client": key, "path": request.url.path,
                               "retry_after": round(retry_after, 1)},
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
                "%s %s %s", request.method, request.url.path, response.status_code,
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
            return response
        finally:
            request_id_var.reset(token)
