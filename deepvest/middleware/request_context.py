"""Request context middleware: request id, timing, access log, rate limiting.

One pass per request:
- reuse the caller's ``X-Request-ID`` or mint one; expose it, the client key and
  the client address to logging and auditing
- throttle each client with a token bucket (``429`` plus ``Retry-After``)
- add ``X-Response-Time`` and write one structured access-log line

Signed-in callers are throttled per user, everyone else per client address,
so several users behind one proxy do not share a bucket.
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
from ..core.logging_config import client_ip_var, client_var, request_id_var
from ..core.token_factory import decode_token
from ..exceptions import ErrorCode

logger = logging.getLogger(__name__)

# {client_key: (available_tokens, last_refill_timestamp)}
_rate_buckets: dict[str, tuple[float, float]] = {}
_rate_lock = threading.Lock()

_calls_since_sweep = 0
_SWEEP_EVERY = 100
_STALE_AFTER = 120.0

# Health checks and docs are never throttled.
_EXEMPT_PATHS = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json"})


def _sweep(bucket: dict[str, tuple[float, float]], now: float) -> None:
    cutoff = now - _STALE_AFTER
    for key in [k for k, (_, ts) in bucket.items() if ts < cutoff]:
        del bucket[key]


def check_rate_limit(
    bucket: dict[str, tuple[float, float]],
    key: str,
    max_per_minute: int,
    now: Optional[float] = None,
) -> tuple[bool, float]:
    """Take one token for *key* from *bucket*.

    Returns ``(allowed, retry_after)``; *retry_after* is the number of
    seconds until a token is available again, 0.0 when allowed. A
    non-positive limit disables throttling. *now* is injectable for tests.
    """
    global _calls_since_sweep

    if max_per_minute <= 0:
        return True, 0.0
    if now is None:
        now = time.monotonic()

    _calls_since_sweep += 1
    if _calls_since_sweep >= _SWEEP_EVERY:
        _calls_since_sweep = 0
        _sweep(bucket, now)

    per_second = max_per_minute / 60.0
    tokens, last = bucket.get(key, (float(max_per_minute), now))
    tokens = min(float(max_per_minute), tokens + (now - last) * per_second)

    if tokens >= 1.0:
        bucket[key] = (tokens - 1.0, now)
        return True, 0.0

    bucket[key] = (tokens, now)
    return False, (1.0 - tokens) / per_second


def client_ip(request: Request) -> str:
    """First ``X-Forwarded-For`` hop when behind a proxy, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or "unknown"
    if request.client:
        return request.client.host
    return "unknown"


def client_key(request: Request) -> str:
    """``user:<id>`` for a valid bearer token, otherwise ``ip:<address>``."""
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        payload = decode_token(
            header[7:].strip(),
            secret=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        if payload is not None:
            return f"user:{payload.sub}"
    return f"ip:{client_ip(request)}"


def _too_many_requests(retry_after: float, rid: str) -> JSONResponse:
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


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request_id_var.set(rid)
        client_ip_var.set(client_ip(request))
        key = client_key(request)
        client_var.set(key)
        path = request.url.path

        if path not in _EXEMPT_PATHS:
            with _rate_lock:
                allowed, retry_after = check_rate_limit(
                    _rate_buckets, key, settings.rate_limit_per_minute
                )
            if not allowed:
                logger.warning(
                    "Rate limit exceeded",
                    extra={"path": path, "retry_after": round(retry_after, 1)},
                )
                return _too_many_requests(retry_after, rid)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        response.headers["X-Request-ID"] = rid
        response.headers["X-Response-Time"] = f"{duration_ms}ms"

        logger.info(
            f"{request.method} {path} {response.status_code}",
            extra={
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response
