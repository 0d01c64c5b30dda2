"""
Rate Limiting

Sliding-window request limits keyed by client address or operator id.

Redis sorted sets are used when the shared client is connected; otherwise
counts are kept in process memory (per worker, lost on restart).

Limits protect:
- Admin login (credential guessing)
- Public registration intake (form spam, notification emails)
- Operator write actions (mass status changes)
"""

import logging
import time

from fastapi import HTTPException, Request, status

from app.core import redis as redis_conn
from app.core.config import settings

logger = logging.getLogger(__name__)

# key -> request timestamps inside the current window
_memory_store: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """Raised when a caller exceeds a rate limit (HTTP 429)."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


def get_client_ip(request: Request) -> str:
    """
    Return the caller's address.

    X-Forwarded-For is only read when ``trusted_proxy_hops`` is set, and then
    only the entry appended by the outermost trusted proxy is used; entries
    further left are client-supplied.
    """
    hops = settings.trusted_proxy_hops
    if hops > 0:
        header = request.headers.get("x-forwarded-for", "")
        forwarded = [hop.strip() for hop in header.split(",") if hop.strip()]
        if len(forwarded) >= hops:
            return forwarded[-hops]
    return request.client.host if request.client else "unknown"


async def _check_rate_limit_redis(client, key: str, limit: int, window_seconds: int) -> bool:
    """Sliding window over a Redis sorted set of request timestamps."""
    now = time.time()
    window_start = now - window_seconds

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, window_start)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    current_count = results[1]

    return current_count < limit


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    now = time.time()
    window_start = now - window_seconds

    hits = [ts for ts in _memory_store.get(key, []) if ts > window_start]

    if len(hits) >= limit:
        _memory_store[key] = hits
        return False

    hits.append(now)
    _memory_store[key] = hits
    return True


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check whether a request is within its rate limit and count it.

    Args:
        key: Unique key for this limit (e.g., "login:203.0.113.7")
        limit: Maximum requests allowed in the window
        window_seconds: Window length in seconds

    Returns:
        True if the request is allowed, False if the limit is exceeded
    """
    client = redis_conn.get_redis()

    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


async def enforce_rate_limit(key: str, limit: int, window_seconds: int) -> None:
    """
    Count a request against ``key`` and raise when over the limit.

    Raises:
        RateLimitExceeded: When the limit is exceeded (HTTP 429)
    """
    if not await check_rate_limit(key, limit, window_seconds):
        logger.warning(f"Rate limit exceeded for {key}: {limit}/{window_seconds}s")
        raise RateLimitExceeded(limit, window_seconds)


def reset_rate_limits() -> None:
    """Clear the in-memory counters."""
    _memory_store.clear()


__all__ = [
    "RateLimitExceeded",
    "check_rate_limit",
    "enforce_rate_limit",
    "get_client_ip",
    "reset_rate_limits",
]
