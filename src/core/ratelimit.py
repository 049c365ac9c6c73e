"""Optional request rate limiting backed by Upstash Redis.

Applied to the auth endpoints and to every AI generation endpoint. When the
Upstash credentials are absent (development, tests) the limiter is disabled
and every request is allowed.
"""

from __future__ import annotations

import logging
import time
import uuid
from functools import lru_cache
from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, HTTPException, Request, status

from core.config import Settings, get_settings


if TYPE_CHECKING:
    from upstash_ratelimit import Ratelimit

logger = logging.getLogger(__name__)

RATE_LIMIT_PREFIX = "edumind:ratelimit"

# Paths that are never limited
RATE_LIMIT_BYPASS_PATHS: frozenset[str] = frozenset(
    {"/api/v1/health", "/api/v1/health/"}
)


@lru_cache
def get_ratelimiter() -> Ratelimit | None:
    """Create and cache the sliding-window limiter, or None when unconfigured."""
    from upstash_ratelimit import Ratelimit, SlidingWindow
    from upstash_redis import Redis

    settings = get_settings()
    if not settings.UPSTASH_REDIS_REST_URL or not settings.UPSTASH_REDIS_REST_TOKEN:
        logger.warning(
            "Upstash Redis not configured; rate limiting is disabled. Set "
            "UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN to enable it."
        )
        return None

    ratelimit = Ratelimit(
        redis=Redis(
            url=settings.UPSTASH_REDIS_REST_URL,
            token=settings.UPSTASH_REDIS_REST_TOKEN,
        ),
        limiter=SlidingWindow(
            max_requests=settings.RATE_LIMIT_REQUESTS,
            window=settings.RATE_LIMIT_WINDOW_SECONDS,
        ),
        prefix=RATE_LIMIT_PREFIX,
    )
    logger.info(
        "Rate limiting enabled: %d requests per %d seconds",
        settings.RATE_LIMIT_REQUESTS,
        settings.RATE_LIMIT_WINDOW_SECONDS,
    )
    return ratelimit


def client_identifier(request: Request) -> str:
    """First X-Forwarded-For hop, else the peer address, else a unique key."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    # Unidentifiable clients must not share one bucket
    return f"unknown:{uuid.uuid4()}"


async def check_rate_limit(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """FastAPI dependency raising 429 once the caller's window is exhausted.

    Usage:
        @router.post("/generate-quiz", dependencies=[Depends(check_rate_limit)])
    """
    if request.url.path in RATE_LIMIT_BYPASS_PATHS:
        return

    ratelimiter = get_ratelimiter()
    if ratelimiter is None:
        return

    identifier = client_identifier(request)
    try:
        response = ratelimiter.limit(identifier)
    except Exception as e:  # noqa: BLE001 - an unreachable limiter must not block users
        logger.error("Rate limit check failed: %s", e)
        return
    if response.allowed:
        return

    now_ms = int(time.time() * 1000)
    retry_after = max(1, (response.reset - now_ms) // 1000)
    logger.warning(
        "Rate limit exceeded for %s on %s; reset in %d seconds",
        identifier,
        request.url.path,
        retry_after,
    )
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Too many requests. Please try again later.",
        headers={
            "Retry-After": str(retry_after),
            "X-RateLimit-Limit": str(settings.RATE_LIMIT_REQUESTS),
            "X-RateLimit-Remaining": str(response.remaining),
        },
    )
