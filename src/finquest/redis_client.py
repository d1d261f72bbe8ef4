"""
Optional Redis connection for rate-limit counters and notification fan-out.

FinQuest runs without Redis: when ``FINQUEST_REDIS_URL`` is empty or the server
does not answer a ping at startup, every helper here degrades to a no-op and
callers see ``None`` from :func:`get_redis_or_none`.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

NOTIFICATIONS_CHANNEL = "pubsub:notifications"
RATE_LIMIT_PREFIX = "ratelimit"

_client: redis.Redis | None = None


async def connect_redis(url: str, max_connections: int = 20) -> redis.Redis | None:
    """Open the shared client and check it with a ping.

    Returns None (and keeps no client) when ``url`` is empty or unreachable.
    """
    global _client  # noqa: PLW0603
    if not url:
        logger.info("Redis not configured; rate limiting and fan-out disabled")
        return None
    client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )
    try:
        await client.ping()
    except (RedisError, OSError):
        logger.warning("Redis unavailable at %s, continuing without it", url, exc_info=True)
        await client.aclose()
        return None
    _client = client
    return client


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis_or_none() -> redis.Redis | None:
    """Get the shared client, or None when Redis is not in use."""
    return _client


async def count_hit(client: Any, client_key: str, window: int, ttl_seconds: int) -> int:
    """Increment the fixed-window counter for ``client_key`` and return the new count."""
    key = f"{RATE_LIMIT_PREFIX}:{client_key}:{window}"
    pipe = client.pipeline()
    pipe.incr(key)
    pipe.expire(key, ttl_seconds)
    results: list[Any] = await pipe.execute()
    return int(results[0])


async def publish_event(client: Any | None, payload: dict[str, Any], channel: str = NOTIFICATIONS_CHANNEL) -> bool:
    """Best-effort publish of a JSON event. Returns False when nothing was sent."""
    if client is None:
        return False
    try:
        await client.publish(channel, json.dumps(payload, default=str))
    except (RedisError, OSError):
        logger.warning("Failed to publish event on %s", channel, exc_info=True)
        return False
    return True
