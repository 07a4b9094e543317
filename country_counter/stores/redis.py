"""Redis cache for geolocation lookups.

One key per looked-up address, `geo:<ip>` -> JSON GeoLocation payload,
expiring after a day. Nothing else lives in Redis.
"""

import json
import logging
from typing import Any

import redis.asyncio as redis

from country_counter.settings import get_settings

TTL_GEOLOCATION = 86400  # 1 day
PREFIX_GEOLOCATION = "geo:"

# Redis client (initialized on startup, only when the cache is enabled)
_redis: redis.Redis | None = None
logger = logging.getLogger("uvicorn.error")


async def init_redis(url: str | None = None) -> None:
    """Connect to Redis and check it answers; defaults to REDIS_URL."""
    global _redis
    client = redis.from_url(
        url or get_settings().redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    await client.ping()
    _redis = client
    logger.info("Redis connected, geolocation cache enabled")


async def close_redis() -> None:
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def _client() -> redis.Redis:
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


def geolocation_key(ip: str) -> str:
    return f"{PREFIX_GEOLOCATION}{ip}"


async def get_geolocation_cache(ip: str) -> dict[str, Any] | None:
    """Cached geolocation payload for an IP, or None on a miss.

    Raises:
        RuntimeError: If Redis was never initialized.
        ValueError: If the cached value is not valid JSON.
    """
    raw = await _client().get(geolocation_key(ip))
    if not raw:
        return None
    return json.loads(raw)


async def set_geolocation_cache(ip: str, payload: dict[str, Any]) -> None:
    """Cache a geolocation payload for an IP for TTL_GEOLOCATION seconds."""
    await _client().setex(geolocation_key(ip), TTL_GEOLOCATION, json.dumps(payload))
