"""
Redis caching service for slot listings.

CACHING STRATEGY
================

What we cache:
  - Slot listing responses (JSON-serialized), optionally filtered by doctor
  - Cache key pattern: "slots:list:doctor={doctor_id|all}"

Why:
  - Browsing the slot list is the most frequent read
  - A listing only changes when an administrator adds a slot

Invalidation strategy:
  - On slot creation: delete every "slots:list:*" key
  - TTL-based expiry as safety net (5 minutes)

Why NOT cache slot detail or availability:
  - Seat counts change on every admission, confirmation and expiry
  - Admission never reads from here; it counts rows under the slot lock
"""

import json
from typing import Optional
from uuid import UUID

import redis.asyncio as redis
from slot_reservation.core.config import get_settings
from slot_reservation.core.logging import get_logger
from slot_reservation.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

SLOT_LIST_PREFIX = "slots:list:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled or unreachable."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def _make_slot_list_key(doctor_id: Optional[UUID]) -> str:
    return f"{SLOT_LIST_PREFIX}doctor={doctor_id or 'all'}"


async def get_cached_slots(doctor_id: Optional[UUID] = None) -> Optional[list[dict]]:
    client = await get_redis()
    if not client:
        return None

    key = _make_slot_list_key(doctor_id)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_slots(doctor_id: Optional[UUID], data: list[dict]) -> None:
    """Cache slot listing with TTL."""
    client = await get_redis()
    if not client:
        return

    key = _make_slot_list_key(doctor_id)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        record_cache_operation("set", hit=False)
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_slot_cache() -> None:
    """Drop every cached slot listing (SCAN over the key prefix)."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{SLOT_LIST_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Redis cache statistics for the health endpoint."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
