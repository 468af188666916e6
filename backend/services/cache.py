"""
Redis Cache Service

Caching layer for the worker directory fetched from the workforce API.
TTL-based with key prefixing and JSON serialization; every failure is a miss.
"""

import hashlib
import json
import logging
from typing import Any

import redis.asyncio as aioredis

from backend.config import get_settings
from integrations.base import WorkerDirectory

logger = logging.getLogger(__name__)

settings = get_settings()

# Lazy-initialized connection pool
_redis: aioredis.Redis | None = None


async def _get_redis() -> aioredis.Redis:
    """Get or create Redis connection."""
    global _redis
    if _redis is None:
        _redis = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
        )
    return _redis


async def get_cached(key: str) -> Any | None:
    """
    Get a cached value by key.

    Returns None if caching is off, the key doesn't exist or Redis is unavailable.
    """
    if not settings.cache_enabled:
        return None
    try:
        r = await _get_redis()
        data = await r.get(key)
        if data:
            return json.loads(data)
        return None
    except Exception as e:
        logger.debug(f"Cache miss (error): {key} - {e}")
        return None


async def set_cached(key: str, value: Any, ttl: int | None = None) -> bool:
    """
    Set a cached value with TTL.

    Returns True if cached successfully, False when off or on error.
    """
    if not settings.cache_enabled:
        return False
    try:
        r = await _get_redis()
        await r.set(key, json.dumps(value, default=str), ex=ttl or settings.worker_cache_ttl_seconds)
        return True
    except Exception as e:
        logger.debug(f"Cache set failed: {key} - {e}")
        return False


# ── Key Builders ──────────────────────────────────────


def worker_directory_key(external_token: str) -> str:
    """Cache key for the worker directory visible to one external token."""
    digest = hashlib.sha256(external_token.encode()).hexdigest()[:32]
    return f"workers:{digest}"


# ── Typed Helpers ─────────────────────────────────────


async def get_worker_directory(external_token: str) -> WorkerDirectory | None:
    data = await get_cached(worker_directory_key(external_token))
    if data is None:
        return None
    try:
        return WorkerDirectory.model_validate(data)
    except ValueError as e:
        logger.debug(f"Discarding stale worker directory cache entry: {e}")
        return None


async def set_worker_directory(external_token: str, directory: WorkerDirectory) -> bool:
    return await set_cached(
        worker_directory_key(external_token),
        directory.model_dump(mode="json"),
    )
