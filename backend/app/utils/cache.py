"""Redis cache for reference-data lookups.

Lookups (currencies, units, ports, ...) are shared by every API worker and
change rarely, so they are cached under ``{prefix}:{function}:{hash}`` keys
until a TTL expires or someone calls ``POST /api/reference/refresh``.

Redis is optional at runtime: every Redis error is logged and the wrapped
call runs uncached.
"""

import functools
import hashlib
import json
import logging
from datetime import date, datetime
from typing import Callable, Optional

import redis.asyncio as redis
from app.config import settings

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


async def close_redis() -> None:
    """Release the connection pool (app shutdown, CLI exit)."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


async def ping_redis() -> str:
    """"ok", or the error text for the readiness probe."""
    try:
        await (await get_redis()).ping()
        return "ok"
    except redis.RedisError as e:
        return f"degraded: {str(e)[:100]}"


def cache_key(**kwargs) -> str:
    """Stable digest of keyword arguments; "default" when there are none."""
    if not kwargs:
        return "default"
    payload = json.dumps(kwargs, sort_keys=True)
    return hashlib.md5(payload.encode()).hexdigest()


def _key_for(prefix: str, func: Callable, kwargs: dict) -> str:
    # Positional args are ``self`` or a session and never part of the key
    keyable = {}
    for name, value in kwargs.items():
        if name.startswith("_"):
            continue
        if isinstance(value, (date, datetime)):
            keyable[name] = value.isoformat()
        elif isinstance(value, (str, int, float, bool, type(None))):
            keyable[name] = value
    return f"{prefix}:{func.__name__}:{cache_key(**keyable)}"


def cached(ttl: int = 300, prefix: str = "cache"):
    """Cache a coroutine's JSON-serialisable result in Redis.

        @cached(ttl=settings.reference_cache_ttl, prefix="reference")
        async def currencies(self) -> list[dict]:
            ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            if not settings.cache_enabled:
                return await func(*args, **kwargs)

            key = _key_for(prefix, func, kwargs)
            try:
                client = await get_redis()
                hit = await client.get(key)
            except redis.RedisError as e:
                logger.warning(f"Redis unavailable, serving {key} uncached: {e}")
                return await func(*args, **kwargs)
            if hit is not None:
                logger.debug(f"Cache HIT: {key}")
                return json.loads(hit)

            logger.debug(f"Cache MISS: {key}")
            result = await func(*args, **kwargs)
            try:
                await client.setex(key, ttl, json.dumps(result))
            except redis.RedisError as e:
                logger.warning(f"Could not store {key}: {e}")
            return result

        return wrapper

    return decorator


async def invalidate_cache(pattern: str) -> int:
    """Delete keys matching ``pattern`` (e.g. ``"reference:*"``); returns the count."""
    if not settings.cache_enabled:
        return 0
    try:
        client = await get_redis()
        keys = [key async for key in client.scan_iter(match=pattern)]
        if keys:
            await client.delete(*keys)
        logger.info(f"Invalidated {len(keys)} cache keys matching {pattern}")
        return len(keys)
    except redis.RedisError as e:
        logger.warning(f"Cache invalidation for {pattern} failed: {e}")
        return 0
