"""Tests for caching functionality and reference-data lookups."""

import pytest
import redis.asyncio as redis

from app.config import settings
from app.middleware.exceptions import ReferenceDataError
from app.models.reference import Currency
from app.utils import cache as cache_module
from app.utils.cache import cache_key, cached, invalidate_cache


class BrokenRedis:
    """Stands in for a Redis server that is down."""

    async def get(self, key):
        raise redis.ConnectionError("connection refused")

    async def setex(self, key, ttl, value):
        raise redis.ConnectionError("connection refused")

    async def scan_iter(self, match=None):
        raise redis.ConnectionError("connection refused")
        yield  # pragma: no cover


class ReadOnlyRedis:
    """Serves reads but rejects writes, like a replica or a full instance."""

    async def get(self, key):
        return None

    async def setex(self, key, ttl, value):
        raise redis.ResponseError("READONLY You can't write against a read only replica.")


@pytest.mark.cache
@pytest.mark.asyncio
class TestCacheUtility:
    """Test cache utility functions without a Redis server."""

    async def test_cache_key_generation(self):
        key1 = cache_key(limit=50, offset=0)
        key2 = cache_key(limit=50, offset=0)
        key3 = cache_key(limit=100, offset=0)

        # Same args = same key
        assert key1 == key2

        # Different args = different key
        assert key1 != key3

    async def test_disabled_cache_calls_through(self):
        call_count = 0

        @cached(ttl=10, prefix="test")
        async def expensive_function(value: int):
            nonlocal call_count
            call_count += 1
            return {"result": value}

        assert settings.cache_enabled is False
        await expensive_function(value=1)
        await expensive_function(value=1)
        assert call_count == 2

    async def test_redis_failure_falls_back(self, monkeypatch):
        monkeypatch.setattr(settings, "cache_enabled", True)

        async def broken():
            return BrokenRedis()

        monkeypatch.setattr(cache_module, "get_redis", broken)

        @cached(ttl=10, prefix="test")
        async def lookup(code: str):
            return [{"code": code}]

        assert await lookup(code="USD") == [{"code": "USD"}]

    async def test_failed_store_still_calls_once(self, monkeypatch):
        monkeypatch.setattr(settings, "cache_enabled", True)

        async def read_only():
            return ReadOnlyRedis()

        monkeypatch.setattr(cache_module, "get_redis", read_only)
        call_count = 0

        @cached(ttl=10, prefix="test")
        async def lookup(code: str):
            nonlocal call_count
            call_count += 1
            return [{"code": code}]

        assert await lookup(code="USD") == [{"code": "USD"}]
        assert call_count == 1

    async def test_invalidate_swallows_redis_failure(self, monkeypatch):
        monkeypatch.setattr(settings, "cache_enabled", True)

        async def broken():
            return BrokenRedis()

        monkeypatch.setattr(cache_module, "get_redis", broken)
        await invalidate_cache("reference:*")


@pytest.mark.integration
@pytest.mark.asyncio
class TestReferenceData:
    async def test_lookups_list_active_rows(self, refs, reference):
        codes = [c["code"] for c in await refs.currencies()]
        assert codes == ["AED", "EUR", "USD"]
        ports = await refs.lookup("ports")
        assert {p["code"] for p in ports} == {"AEJEA", "INNSA"}

    async def test_inactive_currency_does_not_resolve(self, db_session, refs, reference):
        db_session.add(Currency(code="XAU", name="Gold", is_active=False))
        await db_session.commit()

        with pytest.raises(ReferenceDataError):
            await refs.require_currency("sale_currency", "XAU")

    async def test_missing_id_is_allowed(self, refs, reference):
        await refs.require_id("ports", "port_of_loading_id", None)
