"""
Unit tests for backend.services.cache

Redis is replaced by an in-memory stand-in; failures must read as misses.
"""

import pytest

from backend.services import cache
from tests.factories import make_directory


class InMemoryRedis:
    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.ttls[key] = ex


class BrokenRedis:
    async def get(self, key):
        raise ConnectionError("redis down")

    async def set(self, key, value, ex=None):
        raise ConnectionError("redis down")


@pytest.fixture
def redis_stub(monkeypatch):
    stub = InMemoryRedis()

    async def get_redis():
        return stub

    monkeypatch.setattr(cache.settings, "cache_enabled", True)
    monkeypatch.setattr(cache, "_get_redis", get_redis)
    return stub


class TestWorkerDirectoryCache:
    """Test the typed worker directory helpers."""

    def test_key_hides_token(self):
        key = cache.worker_directory_key("secret-token")

        assert key.startswith("workers:")
        assert "secret-token" not in key
        assert key == cache.worker_directory_key("secret-token")
        assert key != cache.worker_directory_key("other-token")

    @pytest.mark.asyncio
    async def test_roundtrip(self, redis_stub):
        directory = make_directory()

        assert await cache.set_worker_directory("token", directory) is True
        cached = await cache.get_worker_directory("token")

        assert cached == directory
        assert redis_stub.ttls[cache.worker_directory_key("token")] == cache.settings.worker_cache_ttl_seconds

    @pytest.mark.asyncio
    async def test_miss(self, redis_stub):
        assert await cache.get_worker_directory("unknown") is None

    @pytest.mark.asyncio
    async def test_stale_entry_is_discarded(self, redis_stub):
        redis_stub.store[cache.worker_directory_key("token")] = '{"workers": "nope"}'

        assert await cache.get_worker_directory("token") is None

    @pytest.mark.asyncio
    async def test_disabled(self, monkeypatch, redis_stub):
        monkeypatch.setattr(cache.settings, "cache_enabled", False)

        assert await cache.set_worker_directory("token", make_directory()) is False
        assert redis_stub.store == {}

    @pytest.mark.asyncio
    async def test_errors_are_misses(self, monkeypatch):
        async def get_redis():
            return BrokenRedis()

        monkeypatch.setattr(cache.settings, "cache_enabled", True)
        monkeypatch.setattr(cache, "_get_redis", get_redis)

        assert await cache.set_worker_directory("token", make_directory()) is False
        assert await cache.get_worker_directory("token") is None
