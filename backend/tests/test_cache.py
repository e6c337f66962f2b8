"""Tests for the Redis caching helpers (no Redis server required)."""

import pytest

from millbook.config import settings
from millbook.utils import cache
from millbook.utils.cache import cache_key, cached, invalidate_cache


@pytest.fixture
def unreachable_redis(monkeypatch):
    """Caching on, pointed at a port nothing listens on."""
    monkeypatch.setattr(settings, "cache_enabled", True)
    monkeypatch.setattr(settings, "redis_url", "redis://127.0.0.1:1/0")
    monkeypatch.setattr(cache, "_redis_client", None)
    yield
    monkeypatch.setattr(cache, "_redis_client", None)


@pytest.mark.unit
class TestCacheKey:

    def test_same_args_same_key(self):
        assert cache_key(limit=50, offset=0) == cache_key(offset=0, limit=50)

    def test_different_args_different_key(self):
        assert cache_key(limit=50, offset=0) != cache_key(limit=100, offset=0)

    def test_no_args(self):
        assert cache_key() == "default"


@pytest.mark.unit
@pytest.mark.asyncio
class TestFallback:

    async def test_disabled_cache_calls_through(self):
        calls = 0

        @cached(prefix="test")
        async def stats(booking_type: str | None = None):
            nonlocal calls
            calls += 1
            return {"type": booking_type}

        assert await stats(booking_type="delivery") == {"type": "delivery"}
        assert await stats(booking_type="delivery") == {"type": "delivery"}
        assert calls == 2

    async def test_redis_down_falls_back(self, unreachable_redis):
        @cached(prefix="test")
        async def stats(booking_type: str | None = None):
            return {"type": booking_type}

        assert await stats(booking_type="production") == {"type": "production"}

    async def test_invalidate_with_redis_down(self, unreachable_redis):
        await invalidate_cache("test:*")
