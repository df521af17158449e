"""Tests for the optional Redis client (src/dashboard/core/redis.py)."""

from src.dashboard.core import redis as redis_module
from src.dashboard.core.redis import close_redis, get_redis, reset_redis_state


class TestGetRedis:
    async def test_returns_none_when_not_configured(self) -> None:
        """Without REDIS_URL the report cache runs without Redis."""
        reset_redis_state()

        assert await get_redis() is None

    async def test_does_not_retry_after_initial_attempt(self) -> None:
        reset_redis_state()

        assert await get_redis() is None
        assert await get_redis() is None

        assert redis_module._connection_attempted is True
        assert redis_module._redis is None

    async def test_reset_clears_state(self) -> None:
        redis_module._connection_attempted = True
        redis_module._redis = "dummy"  # type: ignore[assignment]
        redis_module._pool = "dummy"  # type: ignore[assignment]

        reset_redis_state()

        assert redis_module._connection_attempted is False
        assert redis_module._redis is None
        assert redis_module._pool is None


class TestCloseRedis:
    async def test_close_when_not_connected(self) -> None:
        reset_redis_state()

        await close_redis()

        assert redis_module._redis is None
        assert redis_module._pool is None
        assert redis_module._connection_attempted is False

    async def test_close_allows_reconnect_attempt(self) -> None:
        reset_redis_state()
        await get_redis()
        assert redis_module._connection_attempted is True

        await close_redis()

        assert redis_module._connection_attempted is False
