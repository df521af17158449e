"""Read-through cache for the financial-report projection.

Entries live in Redis with no TTL: they are dropped only when the
invalidation bus says the owner's reports changed. When Redis is not
available every read goes straight to the store.
"""

from collections.abc import Awaitable, Callable
from functools import lru_cache

from pydantic import TypeAdapter
from redis.exceptions import RedisError

from src.dashboard.core.config import get_settings
from src.dashboard.core.invalidation import (
    FINANCIAL_REPORTS_KEY,
    QueryInvalidationBus,
    QueryKey,
    financial_reports_key,
    get_invalidation_bus,
)
from src.dashboard.core.logging import get_logger
from src.dashboard.core.redis import get_redis
from src.dashboard.schemas.project import FinancialReportRow

logger = get_logger(__name__)

_ROWS = TypeAdapter(list[FinancialReportRow])

ReportLoader = Callable[[], Awaitable[list[FinancialReportRow]]]


class _PendingLoad:
    __slots__ = ("invalidated",)

    def __init__(self) -> None:
        self.invalidated = False


class ReportProjectionCache:
    """Financial-report rows per owner, invalidated explicitly through the bus."""

    def __init__(self, bus: QueryInvalidationBus, prefix: str = FINANCIAL_REPORTS_KEY):
        self.bus = bus
        self.prefix = prefix
        # Loads in flight per key; entries go away when the load finishes
        self._pending: dict[QueryKey, list[_PendingLoad]] = {}
        bus.on_invalidate((FINANCIAL_REPORTS_KEY,), self._on_invalidate)

    def redis_key(self, owner_id: str) -> str:
        return f"{self.prefix}:{owner_id}"

    async def get(self, owner_id: str, loader: ReportLoader) -> list[FinancialReportRow]:
        """Return cached rows for owner_id, loading and caching them on a miss.

        A read that follows an invalidation always calls loader.
        """
        key = financial_reports_key(owner_id)
        bypass = self.bus.consume_stale(key)
        redis = await get_redis()

        if redis is not None and not bypass:
            try:
                cached = await redis.get(self.redis_key(owner_id))
            except RedisError as e:
                logger.warning("Report cache read failed", error=str(e))
                cached = None
            if cached is not None:
                return _ROWS.validate_json(cached)

        pending = _PendingLoad()
        self._pending.setdefault(key, []).append(pending)
        try:
            rows = await loader()
        finally:
            loads = self._pending[key]
            loads.remove(pending)
            if not loads:
                del self._pending[key]

        # Skip the write if an invalidation landed while we were loading
        if redis is not None and not pending.invalidated:
            try:
                await redis.set(self.redis_key(owner_id), _ROWS.dump_json(rows))
            except RedisError as e:
                logger.warning("Report cache write failed", error=str(e))
        return rows

    async def _on_invalidate(self, key: QueryKey) -> None:
        for known, loads in self._pending.items():
            if known[: len(key)] == key:
                for pending in loads:
                    pending.invalidated = True
        redis = await get_redis()
        if redis is None:
            return
        if len(key) > 1:
            await redis.delete(self.redis_key(key[1]))
            return
        # Prefix-only invalidation: drop every owner's entry
        async for cached_key in redis.scan_iter(match=f"{self.prefix}:*"):
            await redis.delete(cached_key)


@lru_cache
def get_report_cache() -> ReportProjectionCache:
    """Return the process-wide cache, subscribed to the process-wide bus."""
    settings = get_settings()
    return ReportProjectionCache(get_invalidation_bus(), prefix=settings.report_cache_prefix)
