"""Process-wide bus that tells read views their query results are stale.

Query keys are tuples such as ``("financial_reports", owner_id)``. A
subscription key matches every invalidated key it is a prefix of, so
``("financial_reports",)`` hears about every owner.
"""

import inspect
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from functools import lru_cache

from src.dashboard.core.logging import get_logger

logger = get_logger(__name__)

QueryKey = tuple[str, ...]
InvalidationCallback = Callable[[QueryKey], Awaitable[None] | None]

PROJECTS_KEY = "projects"
FINANCIAL_REPORTS_KEY = "financial_reports"

# Oldest stale marks are dropped past this; subscribers have already
# cleared the cached value by then.
MAX_STALE_KEYS = 10_000


def projects_key(owner_id: str) -> QueryKey:
    return (PROJECTS_KEY, owner_id)


def financial_reports_key(owner_id: str) -> QueryKey:
    return (FINANCIAL_REPORTS_KEY, owner_id)


class QueryInvalidationBus:
    """Registry of invalidation subscribers plus the set of stale query keys.

    Holds no per-request state; one instance lives for the whole process.
    """

    def __init__(self, max_stale: int = MAX_STALE_KEYS) -> None:
        self._subscribers: list[tuple[QueryKey, InvalidationCallback]] = []
        self._stale: OrderedDict[QueryKey, None] = OrderedDict()
        self._max_stale = max_stale

    def on_invalidate(self, key: QueryKey, callback: InvalidationCallback) -> Callable[[], None]:
        """Subscribe to invalidations of key (and of every key it prefixes).

        Returns:
            A function that removes the subscription.
        """
        entry = (tuple(key), callback)
        self._subscribers.append(entry)

        def unsubscribe() -> None:
            if entry in self._subscribers:
                self._subscribers.remove(entry)

        return unsubscribe

    async def invalidate(self, key: QueryKey) -> None:
        """Mark key stale and notify matching subscribers in registration order.

        A failing subscriber is logged; the remaining ones are still notified.
        """
        key = tuple(key)
        self._stale[key] = None
        self._stale.move_to_end(key)
        while len(self._stale) > self._max_stale:
            self._stale.popitem(last=False)
        for prefix, callback in list(self._subscribers):
            if key[: len(prefix)] != prefix:
                continue
            try:
                result = callback(key)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Invalidation subscriber failed", query_key=list(key))

    def is_stale(self, key: QueryKey) -> bool:
        return tuple(key) in self._stale

    def consume_stale(self, key: QueryKey) -> bool:
        """Return whether key was stale, clearing the mark.

        The next read after an invalidation calls this to know it must
        bypass any cached value.
        """
        key = tuple(key)
        if key not in self._stale:
            return False
        del self._stale[key]
        return True

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


@lru_cache
def get_invalidation_bus() -> QueryInvalidationBus:
    """Return the process-wide bus, created on first use."""
    return QueryInvalidationBus()
