"""Query cache between readers and the repository.

An explicit object: whoever reads or writes tasks is handed the same
instance and invalidates keys after mutations.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

TASKS_QUERY = "tasks"


@dataclass
class _Entry:
    value: Any = None
    fetched_at: float | None = None  # None = never loaded or invalidated
    generation: int = 0
    in_flight: asyncio.Future | None = None


class QueryCache:
    """
    Key -> last successful load, with a staleness window.

    At most one load per key runs at a time; concurrent fetch() calls for the
    same key await that load's result. A failed load is retried `retries`
    times before the error reaches every waiter.
    """

    def __init__(
        self,
        stale_time: float = 300.0,
        retries: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.stale_time = stale_time
        self.retries = retries
        self.clock = clock
        self._entries: dict[str, _Entry] = {}

    def get_query_data(self, key: str) -> Any:
        """Last loaded value for key, fresh or not."""
        entry = self._entries.get(key)
        return entry.value if entry else None

    def set_query_data(self, key: str, value: Any) -> None:
        """Overwrite the cached value for key and mark it fresh."""
        entry = self._entries.setdefault(key, _Entry())
        entry.value = value
        entry.fetched_at = self.clock()

    def invalidate(self, key: str) -> None:
        """Force the next fetch() of key to reload."""
        entry = self._entries.get(key)
        if entry is None:
            return
        entry.fetched_at = None
        entry.generation += 1
        logger.debug(f"Invalidated query {key!r}")

    def is_fresh(self, key: str, stale_time: float | None = None) -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.fetched_at is None:
            return False
        window = self.stale_time if stale_time is None else stale_time
        return self.clock() - entry.fetched_at < window

    async def _load(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        attempt = 0
        while True:
            try:
                return await loader()
            except Exception as e:
                if attempt >= self.retries:
                    raise
                attempt += 1
                logger.warning(f"Query {key!r} failed ({e}), retry {attempt}/{self.retries}")

    async def fetch(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        stale_time: float | None = None,
    ) -> Any:
        """Cached value if fresh, else the result of (a shared) loader() call."""
        entry = self._entries.setdefault(key, _Entry())
        if entry.in_flight is not None:
            return await asyncio.shield(entry.in_flight)
        if self.is_fresh(key, stale_time):
            return entry.value

        future = asyncio.get_running_loop().create_future()
        entry.in_flight = future
        generation = entry.generation
        try:
            value = await self._load(key, loader)
        except Exception as e:
            entry.in_flight = None
            future.set_exception(e)
            future.exception()  # waiters re-raise it; don't warn when there are none
            raise
        except BaseException:
            entry.in_flight = None
            future.cancel()
            raise

        entry.in_flight = None
        entry.value = value
        # Invalidated while loading: keep the value but leave it stale.
        entry.fetched_at = self.clock() if entry.generation == generation else None
        future.set_result(value)
        return value
