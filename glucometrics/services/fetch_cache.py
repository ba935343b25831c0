"""Short-lived, deduplicating cache for expensive fetches.

IOB and COB are computed from the same treatment window on every poll.
``FetchCache`` makes concurrent callers share one in-flight fetch per key
and keeps the result for a TTL slightly below the poll interval, so each
poll hits the store once.

Failures are never cached: every waiter of a failed fetch receives the
exception and the next call fetches again.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from typing import Any

from glucometrics.config import settings
from glucometrics.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class _CacheEntry:
    value: Any
    stored_at: float


class FetchCache:
    """Per-key TTL cache with in-flight request sharing.

    Args:
        ttl_seconds: How long a successful result is served
        clock: Monotonic time source in seconds (injectable for tests)
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = (
            settings.treatment_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        )
        self._clock = clock
        self._entries: dict[Hashable, _CacheEntry] = {}
        self._in_flight: dict[Hashable, asyncio.Task] = {}
        self._versions: dict[Hashable, Hashable] = {}

    def _fresh_entry(self, key: Hashable) -> _CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return entry

    async def get_or_fetch(
        self,
        key: Hashable,
        fetcher: Callable[[], Awaitable[Any]],
        *,
        data_version: Hashable | None = None,
    ) -> Any:
        """Return the cached value for ``key`` or run ``fetcher`` once.

        Args:
            key: Cache key (e.g. ``("treatments", window_hours)``)
            fetcher: Zero-argument coroutine function producing the value
            data_version: Marker of the underlying data, such as the time
                the last treatment was saved. A marker different from the
                previous call's invalidates the key first.

        Returns:
            The fetched or cached value.

        Raises:
            Exception: Whatever ``fetcher`` raised, to every concurrent
                caller sharing that fetch.
        """
        if data_version is not None:
            previous = self._versions.get(key)
            if previous is not None and previous != data_version:
                logger.debug("Data version changed, invalidating", key=str(key))
                self.invalidate(key)
            self._versions[key] = data_version

        entry = self._fresh_entry(key)
        if entry is not None:
            logger.debug("Fetch cache hit", key=str(key))
            return entry.value

        task = self._in_flight.get(key)
        if task is None:
            logger.debug("Fetch cache miss", key=str(key))
            task = asyncio.ensure_future(self._run_fetch(key, fetcher))
            self._in_flight[key] = task
        else:
            logger.debug("Joining in-flight fetch", key=str(key))

        # One cancelled waiter must not cancel the shared fetch
        return await asyncio.shield(task)

    async def _run_fetch(
        self, key: Hashable, fetcher: Callable[[], Awaitable[Any]]
    ) -> Any:
        current = asyncio.current_task()
        try:
            value = await fetcher()
        except BaseException:
            if self._in_flight.get(key) is current:
                del self._in_flight[key]
            raise

        # invalidate() removes the task from _in_flight; its result is
        # then handed to existing waiters only.
        if self._in_flight.get(key) is current:
            del self._in_flight[key]
            self._entries[key] = _CacheEntry(value=value, stored_at=self._clock())
        else:
            logger.debug("Discarding result invalidated while in flight", key=str(key))
        return value

    def invalidate(self, key: Hashable | None = None) -> None:
        """Drop cached values for one key, or for every key when None.

        Fetches already in flight still resolve for their waiters but do
        not populate the cache.
        """
        if key is None:
            self._entries.clear()
            self._in_flight.clear()
        else:
            self._entries.pop(key, None)
            self._in_flight.pop(key, None)

    def __contains__(self, key: Hashable) -> bool:
        return self._fresh_entry(key) is not None
