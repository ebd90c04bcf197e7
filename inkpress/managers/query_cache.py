# inkpress/managers/query_cache.py
"""
Client-side query cache keyed by query name and canonical parameters.

Entries are written by fetches and by optimistic mutations. A fetch that
was cancelled, or that started before the latest write to its key, never
writes its result.
"""

from asyncio import CancelledError, Lock, Task, create_task, current_task, gather, shield
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import Any, Self

import orjson

from inkpress.configs import file_logger

logger = file_logger(getLogger(__name__))

type Fetcher = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True, order=True)
class QueryKey:
    """
    Identity of a cached query.

    ``params_json`` is the parameter set serialized with sorted keys, so
    equal parameter sets always produce equal keys.
    """

    name: str
    params_json: str = "null"

    @classmethod
    def of(cls, name: str, params: Any = None) -> Self:  # noqa: ANN401
        return cls(name, orjson.dumps(params, option=orjson.OPT_SORT_KEYS).decode())

    @property
    def params(self) -> Any:  # noqa: ANN401
        return orjson.loads(self.params_json)


@dataclass(slots=True)
class CacheEntry:
    value: Any
    stale: bool = False


@dataclass(frozen=True)
class Snapshot:
    """Verbatim reference to an entry's value, or a record of its absence."""

    key: QueryKey
    value: Any = None
    present: bool = False


class QueryCache:
    """
    In-memory query cache with in-flight fetch tracking and key locks.

    Features:
        - One in-flight fetch per key; concurrent callers share it
        - ``cancel`` aborts in-flight fetches so they cannot overwrite
          an optimistic write
        - ``invalidate`` marks entries stale and refetches them in the
          background when a fetcher is registered
        - ``lock`` serializes mutations touching the same keys
    """

    def __init__(self) -> None:
        self._entries: dict[QueryKey, CacheEntry] = {}
        self._fetchers: dict[str, Fetcher] = {}
        self._inflight: dict[QueryKey, Task[Any]] = {}
        self._background: set[Task[Any]] = set()
        self._locks: dict[QueryKey, Lock] = {}
        # Holders plus waiters per lock; a lock is dropped when this reaches zero
        self._lock_users: dict[QueryKey, int] = {}
        # Bumped on writes to keys with a load in flight, so that load does not
        # overwrite them; dropped with the load
        self._versions: dict[QueryKey, int] = {}

    def register(self, name: str, fetcher: Fetcher) -> None:
        """Register the coroutine used to (re)load queries called ``name``."""
        self._fetchers[name] = fetcher

    # Reads

    def peek(self, key: QueryKey) -> Any:  # noqa: ANN401
        """Current value for ``key`` or None."""
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        return entry is None or entry.stale

    def entries(self, name: str) -> list[tuple[QueryKey, Any]]:
        """Every cached ``(key, value)`` for queries called ``name``."""
        return [(key, entry.value) for key, entry in self._entries.items() if key.name == name]

    def snapshot(self, key: QueryKey) -> Snapshot:
        entry = self._entries.get(key)
        if entry is None:
            return Snapshot(key)
        return Snapshot(key, entry.value, present=True)

    def snapshot_matching(self, name: str, params: Any = None) -> list[Snapshot]:  # noqa: ANN401
        """
        Snapshot a single key, or every cached key of ``name`` when ``params`` is None.

        A single key is snapshotted even when absent, so a rollback can
        remove an entry the mutation created.
        """
        if params is not None:
            return [self.snapshot(QueryKey.of(name, params))]
        return [self.snapshot(key) for key in self._matching(name)]

    # Writes

    def write(self, key: QueryKey, value: Any) -> None:  # noqa: ANN401
        self._bump(key)
        self._entries[key] = CacheEntry(value)

    def remove(self, key: QueryKey) -> None:
        self._bump(key)
        self._entries.pop(key, None)

    def restore(self, snapshot: Snapshot) -> None:
        """Put back the snapshotted value, removing the entry if it was absent."""
        if snapshot.present:
            self.write(snapshot.key, snapshot.value)
        else:
            self.remove(snapshot.key)

    def invalidate(self, name: str, params: Any = None) -> list[QueryKey]:  # noqa: ANN401
        """
        Mark matching entries stale and schedule a refetch for each.

        Returns:
            list[QueryKey]: Keys that were marked stale.
        """
        keys = [QueryKey.of(name, params)] if params is not None else self._matching(name)
        stale: list[QueryKey] = []
        for key in keys:
            entry = self._entries.get(key)
            if entry is None:
                continue
            entry.stale = True
            stale.append(key)
            if key.name in self._fetchers:
                self._track(create_task(self._refetch(key)))
        return stale

    # Fetching

    async def fetch(self, key: QueryKey) -> Any:  # noqa: ANN401
        """
        Load ``key`` through its registered fetcher, sharing any in-flight load.

        If the load is cancelled by ``cancel`` the current cached value is
        returned instead.

        Raises:
            LookupError: If no fetcher is registered for ``key.name``
        """
        if key.name not in self._fetchers:
            mssg = f"No fetcher registered for '{key.name}'"
            raise LookupError(mssg)

        task = self._inflight.get(key)
        if task is None or task.done():
            task = create_task(self._load(key))
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget_inflight(k, t))

        try:
            return await shield(task)
        except CancelledError:
            me = current_task()
            if not task.cancelled() or (me is not None and me.cancelling()):
                raise
            return self.peek(key)

    def cancel(self, name: str, params: Any = None) -> int:  # noqa: ANN401
        """
        Cancel in-flight fetches for one key, or for every key of ``name``.

        Returns:
            int: Number of fetches cancelled.
        """
        target = QueryKey.of(name, params) if params is not None else None
        cancelled = 0
        for key, task in list(self._inflight.items()):
            if key.name != name or (target is not None and key != target):
                continue
            self._bump(key)
            if task.cancel():
                cancelled += 1
        if cancelled:
            logger.debug(f"Cancelled {cancelled} in-flight fetch(es) for {name}")
        return cancelled

    async def wait_idle(self) -> None:
        """Wait until no fetch or background refetch is running."""
        while pending := [*self._inflight.values(), *self._background]:
            await gather(*pending, return_exceptions=True)

    # Locking

    @asynccontextmanager
    async def lock(self, keys: Iterable[QueryKey]) -> AsyncIterator[None]:
        """
        Hold the locks of ``keys`` for the duration of the block.

        Locks are always acquired in sorted key order, so two holders of
        overlapping key sets cannot deadlock.
        """
        ordered = sorted(set(keys))
        for key in ordered:
            self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with AsyncExitStack() as stack:
                for key in ordered:
                    await stack.enter_async_context(self._locks.setdefault(key, Lock()))
                yield
        finally:
            for key in ordered:
                self._lock_users[key] -= 1
                if not self._lock_users[key]:
                    del self._lock_users[key]
                    self._locks.pop(key, None)

    # Internals

    def _matching(self, name: str) -> list[QueryKey]:
        return [key for key in self._entries if key.name == name]

    def _bump(self, key: QueryKey) -> None:
        if key in self._inflight:
            self._versions[key] = self._versions.get(key, 0) + 1

    async def _load(self, key: QueryKey) -> Any:  # noqa: ANN401
        version = self._versions.get(key, 0)
        value = await self._fetchers[key.name](key.params)
        if self._versions.get(key, 0) != version:
            logger.debug(f"Discarding result for {key}: written while loading")
            return self.peek(key)
        self._entries[key] = CacheEntry(value)
        return value

    async def _refetch(self, key: QueryKey) -> None:
        try:
            await self.fetch(key)
        except Exception:
            logger.exception(f"Background refetch failed for {key}; entry stays stale")

    def _forget_inflight(self, key: QueryKey, task: Task[Any]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
            self._versions.pop(key, None)

    def _track(self, task: Task[Any]) -> None:
        self._background.add(task)
        task.add_done_callback(self._background.discard)
