"""
Live query service.

A live query re-emits a full snapshot of its rows whenever the trip table
changes. Each subscriber gets the current snapshot right away and every
later one in order, until it unsubscribes.
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional

logger = logging.getLogger(__name__)

_CLOSED = object()
_UNSET = object()


class Subscription:
    """
    One listener on a live query.

    Iterate with ``async for snapshot in subscription`` or call ``next()``.
    Once unsubscribed, pending snapshots are dropped and iteration stops.
    """

    def __init__(self, query: "LiveQuery"):
        self._query = query
        self._queue: asyncio.Queue = asyncio.Queue()
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def _push(self, snapshot: Any) -> None:
        if self._active:
            self._queue.put_nowait(snapshot)

    def unsubscribe(self) -> None:
        """Stop listening. Idempotent."""
        if not self._active:
            return
        self._active = False
        self._query._detach(self)
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    async def next(self, timeout: Optional[float] = None) -> Any:
        """
        Wait for the next snapshot.

        Raises:
            StopAsyncIteration: If the subscription has been closed
            asyncio.TimeoutError: If ``timeout`` elapses first
        """
        if timeout is None:
            item = await self._queue.get()
        else:
            item = await asyncio.wait_for(self._queue.get(), timeout)
        if item is _CLOSED:
            # Keep the marker so repeated calls keep failing the same way
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item

    def pending(self) -> List[Any]:
        """Drain and return the snapshots already delivered but not consumed."""
        items = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is _CLOSED:
                self._queue.put_nowait(_CLOSED)
                break
            items.append(item)
        return items

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Any:
        return await self.next()

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *args) -> None:
        self.unsubscribe()


class LiveQuery:
    """
    A subscribable, restartable query over the trip table.

    Args:
        loader: Coroutine function returning the current snapshot
        lock: Lock shared with the owning store; every load/emit runs under it
            so subscribers observe snapshots in commit order
        skip_missing: After the initial snapshot, do not emit ``None``
            (used for single-record queries once the record is gone)
    """

    def __init__(
        self,
        loader: Callable[[], Awaitable[Any]],
        lock: asyncio.Lock,
        skip_missing: bool = False,
        name: str = "query",
    ):
        self._loader = loader
        self._lock = lock
        self._skip_missing = skip_missing
        self._subscribers: List[Subscription] = []
        self._last: Any = _UNSET
        self.name = name

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self) -> Subscription:
        """Register a subscriber and queue the current snapshot for it."""
        subscription = Subscription(self)
        async with self._lock:
            snapshot = await self._loader()
            # A write may have committed before its refresh ran; current
            # subscribers get the newer snapshot now instead of never.
            self._emit(snapshot)
            self._subscribers.append(subscription)
            subscription._push(snapshot)
        return subscription

    async def first(self) -> Any:
        """Current snapshot, without staying subscribed."""
        async with await self.subscribe() as subscription:
            return await subscription.next()

    async def stream(self) -> AsyncIterator[Any]:
        """Async generator over snapshots; unsubscribes when closed."""
        subscription = await self.subscribe()
        try:
            async for snapshot in subscription:
                yield snapshot
        finally:
            subscription.unsubscribe()

    async def refresh(self) -> bool:
        """
        Reload and push to subscribers. Caller must hold the shared lock.

        Returns:
            True if a new snapshot was emitted
        """
        if not self._subscribers:
            return False
        return self._emit(await self._loader())

    def _emit(self, snapshot: Any) -> bool:
        if snapshot == self._last:
            return False
        self._last = snapshot
        if not self._subscribers or (snapshot is None and self._skip_missing):
            return False
        for subscription in list(self._subscribers):
            subscription._push(snapshot)
        logger.debug("Live query %s emitted to %d subscriber(s)", self.name, len(self._subscribers))
        return True

    def close(self) -> None:
        """Unsubscribe every listener."""
        for subscription in list(self._subscribers):
            subscription.unsubscribe()

    def _detach(self, subscription: Subscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)
