"""Feed — in-process broadcast channel with no replay."""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CLOSED = object()


def _call_on_loop(loop: asyncio.AbstractEventLoop, listener: Callable, value: object) -> None:
    loop.call_soon_threadsafe(listener, value)


class FeedClosedError(RuntimeError):
    """Raised when publishing to a feed that has been closed."""


class Feed(Generic[T]):
    """Broadcasts every published value to the subscribers registered at that moment.

    Delivery is in publish order and at most once per subscriber.  A
    subscriber that registers late misses everything published before it
    joined — there is no buffering or replay.

    Two ways to observe:

    1. Callback::

        unsubscribe = feed.subscribe(lambda value: print(value))

    2. Async iteration (ends when the feed is closed)::

        async for value in feed.stream():
            ...

    Args:
        name: Label used in log messages.
    """

    def __init__(self, name: str = "feed") -> None:
        self._name = name
        self._listeners: list[Callable[[T], None]] = []
        self._queues: list[asyncio.Queue] = []
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners) + len(self._queues)

    # -- Subscription ----------------------------------------------------------

    def subscribe(
        self,
        listener: Callable[[T], None],
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> Callable[[], None]:
        """Register a callback and return a function that unregisters it.

        When *loop* is given, each value is handed to that loop with
        ``call_soon_threadsafe`` instead of being delivered inline — use this
        when the observer lives on another thread (e.g. a UI loop).
        """
        if self._closed:
            msg = f"Feed '{self._name}' is closed"
            raise FeedClosedError(msg)

        if loop is not None:
            listener = functools.partial(_call_on_loop, loop, listener)

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def stream(self) -> AsyncIterator[T]:
        """Return an async iterator over values published from now on."""
        queue: asyncio.Queue = asyncio.Queue()
        if self._closed:
            queue.put_nowait(_CLOSED)
        else:
            self._queues.append(queue)
        return self._drain(queue)

    async def _drain(self, queue: asyncio.Queue) -> AsyncIterator[T]:
        try:
            while True:
                value = await queue.get()
                if value is _CLOSED:
                    return
                yield value
        finally:
            if queue in self._queues:
                self._queues.remove(queue)

    # -- Publishing ------------------------------------------------------------

    def publish(self, value: T) -> None:
        """Deliver *value* to every current subscriber."""
        if self._closed:
            msg = f"Cannot publish to closed feed '{self._name}'"
            raise FeedClosedError(msg)

        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("Listener failed on feed '%s'", self._name)
        for queue in list(self._queues):
            queue.put_nowait(value)

    def close(self) -> None:
        """Close the feed. Open streams finish; further publishing is an error."""
        if self._closed:
            return
        self._closed = True
        self._listeners.clear()
        for queue in self._queues:
            queue.put_nowait(_CLOSED)
        logger.debug("Feed '%s' closed", self._name)
