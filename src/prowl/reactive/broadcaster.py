"""Reload broadcaster — fans "reload now" out to every connected browser.

Each protocol exchange (an event-stream connection or a pending long poll)
holds one Subscription for its lifetime. ``reload()`` hands a tick to every
subscription registered at call time and returns without waiting for any of
them to consume it.

Each subscription owns a bounded queue on its own event loop. Delivery is
``put_nowait``: a subscriber whose queue is full loses the extra tick (it
still has unconsumed ones, so it reacts anyway) and nobody else notices.
``reload()`` may be called from any thread; ticks for subscriptions on a
loop other than the caller's are scheduled with ``call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import itertools
import threading
import time
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from prowl._errors import ReactiveError

if TYPE_CHECKING:
    from types import TracebackType

    from prowl._types import SubscriptionID
    from prowl.observability.collector import EventCollector


@dataclass(frozen=True, slots=True)
class ReloadEvent:
    """A single "something changed" tick.

    Attributes:
        sequence: Per-broadcaster counter, for logs and tests only.
        timestamp_ns: Monotonic nanosecond timestamp of the ``reload()`` call.

    """

    sequence: int
    timestamp_ns: int


class Subscription:
    """Handle binding one HTTP exchange to the broadcaster.

    Created by ``Broadcaster.subscribe()`` on the exchange's event loop.
    Use it as a context manager so the exchange always deregisters::

        with broadcaster.subscribe() as sub:
            event = await sub.wait(timeout=30.0)

    """

    __slots__ = ("_broadcaster", "_closed", "_loop", "_queue", "dropped", "id")

    def __init__(
        self,
        broadcaster: Broadcaster,
        sub_id: SubscriptionID,
        loop: asyncio.AbstractEventLoop,
        queue_size: int,
    ) -> None:
        self.id = sub_id
        self.dropped = 0
        self._broadcaster = broadcaster
        self._loop = loop
        self._queue: asyncio.Queue[ReloadEvent] = asyncio.Queue(maxsize=queue_size)
        self._closed = False

    def __repr__(self) -> str:
        return f"<Subscription id={self.id} pending={self.pending} closed={self._closed}>"

    @property
    def pending(self) -> int:
        """Ticks delivered but not yet consumed."""
        return self._queue.qsize()

    @property
    def closed(self) -> bool:
        """Whether this subscription has been deregistered."""
        return self._closed

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        """The event loop this subscription's exchange runs on."""
        return self._loop

    async def wait(self, timeout: float | None = None) -> ReloadEvent | None:
        """Wait for the next tick.

        Returns:
            The next ReloadEvent, or None if *timeout* seconds elapsed first.

        """
        if timeout is None:
            return await self._queue.get()
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except TimeoutError:
            return None

    def get_nowait(self) -> ReloadEvent | None:
        """Return a pending tick without waiting, or None."""
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def close(self) -> None:
        """Deregister from the broadcaster. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._broadcaster.unsubscribe(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _offer(self, event: ReloadEvent) -> None:
        # Runs on the owning loop.
        if self._closed:
            return
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1


class Broadcaster:
    """Process-wide fan-out of reload ticks.

    Thread-safe: the subscriber map is protected by a lock that is held only
    to snapshot or mutate the map, never while delivering.

    Args:
        queue_size: Ticks buffered per subscription before new ones drop.
        collector: Optional EventCollector recording each broadcast.

    """

    def __init__(
        self,
        *,
        queue_size: int = 16,
        collector: EventCollector | None = None,
    ) -> None:
        if queue_size < 1:
            msg = "queue_size must be at least 1"
            raise ReactiveError(msg)
        self._queue_size = queue_size
        self._collector = collector
        self._subscribers: dict[SubscriptionID, Subscription] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._sequence = itertools.count(1)
        self._epoch = uuid.uuid4().hex

    @property
    def epoch(self) -> str:
        """Identifier of this broadcaster instance, fresh on every restart."""
        return self._epoch

    @property
    def subscriber_count(self) -> int:
        """Number of live subscriptions."""
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """Register a new subscription bound to the running event loop.

        Raises:
            ReactiveError: If called outside a running event loop.

        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            msg = "Broadcaster.subscribe() must be called from a running event loop"
            raise ReactiveError(msg) from exc

        with self._lock:
            sub = Subscription(self, next(self._ids), loop, self._queue_size)
            self._subscribers[sub.id] = sub
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        """Remove a subscription. Unknown or already removed is a no-op."""
        with self._lock:
            self._subscribers.pop(sub.id, None)
        sub._closed = True

    def get_subscribers(self) -> tuple[Subscription, ...]:
        """Snapshot of live subscriptions (no lock held on return)."""
        with self._lock:
            return tuple(self._subscribers.values())

    def reload(self) -> int:
        """Publish one tick to every current subscription.

        Never blocks on subscribers and never raises for their sake.

        Returns:
            Number of subscriptions the tick was handed to.

        """
        with self._lock:
            event = ReloadEvent(sequence=next(self._sequence), timestamp_ns=time.monotonic_ns())
            subscribers = tuple(self._subscribers.values())

        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None

        delivered = 0
        dead: list[Subscription] = []
        for sub in subscribers:
            if sub.loop is current:
                sub._offer(event)
                delivered += 1
                continue
            try:
                sub.loop.call_soon_threadsafe(sub._offer, event)
                delivered += 1
            except RuntimeError:
                dead.append(sub)  # owning loop is closed

        for sub in dead:
            self.unsubscribe(sub)

        if self._collector is not None:
            self._collector.record_broadcast(
                event.sequence,
                subscribers=len(subscribers),
                delivered=delivered,
            )
        return delivered
