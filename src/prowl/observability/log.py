"""Event log — bounded, thread-safe store of live-reload events.

Keeps a ring buffer of ``StackEvent`` objects for the stats endpoint and for
tests that assert on connection lifecycles.

Thread Safety:
    All methods are protected by a ``threading.Lock``. ``reload()`` may be
    recorded from a watcher thread while request tasks record connections.

"""

import threading
from collections import Counter, deque
from typing import Any

from prowl.observability.events import StackEvent


class EventLog:
    """Bounded event store with query support.

    When the buffer is full, the oldest events are discarded automatically.

    Args:
        max_events: Maximum number of events to retain.

    """

    __slots__ = ("_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._events: deque[StackEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: StackEvent) -> None:
        """Record an event in the log."""
        with self._lock:
            self._events.append(event)

    def query(
        self,
        *,
        event_type: type | None = None,
        transport: str | None = None,
        since_ns: int = 0,
        limit: int = 100,
    ) -> list[StackEvent]:
        """Query events, most recent first.

        Args:
            event_type: Only return events of this type.
            transport: Only return connection events for this transport.
            since_ns: Only return events at or after this timestamp.
            limit: Maximum number of events to return.

        """
        with self._lock:
            events = list(self._events)

        results: list[StackEvent] = []
        for event in reversed(events):
            if len(results) >= limit:
                break
            if event_type is not None and not isinstance(event, event_type):
                continue
            if since_ns and event.timestamp_ns < since_ns:
                continue
            if transport is not None and getattr(event, "transport", None) != transport:
                continue
            results.append(event)
        return results

    def recent(self, n: int = 20) -> list[StackEvent]:
        """Return the N most recent events, oldest first."""
        with self._lock:
            items = list(self._events)
        return items[-n:]

    def clear(self) -> int:
        """Clear all events and return the count that was cleared."""
        with self._lock:
            count = len(self._events)
            self._events.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def stats(self) -> dict[str, Any]:
        """Return summary statistics about stored events."""
        with self._lock:
            events = list(self._events)

        by_type = Counter(type(event).__name__ for event in events)
        return {
            "total": len(events),
            "max_events": self._max_events,
            "by_type": dict(by_type),
        }
