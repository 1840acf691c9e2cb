"""Observability — lifecycle events for connections, reloads and injections.

All events are frozen dataclasses with nanosecond timestamps, safe for
concurrent production from request tasks and watcher threads.

Quick Start:
    >>> from prowl.observability import EventCollector, EventLog
    >>> log = EventLog()
    >>> collector = EventCollector(log)
    >>> # Pass collector to LiveReload(app, collector=collector)

"""

from prowl.observability.collector import EventCollector
from prowl.observability.events import (
    ClientConnected,
    ClientDisconnected,
    ReloadBroadcast,
    ResponseInjected,
    StackEvent,
    now_ns,
)
from prowl.observability.log import EventLog

__all__ = [
    "ClientConnected",
    "ClientDisconnected",
    "EventCollector",
    "EventLog",
    "ReloadBroadcast",
    "ResponseInjected",
    "StackEvent",
    "now_ns",
]
