"""Protocol layer — the ASGI endpoints browsers talk to."""

from prowl.protocol.endpoints import ProbeHandler, ReloadTriggerHandler, StatsHandler
from prowl.protocol.event_stream import EventStreamHandler
from prowl.protocol.long_poll import LongPollHandler

__all__ = [
    "EventStreamHandler",
    "LongPollHandler",
    "ProbeHandler",
    "ReloadTriggerHandler",
    "StatsHandler",
]
