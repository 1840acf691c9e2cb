"""Unified event model for live-reload observability.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal

# ---------------------------------------------------------------------------
# Connection events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ClientConnected:
    """A browser opened an event stream or a long poll.

    Attributes:
        transport: Which protocol endpoint accepted the exchange.
        subscription_id: Broadcaster subscription bound to the exchange.
        path: Request path.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    transport: Literal["event-stream", "long-poll"]
    subscription_id: int
    path: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ClientDisconnected:
    """A protocol exchange ended and its subscription was released.

    Attributes:
        transport: Which protocol endpoint served the exchange.
        subscription_id: Broadcaster subscription that was released.
        reason: Why the exchange ended.
        events_sent: Reload events written to the client.
        duration_ms: Lifetime of the exchange in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    transport: Literal["event-stream", "long-poll"]
    subscription_id: int
    reason: Literal["client", "write_error", "reload", "timeout", "cancelled"]
    events_sent: int
    duration_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Reload and injection events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ReloadBroadcast:
    """``reload()`` was called.

    Attributes:
        sequence: Sequence number of the published tick.
        subscribers: Subscriptions registered when it was published.
        delivered: Subscriptions the tick was handed to.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    sequence: int
    subscribers: int
    delivered: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ResponseInjected:
    """The client script was inserted into an HTML response.

    Attributes:
        path: Request path of the rewritten response.
        position: ``"body"`` before ``</body>``, ``"end"`` when appended.
        streamed: True if the response had no ``Content-Length``.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    position: Literal["body", "end"]
    streamed: bool
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type StackEvent = ClientConnected | ClientDisconnected | ReloadBroadcast | ResponseInjected


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
