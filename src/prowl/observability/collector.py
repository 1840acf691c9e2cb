"""Event collector — the single recording surface for prowl's runtime.

The broadcaster records each ``reload()``, the protocol handlers record
connection lifecycles, and the middleware records each injected response.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from prowl.observability.events import (
    ClientConnected,
    ClientDisconnected,
    ReloadBroadcast,
    ResponseInjected,
    now_ns,
)
from prowl.observability.log import EventLog

if TYPE_CHECKING:
    from typing import Literal


class EventCollector:
    """Records live-reload events into an EventLog.

    Args:
        log: The EventLog to store events in (a fresh one by default).

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Connections -----

    def record_connect(
        self,
        transport: Literal["event-stream", "long-poll"],
        subscription_id: int,
        path: str,
    ) -> None:
        """Record an accepted protocol exchange."""
        self._log.append(
            ClientConnected(
                transport=transport,
                subscription_id=subscription_id,
                path=path,
                timestamp_ns=now_ns(),
            )
        )

    def record_disconnect(
        self,
        transport: Literal["event-stream", "long-poll"],
        subscription_id: int,
        *,
        reason: Literal["client", "write_error", "reload", "timeout", "cancelled"],
        events_sent: int = 0,
        duration_ms: float = 0.0,
    ) -> None:
        """Record a finished protocol exchange."""
        self._log.append(
            ClientDisconnected(
                transport=transport,
                subscription_id=subscription_id,
                reason=reason,
                events_sent=events_sent,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Broadcasts -----

    def record_broadcast(self, sequence: int, *, subscribers: int, delivered: int) -> None:
        """Record a ``reload()`` call."""
        self._log.append(
            ReloadBroadcast(
                sequence=sequence,
                subscribers=subscribers,
                delivered=delivered,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Injection -----

    def record_injection(
        self,
        path: str,
        *,
        position: Literal["body", "end"],
        streamed: bool,
    ) -> None:
        """Record a rewritten HTML response."""
        self._log.append(
            ResponseInjected(
                path=path,
                position=position,
                streamed=streamed,
                timestamp_ns=now_ns(),
            )
        )
