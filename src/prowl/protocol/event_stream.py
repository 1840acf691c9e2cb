"""Event-stream handler — one persistent ``text/event-stream`` per tab.

Wire format::

    event: init            sent once, as soon as the connection is accepted
    data: <epoch>
    retry: <reload_interval_ms>

    event: reload          once per delivered tick
    data:

    : keepalive            every heartbeat_interval seconds

The connection never ends on its own. A browser that sees ``init`` on its
first connection ignores it; one that sees ``init`` after an error knows the
server came back and reloads.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

from prowl.protocol.endpoints import NO_STORE, method_not_allowed, wait_for_disconnect

if TYPE_CHECKING:
    from prowl._types import Receive, Scope, Send
    from prowl.config import ProwlConfig
    from prowl.observability.collector import EventCollector
    from prowl.reactive.broadcaster import Broadcaster

RELOAD_FRAME = b"event: reload\ndata:\n\n"
KEEPALIVE_FRAME = b": keepalive\n\n"


def init_frame(epoch: str, retry_ms: int) -> bytes:
    """The ``init`` event announcing a freshly accepted connection."""
    return f"event: init\ndata: {epoch}\nretry: {retry_ms}\n\n".encode("utf-8")


class EventStreamHandler:
    """ASGI app serving the reload event stream.

    Args:
        broadcaster: Source of reload ticks.
        config: Supplies the retry and heartbeat intervals.
        collector: Optional EventCollector for connection lifecycle events.

    """

    __slots__ = ("_broadcaster", "_collector", "_config")

    def __init__(
        self,
        broadcaster: Broadcaster,
        config: ProwlConfig,
        collector: EventCollector | None = None,
    ) -> None:
        self._broadcaster = broadcaster
        self._config = config
        self._collector = collector

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("method") != "GET":
            await method_not_allowed(send, ("GET",))
            return

        started = time.perf_counter()
        sent = 0
        reason = "cancelled"

        with self._broadcaster.subscribe() as sub:
            if self._collector is not None:
                self._collector.record_connect("event-stream", sub.id, scope.get("path", ""))

            disconnect = asyncio.ensure_future(wait_for_disconnect(receive))
            waiter: asyncio.Future[object] | None = None
            try:
                await send({
                    "type": "http.response.start",
                    "status": 200,
                    "headers": [
                        (b"content-type", b"text/event-stream"),
                        NO_STORE,
                        (b"x-accel-buffering", b"no"),
                    ],
                })
                await send({
                    "type": "http.response.body",
                    "body": init_frame(self._broadcaster.epoch, self._config.reload_interval_ms),
                    "more_body": True,
                })

                while True:
                    if waiter is None:
                        waiter = asyncio.ensure_future(sub.wait())
                    done, _ = await asyncio.wait(
                        {waiter, disconnect},
                        timeout=self._config.heartbeat_interval,
                        return_when=asyncio.FIRST_COMPLETED,
                    )
                    if disconnect in done:
                        reason = "client"
                        break
                    if waiter in done:
                        waiter = None
                        frame = RELOAD_FRAME
                        sent += 1
                    else:
                        frame = KEEPALIVE_FRAME
                    await send({"type": "http.response.body", "body": frame, "more_body": True})
            except OSError:
                reason = "write_error"
            finally:
                disconnect.cancel()
                if waiter is not None:
                    waiter.cancel()
                if self._collector is not None:
                    self._collector.record_disconnect(
                        "event-stream",
                        sub.id,
                        reason=reason,
                        events_sent=sent,
                        duration_ms=(time.perf_counter() - started) * 1000,
                    )
