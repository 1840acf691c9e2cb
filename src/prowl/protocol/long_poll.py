"""Long-poll handler — holds one request open until the next reload.

Each request subscribes on arrival, so a tick published before the request
began never completes it. The response is sent exactly once:

- ``200 reload`` when a tick arrives;
- ``200 timeout`` when ``long_poll_timeout`` elapses first; the client simply
  opens the next poll;
- nothing when the client disconnects first.

A poll that fails outright tells the client the server went away; it then
probes ``probe_path`` until the server answers and reloads.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

from prowl.protocol.endpoints import NO_STORE, method_not_allowed, send_response, wait_for_disconnect

if TYPE_CHECKING:
    from prowl._types import Receive, Scope, Send
    from prowl.config import ProwlConfig
    from prowl.observability.collector import EventCollector
    from prowl.reactive.broadcaster import Broadcaster


class LongPollHandler:
    """ASGI app serving the long-poll endpoint.

    Args:
        broadcaster: Source of reload ticks.
        config: Supplies the hold timeout.
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
        reason = "cancelled"
        sent = 0

        with self._broadcaster.subscribe() as sub:
            if self._collector is not None:
                self._collector.record_connect("long-poll", sub.id, scope.get("path", ""))

            waiter = asyncio.ensure_future(sub.wait())
            disconnect = asyncio.ensure_future(wait_for_disconnect(receive))
            try:
                done, _ = await asyncio.wait(
                    {waiter, disconnect},
                    timeout=self._config.long_poll_timeout,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if disconnect in done:
                    reason = "client"
                    return

                if waiter in done:
                    reason, body = "reload", b"reload"
                    sent = 1
                else:
                    reason, body = "timeout", b"timeout"
                await send_response(send, 200, body, headers=[NO_STORE])
            except OSError:
                reason = "write_error"
            finally:
                waiter.cancel()
                disconnect.cancel()
                if self._collector is not None:
                    self._collector.record_disconnect(
                        "long-poll",
                        sub.id,
                        reason=reason,
                        events_sent=sent,
                        duration_ms=(time.perf_counter() - started) * 1000,
                    )
