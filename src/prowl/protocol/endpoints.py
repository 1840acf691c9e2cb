"""Small ASGI endpoints and response helpers shared by the protocol handlers.

- ``ProbeHandler`` — trivial liveness check the long-poll client hits after
  a disconnect until the server answers again.
- ``ReloadTriggerHandler`` — manual ``POST`` that calls ``reload()``.
- ``StatsHandler`` — JSON view of subscribers and the event log.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prowl._types import RawHeaders, Receive, Scope, Send
    from prowl.observability.collector import EventCollector
    from prowl.reactive.broadcaster import Broadcaster

NO_STORE: tuple[bytes, bytes] = (b"cache-control", b"no-store")


async def send_response(
    send: Send,
    status: int,
    body: bytes = b"",
    *,
    content_type: str = "text/plain; charset=utf-8",
    headers: Iterable[tuple[bytes, bytes]] = (),
    include_body: bool = True,
) -> None:
    """Send a complete, non-streamed response."""
    raw: RawHeaders = [
        (b"content-type", content_type.encode("latin-1")),
        (b"content-length", str(len(body)).encode("latin-1")),
        *headers,
    ]
    await send({"type": "http.response.start", "status": status, "headers": raw})
    await send({
        "type": "http.response.body",
        "body": body if include_body else b"",
        "more_body": False,
    })


async def method_not_allowed(send: Send, allowed: Iterable[str]) -> None:
    """Answer 405 with an ``Allow`` header."""
    allow = ", ".join(allowed).encode("latin-1")
    await send_response(send, 405, b"Method Not Allowed", headers=[(b"allow", allow)])


async def wait_for_disconnect(receive: Receive) -> None:
    """Consume request messages until the client goes away."""
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            return


class ProbeHandler:
    """``GET``/``HEAD`` liveness probe answering ``200 ok``."""

    __slots__ = ()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        method = scope.get("method", "GET")
        if method not in ("GET", "HEAD"):
            await method_not_allowed(send, ("GET", "HEAD"))
            return
        await send_response(send, 200, b"ok", headers=[NO_STORE], include_body=method == "GET")


class ReloadTriggerHandler:
    """``POST`` endpoint that triggers a reload.

    Responds with JSON ``{"notified": n}``, the number of subscriptions the
    tick was handed to.
    """

    __slots__ = ("_broadcaster",)

    def __init__(self, broadcaster: Broadcaster) -> None:
        self._broadcaster = broadcaster

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("method") != "POST":
            await method_not_allowed(send, ("POST",))
            return
        notified = self._broadcaster.reload()
        payload = json.dumps({"notified": notified}).encode("utf-8")
        await send_response(send, 200, payload, content_type="application/json", headers=[NO_STORE])


class StatsHandler:
    """``GET`` endpoint reporting broadcaster state and event log stats."""

    __slots__ = ("_broadcaster", "_collector")

    def __init__(self, broadcaster: Broadcaster, collector: EventCollector | None) -> None:
        self._broadcaster = broadcaster
        self._collector = collector

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("method") != "GET":
            await method_not_allowed(send, ("GET",))
            return
        payload = json.dumps(
            {
                "epoch": self._broadcaster.epoch,
                "subscribers": self._broadcaster.subscriber_count,
                "event_log": self._collector.log.stats() if self._collector else None,
            },
            indent=2,
        ).encode("utf-8")
        await send_response(send, 200, payload, content_type="application/json", headers=[NO_STORE])
