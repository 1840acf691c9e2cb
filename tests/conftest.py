"""Shared test fixtures for prowl.

Everything runs in-process: ASGI apps are called directly with a queue-backed
``receive`` and a recording ``send``, no server and no sockets.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

HTML_PAGE = b"<!DOCTYPE html>\n<html>\n<head><title>t</title></head>\n<body><p>hi</p></body>\n</html>\n"


def make_scope(
    path: str = "/",
    *,
    method: str = "GET",
    headers: Iterable[tuple[bytes, bytes]] = (),
    extensions: dict[str, Any] | None = None,
    scope_type: str = "http",
) -> dict[str, Any]:
    """Build a minimal ASGI scope."""
    scope: dict[str, Any] = {
        "type": scope_type,
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode("latin-1"),
        "query_string": b"",
        "headers": list(headers),
    }
    if extensions is not None:
        scope["extensions"] = extensions
    return scope


@dataclass
class ASGIResult:
    """Everything an app sent for one request."""

    messages: list[dict[str, Any]] = field(default_factory=list)

    @property
    def start(self) -> dict[str, Any]:
        return next(m for m in self.messages if m["type"] == "http.response.start")

    @property
    def status(self) -> int:
        return self.start["status"]

    @property
    def headers(self) -> list[tuple[bytes, bytes]]:
        return list(self.start.get("headers", ()))

    def header(self, name: bytes) -> bytes | None:
        for key, value in self.headers:
            if key.lower() == name:
                return value
        return None

    @property
    def body_messages(self) -> list[dict[str, Any]]:
        return [m for m in self.messages if m["type"] == "http.response.body"]

    @property
    def body(self) -> bytes:
        return b"".join(m.get("body", b"") for m in self.body_messages)


class Connection:
    """One live request against an ASGI app.

    ``receive`` yields the request body once, then blocks until
    ``disconnect()`` is called, like a client holding the socket open.
    """

    def __init__(
        self,
        app: Callable[..., Any],
        scope: dict[str, Any],
        *,
        body: bytes = b"",
        fail_after: int | None = None,
    ) -> None:
        self.app = app
        self.scope = scope
        self.result = ASGIResult()
        self._incoming: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._incoming.put_nowait({"type": "http.request", "body": body, "more_body": False})
        self._outgoing: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._fail_after = fail_after
        self.task: asyncio.Task[None] | None = None

    async def _receive(self) -> dict[str, Any]:
        return await self._incoming.get()

    async def _send(self, message: dict[str, Any]) -> None:
        if self._fail_after is not None and len(self.result.messages) >= self._fail_after:
            raise ConnectionResetError("client went away")
        self.result.messages.append(message)
        await self._outgoing.put(message)

    def start(self) -> Connection:
        self.task = asyncio.ensure_future(self.app(self.scope, self._receive, self._send))
        return self

    async def next_message(self, timeout: float = 1.0) -> dict[str, Any]:
        """Wait for the next message the app sends."""
        return await asyncio.wait_for(self._outgoing.get(), timeout)

    async def next_body(self, timeout: float = 1.0) -> bytes:
        """Wait for the next body chunk, skipping the response start."""
        while True:
            message = await self.next_message(timeout)
            if message["type"] == "http.response.body":
                return message.get("body", b"")

    def pending(self) -> int:
        """Messages sent but not yet read through ``next_message``."""
        return self._outgoing.qsize()

    async def disconnect(self, timeout: float = 1.0) -> ASGIResult:
        """Simulate the client going away and wait for the app to return."""
        self._incoming.put_nowait({"type": "http.disconnect"})
        return await self.finish(timeout)

    async def finish(self, timeout: float = 1.0) -> ASGIResult:
        """Wait for the app to return on its own."""
        assert self.task is not None
        await asyncio.wait_for(self.task, timeout)
        return self.result


@pytest.fixture
def connect() -> Callable[..., Connection]:
    """Factory opening a live Connection: ``connect(app, "/path", method=...)``."""

    def _connect(
        app: Callable[..., Any],
        path: str = "/",
        *,
        method: str = "GET",
        headers: Iterable[tuple[bytes, bytes]] = (),
        extensions: dict[str, Any] | None = None,
        body: bytes = b"",
        fail_after: int | None = None,
    ) -> Connection:
        scope = make_scope(path, method=method, headers=headers, extensions=extensions)
        return Connection(app, scope, body=body, fail_after=fail_after).start()

    return _connect


@pytest.fixture
def request_app() -> Callable[..., Any]:
    """Coroutine factory running one request to completion: ``await request_app(app, "/")``."""

    async def _request(
        app: Callable[..., Any],
        path: str = "/",
        *,
        method: str = "GET",
        headers: Iterable[tuple[bytes, bytes]] = (),
        extensions: dict[str, Any] | None = None,
        scope_type: str = "http",
        timeout: float = 1.0,
    ) -> ASGIResult:
        scope = make_scope(
            path, method=method, headers=headers, extensions=extensions, scope_type=scope_type,
        )
        conn = Connection(app, scope).start()
        return await conn.finish(timeout)

    return _request


class RecordingApp:
    """ASGI app sending a canned response and remembering the scope it saw.

    Args:
        chunks: Body chunks; each becomes one ``http.response.body`` message.
        headers: Response headers. ``content-length`` is *not* added
            automatically; pass it when the test needs a fixed-length body.
        status: Response status.

    """

    def __init__(
        self,
        chunks: Sequence[bytes] = (HTML_PAGE,),
        *,
        headers: Iterable[tuple[bytes, bytes]] = ((b"content-type", b"text/html; charset=utf-8"),),
        status: int = 200,
    ) -> None:
        self.chunks = list(chunks)
        self.headers = list(headers)
        self.status = status
        self.scopes: list[dict[str, Any]] = []

    async def __call__(self, scope: dict[str, Any], receive: Any, send: Any) -> None:
        self.scopes.append(scope)
        if scope["type"] != "http":
            return
        await send({"type": "http.response.start", "status": self.status, "headers": self.headers})
        if not self.chunks:
            await send({"type": "http.response.body", "body": b"", "more_body": False})
            return
        for i, chunk in enumerate(self.chunks):
            await send({
                "type": "http.response.body",
                "body": chunk,
                "more_body": i < len(self.chunks) - 1,
            })


def html_headers(body: bytes | None = None, **extra: str) -> list[tuple[bytes, bytes]]:
    """HTML response headers, with a ``content-length`` when *body* is given."""
    headers = [(b"content-type", b"text/html; charset=utf-8")]
    if body is not None:
        headers.append((b"content-length", str(len(body)).encode()))
    headers.extend((k.replace("_", "-").encode(), v.encode()) for k, v in extra.items())
    return headers


@pytest.fixture
def recording_app() -> type[RecordingApp]:
    return RecordingApp


@pytest.fixture
def make_html_headers() -> Callable[..., list[tuple[bytes, bytes]]]:
    return html_headers


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """A tiny static site on disk."""
    (tmp_path / "index.html").write_bytes(HTML_PAGE)
    (tmp_path / "style.css").write_text("body { margin: 0; }\n")
    return tmp_path
