"""Body rewriter — inserts the client script into an HTML byte stream.

The script goes immediately before the first ``</body>`` (ASCII
case-insensitive). When the tag never shows up, as with truncated or
fragment HTML, the script is appended at the very end instead.

The scanner is incremental: between chunks it keeps at most
``len(b"</body>") - 1`` trailing bytes, enough to find a tag split across a
chunk boundary, so large documents never have to be buffered.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

    from prowl._types import RawHeaders

_TAG = b"</body>"
_LOOKBACK = len(_TAG) - 1


class BodyRewriter:
    """Incremental scanner emitting the body with the script inserted once.

    Usage::

        rw = BodyRewriter(script)
        for chunk in chunks:
            out.write(rw.feed(chunk))
        out.write(rw.finish())

    """

    __slots__ = ("_done", "_finished", "_injected_at", "_script", "_tail")

    def __init__(self, script: bytes) -> None:
        self._script = script
        self._tail = b""
        self._done = False
        self._finished = False
        self._injected_at: Literal["body", "end"] | None = None

    @property
    def injected_at(self) -> Literal["body", "end"] | None:
        """Where the script went: before ``</body>``, at the end, or not yet."""
        return self._injected_at

    def feed(self, chunk: bytes) -> bytes:
        """Consume one chunk and return the bytes that are safe to emit."""
        if self._finished:
            msg = "feed() called after finish()"
            raise RuntimeError(msg)
        if self._done:
            return chunk
        if not chunk:
            return b""

        data = self._tail + chunk
        index = data.lower().find(_TAG)
        if index != -1:
            self._done = True
            self._tail = b""
            self._injected_at = "body"
            return data[:index] + self._script + data[index:]

        # Keep just enough to match a tag split across the boundary.
        keep = min(_LOOKBACK, len(data))
        self._tail = data[len(data) - keep:]
        return data[: len(data) - keep]

    def finish(self) -> bytes:
        """Flush held-back bytes, appending the script if it wasn't placed."""
        if self._finished:
            return b""
        self._finished = True
        if self._done:
            return b""
        self._done = True
        self._injected_at = "end"
        tail, self._tail = self._tail, b""
        return tail + self._script


def rewrite_body(body: bytes, script: bytes) -> bytes:
    """Rewrite a fully buffered body."""
    rw = BodyRewriter(script)
    return rw.feed(body) + rw.finish()


async def rewrite_stream(
    chunks: AsyncIterable[bytes],
    script: bytes,
) -> AsyncIterator[bytes]:
    """Rewrite a lazily produced body chunk by chunk.

    Errors raised while reading *chunks* propagate unchanged.
    """
    rw = BodyRewriter(script)
    async for chunk in chunks:
        out = rw.feed(chunk)
        if out:
            yield out
    yield rw.finish()


def adjust_headers(headers: RawHeaders, extra: int) -> RawHeaders:
    """Return *headers* with ``Content-Length`` grown by *extra* bytes.

    Headers without a valid length come back unchanged: the body will be
    streamed and the server frames it as chunked.
    """
    adjusted: RawHeaders = []
    for name, value in headers:
        if name.lower() == b"content-length" and value.strip().isdigit():
            value = str(int(value) + extra).encode("latin-1")
        adjusted.append((name, value))
    return adjusted
