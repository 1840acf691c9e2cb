"""Injectability classifier — decides from headers alone whether to rewrite.

A response is a rewrite candidate when its ``Content-Type`` starts with
``text/html`` and it carries no ``Content-Encoding`` at all, not even
``identity``: a compressed body can't be rewritten byte-wise. If the stack
compresses HTML, add prowl inside the compression middleware so it sees the
uncompressed response. A ``Content-Length`` that is present but unparseable
also disqualifies the response: it couldn't be kept in step with the body.

``Content-Length`` is only a precondition in strict mode
(``require_content_length=True``). Otherwise bodies of unknown length are
injected while streaming and the server frames them as chunked.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

_HTML = "text/html"


@dataclass(frozen=True, slots=True)
class ClassificationHeaders:
    """The response headers the injection decision reads.

    Attributes:
        content_type: Raw ``Content-Type`` value ("" when absent).
        content_length: Parsed ``Content-Length``, None when absent or invalid.
        content_encoding: Raw ``Content-Encoding`` value ("" when absent).
        length_malformed: A ``Content-Length`` header was present but not a
            valid non-negative integer.

    """

    content_type: str = ""
    content_length: int | None = None
    content_encoding: str = ""
    length_malformed: bool = False

    @classmethod
    def from_raw(cls, headers: Iterable[tuple[bytes, bytes]]) -> ClassificationHeaders:
        """Snapshot the relevant headers from an ASGI header list."""
        content_type = ""
        content_length: int | None = None
        content_encoding = ""
        length_malformed = False
        for name, value in headers:
            key = name.lower()
            if key == b"content-type":
                content_type = value.decode("latin-1").strip()
            elif key == b"content-length":
                content_length = _parse_length(value)
                length_malformed = content_length is None
            elif key == b"content-encoding":
                content_encoding = value.decode("latin-1").strip()
        return cls(
            content_type=content_type,
            content_length=content_length,
            content_encoding=content_encoding,
            length_malformed=length_malformed,
        )

    @property
    def media_type(self) -> str:
        """Content type without parameters, lowercased."""
        return self.content_type.split(";", 1)[0].strip().lower()


def _parse_length(value: bytes) -> int | None:
    text = value.strip()
    if not text.isdigit():
        return None
    return int(text)


def is_injectable(
    headers: ClassificationHeaders,
    *,
    require_content_length: bool = False,
) -> bool:
    """Return True if a response with *headers* should carry the client script."""
    if not headers.media_type.startswith(_HTML):
        return False
    if headers.content_encoding:
        return False
    if headers.length_malformed:
        return False
    if require_content_length and headers.content_length is None:
        return False
    return True
