"""Tests for prowl.inject.classifier — header-based injection decision."""

from __future__ import annotations

import pytest

from prowl.inject.classifier import ClassificationHeaders, is_injectable


class TestFromRaw:
    """Reading the relevant headers out of an ASGI header list."""

    def test_reads_headers_case_insensitively(self) -> None:
        info = ClassificationHeaders.from_raw([
            (b"Content-Type", b"text/html; charset=utf-8"),
            (b"CONTENT-LENGTH", b"120"),
            (b"Content-Encoding", b"gzip"),
        ])
        assert info.content_type == "text/html; charset=utf-8"
        assert info.content_length == 120
        assert info.content_encoding == "gzip"

    def test_missing_headers(self) -> None:
        info = ClassificationHeaders.from_raw([(b"x-other", b"1")])
        assert info == ClassificationHeaders()

    @pytest.mark.parametrize("value", [b"", b"abc", b"-1", b"1.5"])
    def test_invalid_length_is_none(self, value: bytes) -> None:
        info = ClassificationHeaders.from_raw([(b"content-length", value)])
        assert info.content_length is None

    def test_media_type_strips_parameters(self) -> None:
        info = ClassificationHeaders(content_type="Text/HTML ; charset=utf-8")
        assert info.media_type == "text/html"


class TestIsInjectable:
    """The injection rule itself."""

    def test_plain_html(self) -> None:
        assert is_injectable(ClassificationHeaders(content_type="text/html", content_length=10))

    def test_html_with_charset(self) -> None:
        assert is_injectable(ClassificationHeaders(content_type="text/html; charset=utf-8"))

    def test_uppercase_html(self) -> None:
        assert is_injectable(ClassificationHeaders(content_type="TEXT/HTML"))

    @pytest.mark.parametrize(
        "content_type",
        ["application/json", "text/plain", "text/css", "application/xhtml+xml", ""],
    )
    def test_non_html_rejected(self, content_type: str) -> None:
        assert not is_injectable(ClassificationHeaders(content_type=content_type, content_length=10))

    @pytest.mark.parametrize("encoding", ["gzip", "br", "deflate", "zstd"])
    def test_compressed_rejected(self, encoding: str) -> None:
        headers = ClassificationHeaders(
            content_type="text/html", content_length=10, content_encoding=encoding,
        )
        assert not is_injectable(headers)

    def test_identity_encoding_rejected(self) -> None:
        headers = ClassificationHeaders(content_type="text/html", content_encoding="identity")
        assert not is_injectable(headers)

    @pytest.mark.parametrize("value", [b"27x", b"abc", b"-1", b""])
    def test_malformed_length_rejected(self, value: bytes) -> None:
        info = ClassificationHeaders.from_raw([
            (b"content-type", b"text/html"),
            (b"content-length", value),
        ])
        assert info.length_malformed
        assert not is_injectable(info)

    def test_absent_length_is_not_malformed(self) -> None:
        info = ClassificationHeaders.from_raw([(b"content-type", b"text/html")])
        assert not info.length_malformed
        assert is_injectable(info)

    def test_unknown_length_allowed_by_default(self) -> None:
        assert is_injectable(ClassificationHeaders(content_type="text/html"))

    def test_strict_mode_requires_length(self) -> None:
        headers = ClassificationHeaders(content_type="text/html")
        assert not is_injectable(headers, require_content_length=True)

    def test_strict_mode_with_length(self) -> None:
        headers = ClassificationHeaders(content_type="text/html", content_length=0)
        assert is_injectable(headers, require_content_length=True)
