"""Injection layer — classify HTML responses and splice in the client script."""

from prowl.inject.classifier import ClassificationHeaders, is_injectable
from prowl.inject.rewriter import BodyRewriter, adjust_headers, rewrite_body, rewrite_stream
from prowl.inject.script import render_script

__all__ = [
    "BodyRewriter",
    "ClassificationHeaders",
    "adjust_headers",
    "is_injectable",
    "render_script",
    "rewrite_body",
    "rewrite_stream",
]
