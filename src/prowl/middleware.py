"""LiveReload — ASGI middleware composing broadcaster, protocols and injection.

Wrap any ASGI application::

    from prowl import LiveReload

    app = LiveReload(app)
    ...
    app.reload()  # every open tab reloads

Requests under ``config.prefix`` are answered by prowl's own endpoints.
Every other request goes to the wrapped app; its response is streamed
through the injection path when the classifier accepts it and forwarded
untouched otherwise.

Responses that cannot carry a body (1xx, 204, 304) are never rewritten.
Answers to ``HEAD`` requests have no body either, but a qualifying one gets
the same ``Content-Length`` the matching ``GET`` would send.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from prowl.config import ProwlConfig
from prowl.inject.classifier import ClassificationHeaders, is_injectable
from prowl.inject.rewriter import BodyRewriter, adjust_headers
from prowl.inject.script import render_script
from prowl.protocol.endpoints import ProbeHandler, ReloadTriggerHandler, StatsHandler
from prowl.protocol.event_stream import EventStreamHandler
from prowl.protocol.long_poll import LongPollHandler
from prowl.reactive.broadcaster import Broadcaster

if TYPE_CHECKING:
    from prowl._types import ASGIApp, Message, Receive, RequestPredicate, Scope, Send
    from prowl.observability.collector import EventCollector

# Extensions that let an app hand the body to the server without passing
# through ``send``; hidden from apps whose responses may be rewritten.
_BYPASS_EXTENSIONS: frozenset[str] = frozenset({
    "http.response.pathsend",
    "http.response.zerocopysend",
})


def not_htmx(scope: Scope) -> bool:
    """Request predicate skipping htmx partial requests (``HX-Request``)."""
    return not any(name.lower() == b"hx-request" for name, _ in scope.get("headers", ()))


def _has_body(status: int) -> bool:
    return status >= 200 and status not in (204, 304)


def _without_bypass_extensions(scope: Scope) -> Scope:
    extensions = scope.get("extensions")
    if not extensions or not _BYPASS_EXTENSIONS & extensions.keys():
        return scope
    trimmed = {k: v for k, v in extensions.items() if k not in _BYPASS_EXTENSIONS}
    return {**scope, "extensions": trimmed}


class LiveReload:
    """Live-reload middleware for any ASGI application.

    Args:
        app: The wrapped ASGI application.
        config: Injection configuration (defaults to ``ProwlConfig()``).
        broadcaster: Share an existing Broadcaster, e.g. between several
            wrapped apps. Created from *config* when omitted.
        request_predicate: Decides per request whether its response may be
            rewritten. All requests qualify by default; see ``not_htmx``.
        collector: Optional EventCollector for observability events.

    """

    __slots__ = ("_app", "_broadcaster", "_collector", "_config", "_predicate", "_routes", "_script")

    def __init__(
        self,
        app: ASGIApp,
        config: ProwlConfig | None = None,
        *,
        broadcaster: Broadcaster | None = None,
        request_predicate: RequestPredicate | None = None,
        collector: EventCollector | None = None,
    ) -> None:
        self._app = app
        self._config = config if config is not None else ProwlConfig()
        self._collector = collector
        self._broadcaster = broadcaster if broadcaster is not None else Broadcaster(
            queue_size=self._config.queue_size,
            collector=collector,
        )
        self._predicate = request_predicate
        self._script = render_script(self._config)
        self._routes: dict[str, ASGIApp] = {
            self._config.event_stream_path: EventStreamHandler(
                self._broadcaster, self._config, collector,
            ),
            self._config.long_poll_path: LongPollHandler(self._broadcaster, self._config, collector),
            self._config.probe_path: ProbeHandler(),
            self._config.reload_path: ReloadTriggerHandler(self._broadcaster),
            self._config.stats_path: StatsHandler(self._broadcaster, collector),
        }

    @property
    def app(self) -> ASGIApp:
        """The wrapped application."""
        return self._app

    @property
    def config(self) -> ProwlConfig:
        return self._config

    @property
    def broadcaster(self) -> Broadcaster:
        """The broadcaster; hand it to watchers that need to trigger reloads."""
        return self._broadcaster

    @property
    def collector(self) -> EventCollector | None:
        return self._collector

    @property
    def script(self) -> bytes:
        """The exact ``<script>`` tag injected into pages."""
        return self._script

    def reload(self) -> int:
        """Tell every connected tab to reload. Safe from any thread."""
        return self._broadcaster.reload()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self._app(scope, receive, send)
            return

        handler = self._routes.get(scope.get("path", ""))
        if handler is not None:
            await handler(scope, receive, send)
            return

        if self._predicate is not None and not self._predicate(scope):
            await self._app(scope, receive, send)
            return

        injector = _InjectingSend(
            send,
            self._script,
            require_content_length=self._config.require_content_length,
            collector=self._collector,
            path=scope.get("path", ""),
            headers_only=scope.get("method") == "HEAD",
        )
        await self._app(_without_bypass_extensions(scope), receive, injector)


class _InjectingSend:
    """``send`` wrapper rewriting one response if its headers qualify.

    Non-injectable responses are forwarded message by message, untouched.
    With *headers_only* (``HEAD``) only the ``Content-Length`` of a qualifying
    response is adjusted, so it matches what the ``GET`` would send.
    """

    __slots__ = (
        "_collector",
        "_headers_only",
        "_path",
        "_require_length",
        "_rewriter",
        "_script",
        "_send",
        "_streamed",
    )

    def __init__(
        self,
        send: Send,
        script: bytes,
        *,
        require_content_length: bool,
        collector: EventCollector | None,
        path: str,
        headers_only: bool = False,
    ) -> None:
        self._send = send
        self._script = script
        self._require_length = require_content_length
        self._collector = collector
        self._path = path
        self._headers_only = headers_only
        self._rewriter: BodyRewriter | None = None
        self._streamed = False

    async def __call__(self, message: Message) -> None:
        kind = message["type"]

        if kind == "http.response.start":
            headers = list(message.get("headers", ()))
            info = ClassificationHeaders.from_raw(headers)
            if _has_body(message.get("status", 200)) and is_injectable(
                info, require_content_length=self._require_length,
            ):
                if not self._headers_only:
                    self._rewriter = BodyRewriter(self._script)
                    self._streamed = info.content_length is None
                message = {**message, "headers": adjust_headers(headers, len(self._script))}
            await self._send(message)
            return

        if kind != "http.response.body" or self._rewriter is None:
            await self._send(message)
            return

        body = self._rewriter.feed(message.get("body", b""))
        if message.get("more_body", False):
            if body:
                await self._send({**message, "body": body})
            return

        body += self._rewriter.finish()
        if self._collector is not None and self._rewriter.injected_at is not None:
            self._collector.record_injection(
                self._path,
                position=self._rewriter.injected_at,
                streamed=self._streamed,
            )
        await self._send({**message, "body": body, "more_body": False})
