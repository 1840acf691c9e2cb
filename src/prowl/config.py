"""Prowl configuration.

ProwlConfig is the injection configuration shared by every request-handling
task, frozen after creation.
"""

from dataclasses import dataclass

from prowl._errors import ConfigError
from prowl._types import Transport

_TRANSPORTS: frozenset[str] = frozenset({"event-stream", "long-poll"})


@dataclass(frozen=True, slots=True)
class ProwlConfig:
    """Configuration for the live-reload middleware.

    Attributes:
        prefix: URL prefix for prowl's own routes. Deliberately long and
            specific to avoid collisions with the wrapped application.
        transport: Which client script to inject, ``"event-stream"`` or
            ``"long-poll"``.
        reload_interval_ms: SSE ``retry:`` value and the delay between
            probe attempts after a long-poll disconnect.
        probe_timeout_ms: Per-attempt timeout for the liveness probe.
        long_poll_timeout: Seconds a long-poll request is held before it
            completes with ``timeout``. ``None`` holds until an event.
        heartbeat_interval: Seconds between SSE keepalive comments.
            ``None`` disables them.
        queue_size: Ticks buffered per subscriber before new ones drop.
        require_content_length: Only inject into responses that declare a
            ``Content-Length``. Off by default: bodies of unknown length are
            injected while streaming.
        script_template: Custom client JavaScript replacing the built-in
            variant for ``transport``.
        host: Bind address for ``prowl serve``.
        port: Bind port for ``prowl serve``.

    """

    prefix: str = "/__prowl"
    transport: Transport = "event-stream"
    reload_interval_ms: int = 1000
    probe_timeout_ms: int = 500
    long_poll_timeout: float | None = 60.0
    heartbeat_interval: float | None = 15.0
    queue_size: int = 16
    require_content_length: bool = False
    script_template: str | None = None
    host: str = "127.0.0.1"
    port: int = 3030

    def __post_init__(self) -> None:
        if not self.prefix.startswith("/") or self.prefix.endswith("/"):
            msg = f"prefix must start with '/' and not end with one, got {self.prefix!r}"
            raise ConfigError(msg)
        if self.transport not in _TRANSPORTS:
            msg = f"transport must be one of {sorted(_TRANSPORTS)}, got {self.transport!r}"
            raise ConfigError(msg)
        if self.reload_interval_ms <= 0:
            msg = "reload_interval_ms must be positive"
            raise ConfigError(msg)
        if self.probe_timeout_ms <= 0:
            msg = "probe_timeout_ms must be positive"
            raise ConfigError(msg)
        if self.long_poll_timeout is not None and self.long_poll_timeout <= 0:
            msg = "long_poll_timeout must be positive or None"
            raise ConfigError(msg)
        if self.heartbeat_interval is not None and self.heartbeat_interval <= 0:
            msg = "heartbeat_interval must be positive or None"
            raise ConfigError(msg)
        if self.queue_size < 1:
            msg = "queue_size must be at least 1"
            raise ConfigError(msg)

    @property
    def event_stream_path(self) -> str:
        """Route of the persistent event stream."""
        return f"{self.prefix}/events"

    @property
    def long_poll_path(self) -> str:
        """Route of the long-poll endpoint."""
        return f"{self.prefix}/long-poll"

    @property
    def probe_path(self) -> str:
        """Route of the liveness probe."""
        return f"{self.prefix}/probe"

    @property
    def reload_path(self) -> str:
        """Route of the manual reload trigger."""
        return f"{self.prefix}/reload"

    @property
    def stats_path(self) -> str:
        """Route of the JSON stats endpoint."""
        return f"{self.prefix}/stats"
