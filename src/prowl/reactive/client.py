"""Browser-side reload logic as an explicit state machine.

The injected JavaScript implements exactly these transitions; this module is
the reference model and lets the reconnect behaviour be exercised without a
browser or a network.

States::

    connected ──error──────────▶ disconnected ──init──▶ reloading
        │                                                  ▲
        ├──reload / poll_reload────────────────────────────┤
        │                                                  │
        └──poll_failed──▶ probing ──probe_ok───────────────┘
                           │  ▲
                           └──┘ probe_failed (retry after reload_interval)

``init`` while connected is the very first event of a fresh page and is
ignored. ``init`` after an error means the stream came back, possibly from a
restarted process, and is treated as a change. ``reloading`` is terminal.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, Awaitable, Callable
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prowl._types import Transport


class ClientState(StrEnum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    PROBING = "probing"
    RELOADING = "reloading"


class Signal(StrEnum):
    # event stream
    INIT = "init"
    RELOAD = "reload"
    ERROR = "error"
    # long poll
    POLL_RELOAD = "poll_reload"
    POLL_TIMEOUT = "poll_timeout"
    POLL_FAILED = "poll_failed"
    # liveness probe
    PROBE_OK = "probe_ok"
    PROBE_FAILED = "probe_failed"


class Action(StrEnum):
    NONE = "none"
    REOPEN_POLL = "reopen_poll"
    PROBE = "probe"
    SCHEDULE_PROBE = "schedule_probe"
    RELOAD = "reload"


_TRANSITIONS: dict[tuple[ClientState, Signal], tuple[ClientState, Action]] = {
    # event stream
    (ClientState.CONNECTED, Signal.INIT): (ClientState.CONNECTED, Action.NONE),
    (ClientState.CONNECTED, Signal.RELOAD): (ClientState.RELOADING, Action.RELOAD),
    (ClientState.CONNECTED, Signal.ERROR): (ClientState.DISCONNECTED, Action.NONE),
    (ClientState.DISCONNECTED, Signal.ERROR): (ClientState.DISCONNECTED, Action.NONE),
    (ClientState.DISCONNECTED, Signal.INIT): (ClientState.RELOADING, Action.RELOAD),
    # long poll
    (ClientState.CONNECTED, Signal.POLL_RELOAD): (ClientState.RELOADING, Action.RELOAD),
    (ClientState.CONNECTED, Signal.POLL_TIMEOUT): (ClientState.CONNECTED, Action.REOPEN_POLL),
    (ClientState.CONNECTED, Signal.POLL_FAILED): (ClientState.PROBING, Action.PROBE),
    (ClientState.PROBING, Signal.PROBE_FAILED): (ClientState.PROBING, Action.SCHEDULE_PROBE),
    (ClientState.PROBING, Signal.PROBE_OK): (ClientState.RELOADING, Action.RELOAD),
}

_SIGNALS: dict[str, frozenset[Signal]] = {
    "event-stream": frozenset({Signal.INIT, Signal.RELOAD, Signal.ERROR}),
    "long-poll": frozenset({
        Signal.POLL_RELOAD,
        Signal.POLL_TIMEOUT,
        Signal.POLL_FAILED,
        Signal.PROBE_OK,
        Signal.PROBE_FAILED,
    }),
}


class ClientStateMachine:
    """Reference model of one browser tab's reload client.

    Args:
        transport: ``"event-stream"`` or ``"long-poll"``; signals belonging
            to the other transport are rejected.

    """

    __slots__ = ("_history", "_state", "_transport", "reloads")

    def __init__(self, transport: Transport = "event-stream") -> None:
        if transport not in _SIGNALS:
            msg = f"unknown transport {transport!r}"
            raise ValueError(msg)
        self._transport = transport
        self._state = ClientState.CONNECTED
        self._history: list[tuple[Signal, ClientState]] = []
        self.reloads = 0

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def history(self) -> tuple[tuple[Signal, ClientState], ...]:
        """Every signal handled, with the state it led to."""
        return tuple(self._history)

    def handle(self, signal: Signal | str) -> Action:
        """Feed one signal and return the action the client must take.

        Signals with no transition from the current state are ignored,
        including everything after ``reloading``.

        """
        signal = Signal(signal)
        if signal not in _SIGNALS[self._transport]:
            msg = f"signal {signal.value!r} does not belong to the {self._transport} client"
            raise ValueError(msg)

        state, action = _TRANSITIONS.get((self._state, signal), (self._state, Action.NONE))
        self._state = state
        self._history.append((signal, state))
        if action is Action.RELOAD:
            self.reloads += 1
        return action


async def drive_event_stream(
    machine: ClientStateMachine,
    events: AsyncIterable[str],
) -> ClientState:
    """Feed event-stream signals into *machine* until it reloads.

    *events* yields ``"init"``, ``"reload"`` and ``"error"`` in the order the
    browser's EventSource would dispatch them.

    """
    async for name in events:
        if machine.handle(name) is Action.RELOAD:
            break
    return machine.state


async def drive_long_poll(
    machine: ClientStateMachine,
    *,
    poll: Callable[[], Awaitable[str | None]],
    probe: Callable[[float], Awaitable[bool]],
    reload_interval_ms: int = 1000,
    probe_timeout_ms: int = 500,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> ClientState:
    """Run the long-poll client loop against async callables.

    Args:
        machine: A long-poll ClientStateMachine.
        poll: Issues one long-poll request; returns the response body, or
            None if the request failed or was aborted.
        probe: Issues one liveness probe with the given timeout in seconds;
            returns whether it succeeded.
        reload_interval_ms: Delay between failed probes.
        probe_timeout_ms: Per-probe timeout.
        sleep: Timer used between probes.

    Returns:
        The final state, always ``reloading``: there is no retry limit.

    """
    action = Action.REOPEN_POLL
    while machine.state is not ClientState.RELOADING:
        if action is Action.REOPEN_POLL:
            body = await poll()
            if body == "reload":
                signal = Signal.POLL_RELOAD
            elif body == "timeout":
                signal = Signal.POLL_TIMEOUT
            else:
                signal = Signal.POLL_FAILED
        else:
            if action is Action.SCHEDULE_PROBE:
                await sleep(reload_interval_ms / 1000)
            ok = await probe(probe_timeout_ms / 1000)
            signal = Signal.PROBE_OK if ok else Signal.PROBE_FAILED
        action = machine.handle(signal)
    return machine.state
