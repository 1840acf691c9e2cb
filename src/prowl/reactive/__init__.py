"""Reactive layer — reload fan-out and the client-side reload model.

Connects ``reload()`` calls to browser reloads through per-connection
subscriptions, and models how the injected client reacts to what it hears.
"""

from prowl.reactive.broadcaster import Broadcaster, ReloadEvent, Subscription
from prowl.reactive.client import Action, ClientState, ClientStateMachine, Signal

__all__ = [
    "Action",
    "Broadcaster",
    "ClientState",
    "ClientStateMachine",
    "ReloadEvent",
    "Signal",
    "Subscription",
]
