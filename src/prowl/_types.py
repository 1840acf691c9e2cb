"""Shared type definitions for prowl."""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, Literal

# ASGI primitives
type Scope = MutableMapping[str, Any]
type Message = MutableMapping[str, Any]
type Receive = Callable[[], Awaitable[Message]]
type Send = Callable[[Message], Awaitable[None]]
type ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]

# Raw ASGI header list
type RawHeaders = list[tuple[bytes, bytes]]

# Which client script variant gets injected
type Transport = Literal["event-stream", "long-poll"]

# Decides per request whether its response may be rewritten
type RequestPredicate = Callable[[Scope], bool]

# Subscription identifier
type SubscriptionID = int
