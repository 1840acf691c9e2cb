"""Prowl — live-reload middleware for any ASGI application.

Wrap an app, call ``reload()`` when something changes, and every browser tab
showing one of its HTML pages reloads. No client-side wiring: the reload
script is injected into HTML responses on the way out.

Quick start::

    from prowl import LiveReload

    app = LiveReload(app)
    app.reload()

Serve a directory with live reload::

    prowl serve public/

Two client transports::

    LiveReload(app)                                           # event stream
    LiveReload(app, ProwlConfig(transport="long-poll"))       # long poll

"""

# PEP 703: Declare this module as free-threading safe
_Py_mod_gil = 0

__version__ = "0.1.0-dev"
__all__ = [
    "Broadcaster",
    "LiveReload",
    "ProwlConfig",
    "__version__",
    "not_htmx",
    "serve",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import prowl`` fast; nothing is loaded until first use.
    """
    if name == "ProwlConfig":
        from prowl.config import ProwlConfig

        return ProwlConfig

    if name == "LiveReload":
        from prowl.middleware import LiveReload

        return LiveReload

    if name == "not_htmx":
        from prowl.middleware import not_htmx

        return not_htmx

    if name == "Broadcaster":
        from prowl.reactive.broadcaster import Broadcaster

        return Broadcaster

    if name == "serve":
        from prowl.app import serve

        return serve

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
