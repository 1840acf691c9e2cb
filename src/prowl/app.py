"""Prowl directory server — static files plus live reload.

``serve()`` is the engine behind ``prowl serve``: a Chirp app serving a
directory through ``StaticFiles``, wrapped in ``LiveReload``, watched by
``FileWatcher`` and run by Pounce.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import TYPE_CHECKING

from prowl._errors import ConfigError
from prowl.config import ProwlConfig
from prowl.config_loader import load_config
from prowl.middleware import LiveReload

if TYPE_CHECKING:
    from prowl.observability.collector import EventCollector


def create_app(
    root: Path,
    config: ProwlConfig,
    *,
    collector: EventCollector | None = None,
) -> LiveReload:
    """Build the ASGI app serving *root* with live reload.

    Files are served with ``Cache-Control: no-cache`` so a reload always
    revalidates what changed on disk.

    Raises:
        ConfigError: If *root* is not a directory.

    """
    if not root.is_dir():
        msg = f"Cannot serve {root}: not a directory"
        raise ConfigError(msg)

    from chirp import App
    from chirp.middleware import StaticFiles

    app = App()
    app.add_middleware(StaticFiles(directory=root, prefix="/", cache_control="no-cache"))
    return LiveReload(app, config, collector=collector)


def serve(root: str | Path = ".", *, watch: bool = True, **kwargs: object) -> None:
    """Serve a directory with live reload until interrupted.

    Runs a single Pounce worker: the broadcaster lives in process memory, so
    every browser must talk to the same process.

    Args:
        root: Directory to serve.
        watch: Reload connected browsers when files under *root* change.
        **kwargs: Override ProwlConfig fields.

    """
    from prowl.banner import print_banner
    from prowl.observability import EventCollector, EventLog
    from prowl.watcher import FileWatcher

    root_path = Path(root).resolve()
    t0 = time.perf_counter()

    config = load_config(root_path, **kwargs)
    collector = EventCollector(EventLog())
    live = create_app(root_path, config, collector=collector)

    watcher = FileWatcher([root_path], live.reload) if watch else None

    load_ms = (time.perf_counter() - t0) * 1000
    print_banner(config, root_path, watching=watch, load_ms=load_ms)

    from pounce.config import ServerConfig
    from pounce.server import Server

    server = Server(
        ServerConfig(host=config.host, port=config.port, workers=1),
        live,
    )

    if watcher is not None:
        watcher.start()
    try:
        server.run()
    finally:
        if watcher is not None:
            watcher.stop()
