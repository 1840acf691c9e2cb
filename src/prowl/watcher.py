"""File watcher — calls ``reload()`` when files under a directory change.

Runs watchfiles in a background thread. Each debounced batch of changes that
survives the filter produces exactly one ``on_change()`` call, so a save that
touches several files reloads the browser once.
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from watchfiles import Change, DefaultFilter

# Mapping from watchfiles Change enum to our kind literals.
_CHANGE_KIND_MAP: dict[Change, Literal["created", "modified", "deleted"]] = {
    Change.added: "created",
    Change.modified: "modified",
    Change.deleted: "deleted",
}


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A file change detected by the watcher.

    Attributes:
        path: Absolute path to the changed file.
        kind: Type of filesystem change.

    """

    path: Path
    kind: Literal["created", "modified", "deleted"]


class FileWatcher:
    """Watches directories and triggers a reload per batch of changes.

    Args:
        paths: Directories (or files) to watch.
        on_change: Called with no arguments once per batch, typically
            ``LiveReload.reload`` or ``Broadcaster.reload``.
        watch_filter: watchfiles filter; ignores VCS dirs, caches and editor
            swap files by default.
        debounce: Milliseconds to wait for a batch to settle.
        quiet: Suppress the per-batch status line on stderr.

    """

    def __init__(
        self,
        paths: Iterable[Path | str],
        on_change: Callable[[], object],
        *,
        watch_filter: Callable[[Change, str], bool] | None = None,
        debounce: int = 300,
        quiet: bool = False,
    ) -> None:
        self._paths = tuple(Path(p).resolve() for p in paths)
        if not self._paths:
            msg = "FileWatcher needs at least one path"
            raise ValueError(msg)
        self._on_change = on_change
        self._filter = watch_filter if watch_filter is not None else DefaultFilter()
        self._debounce = debounce
        self._quiet = quiet
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def paths(self) -> tuple[Path, ...]:
        return self._paths

    @property
    def is_running(self) -> bool:
        """Whether the watcher background thread is active."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start watching for file changes in a background thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._watch_loop,
            name="prowl-watcher",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the watcher to stop and wait for the thread to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None

    def handle_batch(self, raw_changes: Iterable[tuple[Change, str]]) -> tuple[ChangeEvent, ...]:
        """Turn one watchfiles batch into events and trigger a reload.

        Returns the events that passed the filter; ``on_change`` is called
        only when there is at least one.
        """
        events = tuple(
            ChangeEvent(path=Path(path_str), kind=_CHANGE_KIND_MAP.get(change, "modified"))
            for change, path_str in raw_changes
            if self._filter(change, path_str)
        )
        if not events:
            return events

        if not self._quiet:
            names = ", ".join(sorted({e.path.name for e in events}))
            print(f"  Changed: {names}, reloading", file=sys.stderr)
        self._on_change()
        return events

    def _watch_loop(self) -> None:
        """Background thread: run watchfiles and forward batches."""
        from watchfiles import watch

        for raw_changes in watch(
            *self._paths,
            watch_filter=None,
            stop_event=self._stop_event,
            debounce=self._debounce,
            step=100,
        ):
            self.handle_batch(raw_changes)
