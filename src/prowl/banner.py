"""Startup banner — status output for ``prowl serve``.

Detects ``NO_COLOR`` / ``TERM`` for safe fallback to plain text.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from prowl.config import ProwlConfig


# ---------------------------------------------------------------------------
# ANSI helpers: respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""


def _clickable_url(url: str) -> str:
    """Wrap *url* in an OSC 8 hyperlink escape if the terminal supports it."""
    if not _COLOR:
        return url
    return f"\033]8;;{url}\033\\{_BOLD}{_CYAN}{url}{_RESET}\033]8;;\033\\"


def format_banner(
    config: ProwlConfig,
    root: Path,
    *,
    watching: bool = True,
    load_ms: float = 0.0,
    warnings: list[str] | None = None,
) -> str:
    """Build the banner text (without printing it)."""
    from prowl import __version__

    lines: list[str] = [
        "",
        f"  {_BOLD}prowl{_RESET} {_DIM}v{__version__}{_RESET}  {_GREEN}[serve]{_RESET}",
        f"  {_DIM}{'─' * 43}{_RESET}",
    ]

    timing = f" {_DIM}in {load_ms:.0f}ms{_RESET}" if load_ms > 0 else ""
    lines.append(f"  {_DIM}├─{_RESET} serving {_DIM}{root}{_RESET}{timing}")

    endpoint = (
        config.event_stream_path if config.transport == "event-stream" else config.long_poll_path
    )
    lines.append(
        f"  {_DIM}├─{_RESET} {_GREEN}live{_RESET} "
        f"via {config.transport} on {_DIM}{endpoint}{_RESET}"
    )
    lines.append(f"  {_DIM}└─{_RESET} manual reload: POST {_DIM}{config.reload_path}{_RESET}")

    url = f"http://{config.host}:{config.port}"
    lines.append("")
    lines.append(f"  {_clickable_url(url)}")

    if watching:
        lines.append("")
        lines.append(f"  {_DIM}Watching for changes...{_RESET}")

    if warnings:
        lines.append("")
        lines.extend(f"  {_YELLOW}!{_RESET} {w}" for w in warnings)

    lines.append("")
    return "\n".join(lines)


def print_banner(
    config: ProwlConfig,
    root: Path,
    *,
    watching: bool = True,
    load_ms: float = 0.0,
    warnings: list[str] | None = None,
) -> None:
    """Print the startup banner to stderr.

    Args:
        config: Resolved ProwlConfig.
        root: Directory being served.
        watching: Whether the file watcher is active.
        load_ms: Startup time in milliseconds.
        warnings: Optional warning messages to display.

    """
    print(
        format_banner(config, root, watching=watching, load_ms=load_ms, warnings=warnings),
        file=sys.stderr,
    )
