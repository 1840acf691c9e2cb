"""Prowl CLI — prowl serve / prowl reload.

Entry point for the ``prowl`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the prowl CLI."""
    parser = argparse.ArgumentParser(
        prog="prowl",
        description="Live-reload middleware and directory server.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # prowl serve
    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve a directory with live reload",
    )
    serve_parser.add_argument("root", nargs="?", default=".", help="Directory to serve")
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port")
    serve_parser.add_argument("--prefix", default=None, help="URL prefix for prowl's routes")
    serve_parser.add_argument(
        "--transport",
        choices=("event-stream", "long-poll"),
        default=None,
        help="Client transport to inject",
    )
    serve_parser.add_argument(
        "--no-watch", action="store_true", help="Don't reload on file changes",
    )

    # prowl reload
    reload_parser = subparsers.add_parser(
        "reload",
        help="Tell a running prowl server to reload its browsers",
    )
    reload_parser.add_argument(
        "url", nargs="?", default="http://127.0.0.1:3030", help="Server base URL",
    )
    reload_parser.add_argument("--prefix", default="/__prowl", help="URL prefix for prowl's routes")

    return parser


def _get_version() -> str:
    """Get the package version."""
    from prowl import __version__

    return __version__


def _trigger_reload(url: str, prefix: str) -> int:
    """POST to a running server's reload route. Returns an exit code."""
    import json
    import urllib.error
    import urllib.request

    target = f"{url.rstrip('/')}{prefix}/reload"
    request = urllib.request.Request(target, method="POST", data=b"")
    try:
        with urllib.request.urlopen(request, timeout=5.0) as response:
            payload = json.loads(response.read() or b"{}")
    except (urllib.error.URLError, OSError) as exc:
        print(f"  Reload failed: {target}: {exc}", file=sys.stderr)
        return 1
    print(f"  Reloaded {payload.get('notified', 0)} client(s)", file=sys.stderr)
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from prowl.app import serve

        serve(
            root=args.root,
            watch=not args.no_watch,
            host=args.host,
            port=args.port,
            prefix=args.prefix,
            transport=args.transport,
        )
    elif args.command == "reload":
        sys.exit(_trigger_reload(args.url, args.prefix))


if __name__ == "__main__":
    main()
