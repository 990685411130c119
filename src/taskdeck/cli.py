"""Command-line entry point."""

from __future__ import annotations

import argparse
from collections.abc import Sequence

from taskdeck import __version__
from taskdeck.core.api.utilities import run_app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskdeck", description="Browser-based automation task manager")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the web service")
    serve.add_argument("--host", default=None, help="Bind address (default: $HOST or 127.0.0.1)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: $PORT or 8000)")
    serve.add_argument("--reload", action="store_true", default=None, help="Reload on code changes")
    serve.add_argument("--log-level", default=None, help="Log level (default: $LOG_LEVEL or INFO)")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Parse arguments and dispatch the selected command."""
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        run_app("taskdeck.main:app", host=args.host, port=args.port, reload=args.reload, log_level=args.log_level)


if __name__ == "__main__":
    main()
