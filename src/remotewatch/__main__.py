"""Command-line entry point.

Usage:
    remotewatch [options] [paths ...]
    python -m remotewatch --relative-paths --base-path src src

Watches the given paths (the current directory by default) and serves
change notifications at ws://<host>:<port>/hmr.
"""

from __future__ import annotations

import argparse
import asyncio
import os
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any

from remotewatch import __version__
from remotewatch.config import Config, ConfigError, load_config
from remotewatch.logging import get_logger, setup_logging

log = get_logger()

# Relative to the cwd; always appended to the ignore list
ALWAYS_IGNORED = ("jspm_packages",)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="remotewatch",
        description="Broadcast filesystem changes to WebSocket clients",
    )
    parser.add_argument("paths", nargs="*", help="Paths to watch (default: current directory)")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument("-P", "--port", type=int, help="Port for the websocket server")
    parser.add_argument("-H", "--host", help="Host for the websocket server")
    parser.add_argument("--ws-path", help="URL path of the websocket endpoint (default: /hmr)")
    parser.add_argument("-b", "--base-path", help="Base path for relative paths")
    parser.add_argument(
        "-r", "--relative-paths",
        action="store_true",
        default=None,
        help="Send paths relative to the base path",
    )
    parser.add_argument(
        "-c", "--with-contents",
        action="store_true",
        default=None,
        help='Send "added" and "changed" events with file contents',
    )
    parser.add_argument(
        "-i", "--ignored",
        action="append",
        default=[],
        help="Ignore matching files (repeatable)",
    )
    parser.add_argument("--config", type=Path, help="Config file path")
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=None,
        help="Increase verbosity (can be repeated)",
    )
    return parser


def build_config(args: argparse.Namespace, cwd: str | None = None) -> Config:
    """Load config files and apply command-line overrides."""
    cwd = cwd or os.getcwd()
    overrides: dict[str, Any] = {
        "server": {"host": args.host, "port": args.port, "path": args.ws_path},
        "settings": {
            "base_path": args.base_path,
            "relative_paths": args.relative_paths,
            "with_contents": args.with_contents,
        },
        "watch": {"paths": args.paths or None},
    }
    if args.verbose is not None:
        # -v maps to verbose, -vv to trace
        overrides["logging"] = {"verbose": min(2 + args.verbose, 4)}

    config = load_config(project_root=cwd, config_file=args.config, overrides=overrides)

    ignored = [
        *config.watch.ignored,
        *args.ignored,
        *(os.path.join(cwd, name) for name in ALWAYS_IGNORED),
    ]
    return replace(config, watch=replace(config.watch, ignored=tuple(dict.fromkeys(ignored))))


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments and run until interrupted."""
    args = create_parser().parse_args(argv)

    try:
        config = build_config(args)
    except ConfigError as e:
        setup_logging()
        log.error("%s", e)
        return 2

    setup_logging(config.logging)

    from remotewatch.runner import serve

    try:
        asyncio.run(serve(config, list(config.watch.paths)))
    except KeyboardInterrupt:
        log.info("Interrupted")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
