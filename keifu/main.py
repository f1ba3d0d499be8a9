#!/usr/bin/env python3
"""
keifu - terminal commit graph viewer
"""

import argparse
import logging
import sys
from pathlib import Path

from keifu.app import AppState
from keifu.config.settings import Settings
from keifu.git_backend.repository import KeifuRepository

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog="keifu",
        description="keifu - browse a git commit graph in the terminal",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Repository (or any directory inside it), defaults to the current directory",
    )
    parser.add_argument(
        "--max-count",
        type=int,
        default=None,
        help="Maximum number of commits to load",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings file (default: ~/.config/keifu/settings.json)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Write logs to this file",
    )
    parser.add_argument(
        "--no-auto-refresh",
        action="store_true",
        help="Disable periodic refresh and fetch",
    )
    return parser.parse_args(argv)


def setup_logging(log_file: str, level: int) -> None:
    """Log to a file. Nothing goes to the terminal while the TUI owns it"""
    if not log_file:
        return
    logging.basicConfig(
        filename=log_file,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    settings = Settings(args.config)
    if args.max_count is not None:
        settings.set("graph.max_commits", args.max_count)
    if args.no_auto_refresh:
        settings.set("refresh.auto_refresh", False)
        settings.set("refresh.auto_fetch", False)

    setup_logging(args.log_file or settings.get_log_file(), settings.get_log_level())

    try:
        repo = KeifuRepository(args.path)
        state = AppState(repo, settings)
        state.refresh()
    except ValueError as e:
        logger.error("Startup failed: %s", e)
        print(f"keifu: {e}", file=sys.stderr)
        sys.exit(1)

    logger.info("Opened %s", repo.path)

    # Imported late so --help works without a terminal UI stack
    from keifu.ui.tui import KeifuApp

    KeifuApp(state, settings).run()


if __name__ == "__main__":
    main()
