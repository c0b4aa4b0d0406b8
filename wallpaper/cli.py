from __future__ import annotations

import argparse
import shutil
import sys
from typing import Sequence

from wallpaper.errors import WallpaperError
from wallpaper.logging_config import setup_logging

HELP_WIDTH = 100


class WallpaperHelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        term_width = shutil.get_terminal_size(fallback=(HELP_WIDTH, 24)).columns
        width = max(64, min(HELP_WIDTH, term_width - 2))
        super().__init__(prog, max_help_position=max(22, width // 3), width=width)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wallpaper",
        description="Time-of-day wallpaper switcher for swww.",
        formatter_class=WallpaperHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output to the console.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "daemon", help="Run the daemon which changes the wallpaper at specific times."
    )

    switch = subparsers.add_parser("switch", help="Set a new image now.")
    switch.add_argument(
        "monitor",
        nargs="?",
        default=None,
        help="Only switch the wallpaper for this monitor.",
    )

    select = subparsers.add_parser(
        "select", help="Show an image, or a folder of images, from now on."
    )
    select.add_argument("path", help="Image file or directory (searched recursively).")
    select.add_argument(
        "--keep-old",
        action="store_true",
        help="Add to the configured images instead of replacing them.",
    )

    subparsers.add_parser("reload", help="Make the daemon reload config and cache.")
    subparsers.add_parser("check", help="Check the config for errors.")
    subparsers.add_parser("print", help="Print the current state and config.")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    args = list(argv if argv is not None else sys.argv[1:])
    return build_parser().parse_args(args)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logger = setup_logging(verbose=args.verbose)
    from wallpaper.app import (
        run_check,
        run_daemon,
        run_print,
        run_reload,
        run_select,
        run_switch,
    )

    handlers = {
        "daemon": run_daemon,
        "switch": run_switch,
        "select": run_select,
        "reload": run_reload,
        "check": run_check,
        "print": run_print,
    }
    try:
        return handlers[args.command](args)
    except WallpaperError as exc:
        logger.error("%s", exc)
        return 1
