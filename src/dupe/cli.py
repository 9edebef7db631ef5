"""CLI argument parsing and command dispatch."""

from __future__ import annotations

from dupe.config import create_config_interactive
from dupe.config import load_config
from dupe.config import merge_config_into_args
from dupe.hasher import DuplicateGroup
from dupe.hasher import find_duplicates
from dupe.logging import configure_logging
from dupe.resolver import DeletionError
from dupe.resolver import format_size
from dupe.resolver import resolve_duplicates
from dupe.scanner import build_inventory
from dupe.scanner import display_path
from dupe.scanner import Inventory
from dupe.scanner import ScanError

import argparse
import logging
import pathlib
import sys


logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="dupe",
        description="Find duplicate files in a directory (recursively) and choose which ones to delete.",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only show warnings and errors")
    parser.add_argument(
        "--configure", action="store_true",
        help="Create or update the configuration file interactively",
    )
    parser.add_argument("directory", nargs="?", type=pathlib.Path, help="Directory to search for duplicates")
    parser.add_argument(
        "--list", dest="list_only", action="store_true",
        help="Only list duplicate groups, do not prompt or delete",
    )
    parser.add_argument(
        "--workers", type=_positive_int, default=None, metavar="N",
        help="Number of files hashed in parallel (default: 1)",
    )
    parser.add_argument(
        "--no-clear", dest="clear_screen", action="store_const", const=False, default=None,
        help="Do not clear the screen before the first duplicate",
    )
    parser.add_argument(
        "--no-progress", dest="progress", action="store_const", const=False, default=None,
        help="Do not show the hashing progress bar",
    )
    parser.add_argument(
        "--exclude", action="append", default=None, metavar="PATTERN",
        help="Glob pattern of file names to skip (e.g., '*.tmp'). Repeatable.",
    )
    parser.add_argument(
        "--exclude-dir", action="append", default=None, metavar="PATTERN",
        help="Glob pattern of directory names to skip (e.g., '.git'). Repeatable.",
    )
    return parser


def scan_duplicates(args: argparse.Namespace) -> tuple[Inventory, list[DuplicateGroup]]:
    """Build the inventory of args.directory and group its duplicates."""
    logger.info(f"Scanning {display_path(args.directory)} ...")
    inventory = build_inventory(
        args.directory, exclude_file=args.exclude, exclude_dir=args.exclude_dir,
    )
    logger.info(f"Found {len(inventory)} file(s)")
    groups = find_duplicates(inventory, workers=args.workers, progress=args.progress)
    return inventory, groups


def cmd_list(args: argparse.Namespace) -> None:
    """List duplicate groups without touching any file."""
    inventory, groups = scan_duplicates(args)

    if not groups:
        logger.info("No duplicate files found")
        return

    reclaimable = sum(g.reclaimable for g in groups)
    logger.info(f"\nFound {len(groups)} duplicate group(s), {format_size(reclaimable)} reclaimable:\n")
    for i, group in enumerate(groups, 1):
        logger.info(f"  Group {i} ({len(group.members)} files, {format_size(group.file_size)} each):")
        for record in inventory.resolve(group.members):
            logger.info(f"    {display_path(record.path)}")
        logger.info("")


def cmd_resolve(args: argparse.Namespace) -> None:
    """Find duplicates and let the user choose which ones to delete."""
    inventory, groups = scan_duplicates(args)
    summary = resolve_duplicates(groups, inventory, clear_screen=args.clear_screen)
    if summary.deleted:
        logger.info(
            f"\nDeleted {len(summary.deleted)} file(s), "
            f"reclaimed {format_size(summary.bytes_reclaimed)}."
        )


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose, quiet=args.quiet)

    if args.configure:
        create_config_interactive()
        return

    if args.directory is None:
        parser.print_help()
        return

    merge_config_into_args(args, load_config())
    if args.quiet:
        args.progress = False

    try:
        if args.list_only:
            cmd_list(args)
        else:
            cmd_resolve(args)
    except (ScanError, DeletionError) as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nAborted.")
        sys.exit(1)
