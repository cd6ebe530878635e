"""CLI entry point for Fragment Sync.

Usage:
    python -m fragment_sync sync [--preview] [--source-dir DIR] [--target-dir DIR] [--category NAME ...]
    python -m fragment_sync status [--source-dir DIR] [--target-dir DIR] [--json]
    python -m fragment_sync restore --category NAME [--category NAME ...] [--target-dir DIR]

Commands:
    sync      Merge fragments and replace destinations that differ
    status    Show which destinations are out of date (never writes)
    restore   Put a destination back to its backup
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from fragment_sync import __version__
from fragment_sync.config import DEFAULT_CATEGORIES, RunMode, SyncConfig, load_config
from fragment_sync.errors import SyncError
from fragment_sync.recovery.restore import restore_backup
from fragment_sync.sync.engine import Synchronizer
from fragment_sync.utils.logging import configure_root_logger

DEFAULT_TARGET_DIR = "~/.aws"


def setup_logging(args: argparse.Namespace, log_file: Optional[Path] = None) -> None:
    """Configure logging for CLI output.

    --log-file wins over a log_file given in a configuration file.
    """
    level = logging.DEBUG if args.verbose else logging.INFO
    if args.log_file:
        log_file = Path(args.log_file)
    configure_root_logger(level=level, json_output=args.json_logs, log_file=log_file)


def build_config(args: argparse.Namespace, mode: RunMode = RunMode.NORMAL) -> SyncConfig:
    """Build a SyncConfig from a config file or the directory options.

    Args:
        args: Parsed CLI arguments
        mode: Run mode to apply

    Returns:
        SyncConfig for this invocation
    """
    if args.config:
        config = load_config(args.config)
        if mode is RunMode.PREVIEW:
            config.mode = mode
        if config.log_file and not args.log_file:
            setup_logging(args, config.log_file)
        if args.category:
            config.categories = [config.get_category(name) for name in args.category]
        return config

    target_dir = Path(args.target_dir).expanduser()
    source_dir = Path(args.source_dir).expanduser() if args.source_dir else target_dir
    return SyncConfig.for_directories(
        source_dir,
        target_dir,
        names=args.category or DEFAULT_CATEGORIES,
        mode=mode,
    )


def print_report(report, as_json: bool) -> None:
    """Render a RunReport to stdout."""
    if as_json:
        print(json.dumps(report.to_dict(), indent=2, default=str))
        return

    for outcome in report.outcomes:
        if not outcome.success:
            print(f"[{outcome.category}] FAILED ({outcome.error_type}): {outcome.error}")
            continue
        if not outcome.different:
            state = "up to date"
        elif outcome.preview:
            state = "would be replaced"
        else:
            state = "replaced"
        print(f"[{outcome.category}] {state}")
        print(f"    Fragments: {outcome.fragment_count}")
        print(f"    Sections: {len(outcome.sections)}")
        if outcome.replaced:
            print(f"    Bytes written: {outcome.bytes_written:,}")
            print(f"    Backup created: {outcome.backup_created}")


def cmd_sync(args: argparse.Namespace) -> int:
    """Handle the 'sync' command - merge and replace.

    Args:
        args: Parsed CLI arguments

    Returns:
        Exit code (0 for success, 1 if any category failed)
    """
    mode = RunMode.PREVIEW if args.preview else RunMode.NORMAL
    try:
        config = build_config(args, mode)
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    report = Synchronizer(config).run()
    print_report(report, args.json)
    return report.exit_code


def cmd_status(args: argparse.Namespace) -> int:
    """Handle the 'status' command - report drift without writing.

    Args:
        args: Parsed CLI arguments

    Returns:
        Exit code (0 if every category could be checked, 1 otherwise)
    """
    try:
        config = build_config(args, RunMode.PREVIEW)
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    status = Synchronizer(config).get_sync_status()

    if args.json:
        print(json.dumps(status, indent=2, default=str))
    else:
        for name, info in status.items():
            print(f"  [{name}]")
            print(f"    Destination: {info['destination']}")
            print(f"    Fragments: {info['fragment_count']}")
            print(f"    In sync: {info['in_sync']}")
            print(f"    Backup: {info['backup_path'] if info['backup_exists'] else 'none'}")
            for error in info["errors"]:
                print(f"    Error: {error}")
            print()

    return 0 if all(not info["errors"] for info in status.values()) else 1


def cmd_restore(args: argparse.Namespace) -> int:
    """Handle the 'restore' command - roll destinations back.

    Every --category given is restored in turn; a failure in one does
    not stop the others.

    Args:
        args: Parsed CLI arguments

    Returns:
        Exit code (0 if every restore succeeded, 1 otherwise)
    """
    try:
        config = build_config(args)
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    exit_code = 0
    for name in args.category:
        try:
            category = config.get_category(name)
            result = restore_backup(
                category.destination,
                config.backup_path_for(category),
                fsync=config.fsync,
            )
        except (SyncError, OSError, KeyError) as e:
            print(f"Error: [{name}] {e}", file=sys.stderr)
            exit_code = 1
            continue

        print(f"Restored {result.destination} from {result.backup_path}")
        print(f"  Bytes restored: {result.bytes_restored:,}")

    return exit_code


def add_common_arguments(parser: argparse.ArgumentParser, category_required: bool = False) -> None:
    """Add the location options shared by every command."""
    parser.add_argument(
        "--target-dir", default=DEFAULT_TARGET_DIR,
        help=f"Directory holding the destination files (default: {DEFAULT_TARGET_DIR})"
    )
    parser.add_argument(
        "--source-dir",
        help="Directory holding the fragment files (default: same as --target-dir)"
    )
    parser.add_argument(
        "--category", action="append", required=category_required,
        help="Category to process; repeatable (default: credentials and config)"
    )
    parser.add_argument("--config", help="JSON configuration file (overrides directory options)")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="fragment_sync",
        description="Fragment Sync - merge config fragments into destination files safely",
    )
    parser.add_argument(
        "--version", action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable verbose output"
    )
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")
    parser.add_argument("--log-file", help="Also write logs to this file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # sync command
    sync_parser = subparsers.add_parser("sync", help="Merge fragments and replace changed destinations")
    add_common_arguments(sync_parser)
    sync_parser.add_argument(
        "--preview", "--dry-run", action="store_true",
        help="Report what would change without writing anything"
    )
    sync_parser.add_argument("--json", action="store_true", help="Output report as JSON")

    # status command
    status_parser = subparsers.add_parser("status", help="Show whether destinations are in sync")
    add_common_arguments(status_parser)
    status_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # restore command
    restore_parser = subparsers.add_parser("restore", help="Restore destinations from their backups")
    add_common_arguments(restore_parser, category_required=True)

    return parser


def main(argv=None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(args)

    commands = {
        "sync": cmd_sync,
        "status": cmd_status,
        "restore": cmd_restore,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
