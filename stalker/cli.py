import argparse
from pathlib import Path

from stalker.config import Settings, defaults


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="OC stalker: poll faction members and organized crimes once.")
    parser.add_argument(
        "--local",
        action="store_true",
        default=None,
        help="Read and write the JSON stores on disk instead of the GitHub repository.",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory for the local JSON stores and the API error log (default: current directory).",
    )
    parser.add_argument(
        "--no-delay",
        action="store_true",
        help="Start immediately instead of waiting a random moment first.",
    )
    parser.add_argument(
        "--max-delay",
        type=float,
        default=None,
        help=f"Upper bound of the random startup delay in seconds (default: {defaults['max_start_delay']}).",
    )
    parser.add_argument(
        "--crime-update-interval",
        type=int,
        default=None,
        help="Skip crime and naughty list updates when the crime store changed less than this many seconds ago (default: 0, always update).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Fetch and derive everything, but persist nothing.",
    )
    parser.add_argument(
        "--tail-logs",
        action="store_true",
        help="Tail the run log file instead of polling.",
    )
    parser.add_argument(
        "--tail-lines",
        type=int,
        default=100,
        help="How many recent lines to print before following logs (default: 100).",
    )
    parser.add_argument(
        "--no-follow",
        action="store_true",
        help="When used with --tail-logs, print lines and exit without follow mode.",
    )
    return parser


def settings_from_cli(settings: Settings, cli_args) -> Settings:
    """Apply command line flags on top of the environment settings."""
    max_delay = 0.0 if cli_args.no_delay else cli_args.max_delay
    if max_delay is not None and max_delay < 0:
        raise SystemExit("--max-delay must be >= 0")
    return settings.with_overrides(
        local=cli_args.local,
        data_dir=cli_args.data_dir,
        max_start_delay=max_delay,
        crime_update_interval=cli_args.crime_update_interval,
        dry_run=cli_args.dry_run,
    )
