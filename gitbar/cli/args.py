"""Command-line argument parsing for gitbar."""

import argparse

from gitbar.__version__ import __version__
from gitbar.config import MAX_SCAN_DEPTH, MIN_SCAN_DEPTH


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Show the git status of every repository under your project folders",
        epilog="Repositories are found by looking for .git entries; nested repositories "
        "inside a repository are not reported.",
    )
    parser.add_argument(
        "directories",
        nargs="*",
        metavar="DIR",
        help="Directories to scan for repositories (default: current directory)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument("--version", action="version", version=f"gitbar {__version__}")
    parser.add_argument(
        "--depth",
        type=int,
        default=2,
        help=f"How many levels deep to search for repositories ({MIN_SCAN_DEPTH}-{MAX_SCAN_DEPTH}, default: 2)",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep running and update the table as repositories change",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=60,
        help="Seconds between full rescans in watch mode (0 = file changes only, default: 60)",
    )
    parser.add_argument(
        "--debounce",
        type=float,
        default=0.5,
        help="Quiet period in seconds before file changes trigger a refresh (default: 0.5)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        metavar="N",
        help="Number of repositories probed in parallel (default: auto-detect from CPU count)",
    )
    parser.add_argument("--json", action="store_true", help="Print the status as JSON")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )

    return parser.parse_args(argv)
