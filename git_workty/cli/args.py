"""Command-line argument parsing for git-workty."""

import argparse
from typing import Optional, Sequence

from git_workty.__version__ import __version__


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-workty",
        description="Git worktrees as daily-driver workspaces",
        epilog="Run without a command to show the dashboard of all worktrees.",
    )
    parser.add_argument("--version", action="version", version=f"git-workty {__version__}")
    parser.add_argument("-C", dest="directory", metavar="PATH", help="Run as if started in PATH")
    parser.add_argument("--json", action="store_true", help="Output in JSON format")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument(
        "--workers",
        type=_positive_int,
        metavar="N",
        help="Number of parallel workers for status computation (default: auto-detect)",
    )
    parser.add_argument(
        "--sequential",
        action="store_true",
        help="Compute worktree status one at a time (disable parallelism)",
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("list", aliases=["ls"], help="Show dashboard of all worktrees (default)")

    new = subparsers.add_parser("new", help="Create a new workspace")
    new.add_argument("name", help="Branch name for the new workspace")
    new.add_argument("-f", "--from", dest="from_ref", help="Base branch or commit to create from")
    new.add_argument("-p", "--path", help="Custom path for the worktree")
    new.add_argument("--print-path", action="store_true", help="Print only the created path")
    new.add_argument("-o", "--open", action="store_true", help="Open the worktree with open_cmd")

    go = subparsers.add_parser("go", help="Print path to a worktree by name")
    go.add_argument("name", help="Worktree name (branch name, directory name or path)")

    rank = subparsers.add_parser("rank", help="List worktree paths ranked by fuzzy match")
    rank.add_argument("query", nargs="?", default="", help="Fuzzy query")

    rm = subparsers.add_parser("rm", help="Remove a workspace")
    rm.add_argument("name", help="Worktree name to remove")
    rm.add_argument("-f", "--force", action="store_true", help="Remove even with uncommitted changes")
    rm.add_argument(
        "-d", "--delete-branch", action="store_true", help="Also delete the branch afterwards"
    )

    clean = subparsers.add_parser("clean", help="Remove merged, gone or stale worktrees")
    clean.add_argument(
        "--merged", action="store_true", help="Remove worktrees whose branch is merged into base (default)"
    )
    clean.add_argument("--gone", action="store_true", help="Remove worktrees whose upstream was deleted")
    clean.add_argument("--stale", type=_positive_int, metavar="DAYS", help="Remove worktrees with no commit for DAYS")
    clean.add_argument("-n", "--dry-run", action="store_true", help="Show what would be removed")
    clean.add_argument("-f", "--force", action="store_true", help="Also remove dirty worktrees")
    clean.add_argument(
        "-d", "--delete-branch", action="store_true", help="Also delete the removed branches"
    )

    subparsers.add_parser("doctor", help="Diagnose common issues")

    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
