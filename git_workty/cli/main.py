"""Command-line entry point for git-workty"""

import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape

from git_workty.core import Workty
from git_workty.exceptions import WorktyError
from git_workty.logging_config import get_logger, setup_logging
from git_workty.models.worktree import CleanCriteria, CreateOptions, RemoveOptions, ResultKind, Severity
from git_workty.services.display_service import DisplayService
from git_workty.services.doctor_service import DoctorService
from git_workty.utils.threading import get_threading_info
from .args import parse_args

err_console = Console(stderr=True)
logger = get_logger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(argv)
    setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug)
    if parsed_args.debug:
        logger.debug(f"Threading information: {get_threading_info()}")

    display = DisplayService(json_output=parsed_args.json, verbose=parsed_args.verbose)
    try:
        return run(parsed_args, display)
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 130
    except WorktyError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        if e.hint:
            err_console.print(f"[cyan]hint[/cyan]: {escape(e.hint)}")
        if parsed_args.debug:
            err_console.print_exception()
        return 1


def run(args, display: DisplayService) -> int:
    command = args.command or "list"

    if command == "doctor":
        findings = DoctorService(args.directory).diagnose()
        display.display_findings(findings)
        return 1 if any(f.severity == Severity.ERROR for f in findings) else 0

    engine = Workty(args.directory, max_workers=args.workers, sequential=args.sequential)

    if command in ("list", "ls"):
        display.display_worktree_table(
            engine.list_worktrees(), current=engine.current(), base_branch=engine.config.base_branch
        )
        return 0

    if command == "go":
        display.print_path(engine.go(args.name))
        return 0

    if command == "rank":
        display.display_paths(engine.rank(args.query))
        return 0

    if command == "new":
        options = CreateOptions(from_ref=args.from_ref, path=Path(args.path) if args.path else None)
        result = engine.create(args.name, options)
        if args.print_path:
            display.print_path(result.path)
        else:
            display.display_results([result])
        if args.open and not engine.open(result.path):
            err_console.print("[yellow]No open_cmd configured; nothing opened.[/yellow]")
        return 0

    if command == "rm":
        result = engine.remove(args.name, RemoveOptions(force=args.force, delete_branch=args.delete_branch))
        display.display_results([result])
        return 0

    if command == "clean":
        criteria = CleanCriteria(
            # --merged is the default when no other criterion is given
            merged=args.merged or not (args.gone or args.stale),
            gone=args.gone,
            stale_days=args.stale,
            force=args.force,
            delete_branch=args.delete_branch,
            dry_run=args.dry_run,
        )
        results = engine.clean(criteria)
        display.display_results(results, dry_run=args.dry_run)
        return 1 if any(r.kind == ResultKind.FAILED for r in results) else 0

    raise WorktyError(f"Unknown command: {command}")


if __name__ == "__main__":
    sys.exit(main())
