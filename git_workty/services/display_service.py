"""Display and formatting service for worktree information"""
import json
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from git_workty.constants import (
    COLUMNS,
    LEGEND_TEXT,
    RESULT_STYLES,
    SEVERITY_STYLES,
    SYMBOL_AHEAD,
    SYMBOL_BEHIND,
    SYMBOL_CLEAN,
    SYMBOL_CURRENT,
    SYMBOL_DETACHED,
    SYMBOL_FAILED,
    SYMBOL_MERGED,
    SYMBOL_PRIMARY,
)
from git_workty.models.worktree import BranchStatus, Finding, LifecycleResult, ResultKind, WorktreeRecord
from git_workty.logging_config import get_logger

console = Console()
logger = get_logger(__name__)


def format_changes(status: BranchStatus) -> str:
    """Compact dirty indicator, e.g. `+S2 +M1`."""
    if status.failed:
        return SYMBOL_FAILED
    if not status.dirty:
        return SYMBOL_CLEAN
    parts = []
    if status.staged_count:
        parts.append(f"+S{status.staged_count}")
    if status.unstaged_count:
        parts.append(f"+M{status.unstaged_count}")
    if status.untracked_count:
        parts.append(f"+U{status.untracked_count}")
    return " ".join(parts)


def format_sync(status: BranchStatus) -> str:
    if status.failed:
        return ""
    if status.upstream_gone:
        return "gone"
    if status.ahead is None or status.behind is None:
        return "-"
    if not status.ahead and not status.behind:
        return "="
    parts = []
    if status.ahead:
        parts.append(f"{SYMBOL_AHEAD}{status.ahead}")
    if status.behind:
        parts.append(f"{SYMBOL_BEHIND}{status.behind}")
    return " ".join(parts)


def row_to_dict(record: WorktreeRecord, status: BranchStatus) -> dict:
    """JSON form of a dashboard row."""
    return {
        "path": str(record.path),
        "branch": record.branch,
        "head": record.head_commit,
        "is_primary": record.is_primary,
        "locked": record.locked,
        "prunable": record.prunable,
        "dirty": status.dirty,
        "staged": status.staged_count,
        "unstaged": status.unstaged_count,
        "untracked": status.untracked_count,
        "upstream": status.upstream,
        "ahead": status.ahead,
        "behind": status.behind,
        "upstream_gone": status.upstream_gone,
        "merged_into_base": status.merged_into_base,
        "error": status.error,
    }


class DisplayService:
    """Renders engine results; the only place that writes to the terminal."""

    def __init__(self, json_output: bool = False, verbose: bool = False, out: Optional[Console] = None):
        self.json_output = json_output
        self.verbose = verbose
        self.console = out or console

    def display_worktree_table(
        self,
        rows: Sequence[tuple[WorktreeRecord, BranchStatus]],
        current: Optional[WorktreeRecord] = None,
        base_branch: Optional[str] = None,
    ) -> None:
        """Display the dashboard of all worktrees."""
        if self.json_output:
            self.console.print_json(json.dumps([row_to_dict(r, s) for r, s in rows]))
            return

        title = f"Worktrees (base: {escape(base_branch)})" if base_branch else None
        table = Table(title=title)
        for col in COLUMNS:
            table.add_column(col.label, min_width=col.width or None)

        for record, status in rows:
            marker = SYMBOL_CURRENT if record == current else (SYMBOL_PRIMARY if record.is_primary else "")
            name = escape(record.branch or f"{record.path.name} {SYMBOL_DETACHED}")
            style = None
            if status.failed:
                style = "red"
            elif status.dirty:
                style = "yellow"
            elif status.merged_into_base:
                style = "dim"
            table.add_row(
                marker,
                name,
                format_changes(status),
                format_sync(status),
                SYMBOL_MERGED if status.merged_into_base else "",
                escape(str(record.path)),
                style=style,
            )

        self.console.print(table)
        if self.verbose:
            self.console.print(LEGEND_TEXT)
            for record, status in rows:
                if status.failed:
                    self.console.print(f"[red]{escape(str(record.path))}: {escape(status.error)}[/red]")

    def display_results(self, results: List[LifecycleResult], dry_run: bool = False) -> None:
        """Display the outcome of create/remove/clean."""
        if self.json_output:
            self.console.print_json(json.dumps([r.to_dict() for r in results]))
            return

        if not results:
            self.console.print("[green]No worktrees to clean up.[/green]")
            return

        for result in results:
            symbol, color = RESULT_STYLES[result.kind]
            label = escape(result.branch or result.path.name)
            path = escape(str(result.path))
            if result.kind == ResultKind.CREATED:
                text = f"Created worktree '{label}' at {path}"
            elif result.kind == ResultKind.REMOVED:
                text = f"Removed worktree '{label}' at {path}"
                if result.branch_deleted:
                    text += f" and deleted branch '{label}'"
            elif result.kind == ResultKind.SKIPPED:
                text = f"Skipped '{label}' ({escape(result.reason or '')})"
            else:
                text = f"Failed '{label}': {escape(result.error or '')}"
            self.console.print(f"[{color}]{symbol} {text}[/{color}]")

        removed = sum(1 for r in results if r.kind == ResultKind.REMOVED)
        skipped = [r for r in results if r.kind == ResultKind.SKIPPED]
        if any(r.reason == "dirty" for r in skipped):
            self.console.print("[yellow]Dirty worktrees were kept; use --force to remove them anyway.[/yellow]")
        if dry_run:
            self.console.print("[cyan]Dry run - no worktrees removed.[/cyan]")
        elif len(results) > 1 or removed != len(results):
            self.console.print(f"\nCleaned up {removed} worktree(s).")

    def display_findings(self, findings: List[Finding]) -> None:
        """Display doctor findings."""
        if self.json_output:
            self.console.print_json(json.dumps([
                {"severity": f.severity.value, "description": f.description, "suggested_fix": f.suggested_fix}
                for f in findings
            ]))
            return

        for finding in findings:
            symbol, color = SEVERITY_STYLES[finding.severity]
            self.console.print(f"[{color}]{symbol}[/{color}] {escape(finding.description)}")
            if finding.suggested_fix:
                self.console.print(f"  [cyan]hint[/cyan]: {escape(finding.suggested_fix)}")

    def display_paths(self, records: Sequence[WorktreeRecord]) -> None:
        """One path per line, for piping into a picker."""
        if self.json_output:
            self.console.print_json(json.dumps([{"name": r.name, "path": str(r.path)} for r in records]))
            return
        for record in records:
            print(record.path)

    def print_path(self, path: Path) -> None:
        # Plain print so shell wrappers can capture it
        print(path)
