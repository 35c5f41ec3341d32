"""Shared constants for git-workty."""

from dataclasses import dataclass
from typing import List

from git_workty.models.worktree import ResultKind, Severity


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str
    width: int = 0  # 0 means auto-width


COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("marker", "", 2),
    ColumnDefinition("name", "Worktree", 30),
    ColumnDefinition("changes", "Changes", 10),
    ColumnDefinition("sync", "Sync", 12),
    ColumnDefinition("merged", "Merged", 8),
    ColumnDefinition("path", "Path"),
]


# Symbol constants
SYMBOL_CURRENT = "▸"
SYMBOL_PRIMARY = "●"
SYMBOL_AHEAD = "↑"
SYMBOL_BEHIND = "↓"
SYMBOL_CLEAN = "✓"
SYMBOL_FAILED = "⚠"
SYMBOL_MERGED = "✓"
SYMBOL_DETACHED = "(detached)"


RESULT_STYLES = {
    ResultKind.CREATED: ("✓", "green"),
    ResultKind.REMOVED: ("✓", "green"),
    ResultKind.SKIPPED: ("○", "yellow"),
    ResultKind.FAILED: ("✗", "red"),
}


SEVERITY_STYLES = {
    Severity.INFO: ("•", "cyan"),
    Severity.WARNING: ("!", "yellow"),
    Severity.ERROR: ("✗", "red"),
}


LEGEND_TEXT = """
Legend:
▸ = Current worktree      ● = Primary worktree
+S = Staged files         +M = Modified files      +U = Untracked files
↑ = Unpushed commits      ↓ = Commits to pull      gone = Upstream deleted
"""
