"""Worktree data models."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class WorktreeRecord:
    """A worktree as reported by `git worktree list`."""

    path: Path
    branch: Optional[str]  # None when HEAD is detached
    head_commit: str
    is_primary: bool  # The original checkout rather than a linked worktree
    locked: bool = False
    lock_reason: Optional[str] = None
    prunable: bool = False

    @property
    def is_detached(self) -> bool:
        return self.branch is None

    @property
    def name(self) -> str:
        """Branch name, or the directory name for detached worktrees."""
        return self.branch or self.path.name

    def __str__(self) -> str:
        main_marker = " (primary)" if self.is_primary else ""
        return f"{self.name} @ {self.path}{main_marker}"


@dataclass(frozen=True)
class BranchStatus:
    """Live status of one worktree, valid only for the invocation that computed it."""

    staged_count: int = 0
    unstaged_count: int = 0
    untracked_count: int = 0
    upstream: Optional[str] = None
    ahead: Optional[int] = None  # None without upstream
    behind: Optional[int] = None
    upstream_gone: bool = False
    last_commit_time: Optional[int] = None
    merged_into_base: bool = False
    error: Optional[str] = None

    @property
    def dirty(self) -> bool:
        return (self.staged_count + self.unstaged_count + self.untracked_count) > 0

    @property
    def failed(self) -> bool:
        return self.error is not None

    @classmethod
    def failure(cls, error: str) -> "BranchStatus":
        return cls(error=error)


class ResultKind(Enum):
    """Outcome of a lifecycle operation."""
    CREATED = "created"
    REMOVED = "removed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class LifecycleResult:
    """Tagged outcome of create/remove/clean for a single worktree."""

    kind: ResultKind
    path: Path
    branch: Optional[str] = None
    reason: Optional[str] = None  # Set for SKIPPED
    error: Optional[str] = None  # Set for FAILED
    branch_deleted: bool = False

    @classmethod
    def created(cls, path: Path, branch: Optional[str] = None) -> "LifecycleResult":
        return cls(ResultKind.CREATED, path, branch=branch)

    @classmethod
    def removed(
        cls, path: Path, branch: Optional[str] = None, branch_deleted: bool = False
    ) -> "LifecycleResult":
        return cls(ResultKind.REMOVED, path, branch=branch, branch_deleted=branch_deleted)

    @classmethod
    def skipped(cls, path: Path, reason: str, branch: Optional[str] = None) -> "LifecycleResult":
        return cls(ResultKind.SKIPPED, path, branch=branch, reason=reason)

    @classmethod
    def failed(cls, path: Path, error: str, branch: Optional[str] = None) -> "LifecycleResult":
        return cls(ResultKind.FAILED, path, branch=branch, error=error)

    def to_dict(self) -> dict:
        data = {"kind": self.kind.value, "path": str(self.path), "branch": self.branch}
        if self.kind == ResultKind.SKIPPED:
            data["reason"] = self.reason
        elif self.kind == ResultKind.FAILED:
            data["error"] = self.error
        elif self.kind == ResultKind.REMOVED:
            data["branch_deleted"] = self.branch_deleted
        return data


class Severity(Enum):
    """Severity of a doctor finding."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Finding:
    """A single diagnostic reported by the doctor."""

    severity: Severity
    description: str
    suggested_fix: Optional[str] = None


@dataclass(frozen=True)
class CreateOptions:
    from_ref: Optional[str] = None  # Defaults to the configured base branch
    path: Optional[Path] = None  # Explicit location instead of the template


@dataclass(frozen=True)
class RemoveOptions:
    force: bool = False
    delete_branch: bool = False


@dataclass(frozen=True)
class CleanCriteria:
    """Which worktrees `clean` considers and how it removes them."""

    merged: bool = True
    gone: bool = False  # Upstream branch deleted on the remote
    stale_days: Optional[int] = None  # No commit for this many days
    force: bool = False
    delete_branch: bool = False
    dry_run: bool = False

    def __post_init__(self):
        if self.stale_days is not None and self.stale_days <= 0:
            raise ValueError(f"stale_days must be positive, got {self.stale_days}")

    @property
    def has_filter(self) -> bool:
        return self.merged or self.gone or self.stale_days is not None
