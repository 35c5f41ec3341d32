"""Worktree registry: discovery and Git worktree/branch primitives."""

import os
from pathlib import Path
from typing import Dict, Any, Iterable, Optional

import git

from git_workty.models.worktree import WorktreeRecord
from git_workty.services.git.repository import GitRepository, translate_git_error
from git_workty.logging_config import get_logger

logger = get_logger(__name__)


def _build_record(entry: Dict[str, Any], is_primary: bool) -> WorktreeRecord:
    branch_ref = entry.get("branch")
    branch = None
    if branch_ref and not entry.get("detached"):
        branch = branch_ref[len("refs/heads/"):] if branch_ref.startswith("refs/heads/") else branch_ref
    return WorktreeRecord(
        path=Path(entry["path"]),
        branch=branch,
        head_commit=entry.get("HEAD", ""),
        is_primary=is_primary,
        locked=entry.get("locked", False),
        lock_reason=entry.get("lock_reason"),
        prunable=entry.get("prunable", False),
    )


def parse_worktree_list(output: str) -> list[WorktreeRecord]:
    """Parse `git worktree list --porcelain` output.

    Format:
        worktree /path/to/worktree
        HEAD commit_sha
        branch refs/heads/branch-name   (or "detached")
        locked [reason]                 (optional)
        prunable [reason]               (optional)
        (blank line between worktrees; "bare" marks a bare repository entry)

    Bare entries are skipped. The first remaining entry is the primary worktree.
    """
    entries: list[Dict[str, Any]] = []
    current: Dict[str, Any] = {}

    for line in output.split("\n"):
        line = line.rstrip("\r")
        if not line.strip():
            if current:
                entries.append(current)
                current = {}
            continue

        key, _, value = line.partition(" ")
        if key == "worktree":
            if current:
                entries.append(current)
            current = {"path": value}
        elif key == "HEAD":
            current["HEAD"] = value
        elif key == "branch":
            current["branch"] = value
        elif key == "detached":
            current["detached"] = True
        elif key == "bare":
            current["bare"] = True
        elif key == "locked":
            current["locked"] = True
            current["lock_reason"] = value or None
        elif key == "prunable":
            current["prunable"] = True

    if current:
        entries.append(current)

    records = []
    for entry in entries:
        if entry.get("bare") or not entry.get("path"):
            continue
        records.append(_build_record(entry, is_primary=not records))
    return records


class WorktreeService:
    """Service for discovering and mutating git worktrees."""

    def __init__(self, repository: GitRepository):
        """Initialize the worktree service.

        Args:
            repository: The repository opened for this invocation
        """
        self.repository = repository

    def discover(self) -> list[WorktreeRecord]:
        """List every worktree of the repository, primary first.

        Performs no writes; each call is a fresh read of Git's records.
        """
        try:
            output = self.repository.runner.worktree("list", "--porcelain")
        except git.exc.CommandError as e:
            raise translate_git_error(e, "worktree list", path=self.repository.root) from e

        records = parse_worktree_list(output)
        logger.debug(f"Found {len(records)} worktrees")
        for record in records:
            logger.debug(f"  {record}")
        return records

    @staticmethod
    def find(records: Iterable[WorktreeRecord], name: str) -> Optional[WorktreeRecord]:
        """Find a worktree by branch name, directory name, or path.

        Branch names win over directory names so `feat/login` and a directory
        called `feat-login` cannot shadow each other.
        """
        records = list(records)
        for record in records:
            if record.branch == name:
                return record
        for record in records:
            if record.path.name == name:
                return record

        candidate = Path(os.path.expanduser(name))
        if candidate.is_absolute() or os.sep in name:
            resolved = _resolve(candidate)
            for record in records:
                if _resolve(record.path) == resolved:
                    return record
        return None

    @staticmethod
    def find_by_branch(records: Iterable[WorktreeRecord], branch: str) -> Optional[WorktreeRecord]:
        return next((r for r in records if r.branch == branch), None)

    @staticmethod
    def current(records: Iterable[WorktreeRecord], cwd: Path) -> Optional[WorktreeRecord]:
        """The worktree containing `cwd`; the deepest match wins for nested layouts."""
        cwd = _resolve(cwd)
        best = None
        for record in records:
            path = _resolve(record.path)
            if cwd == path or cwd.is_relative_to(path):
                if best is None or len(path.parts) > len(_resolve(best.path).parts):
                    best = record
        return best

    def branch_exists(self, branch: str) -> bool:
        """Check if a local branch exists."""
        try:
            self.repository.runner.show_ref("--verify", "--quiet", f"refs/heads/{branch}")
            return True
        except git.exc.GitCommandError:
            return False

    def remote_branch_exists(self, branch: str, remote: str = "origin") -> bool:
        """Check if a remote-tracking branch exists locally (no network access)."""
        try:
            self.repository.runner.show_ref("--verify", "--quiet", f"refs/remotes/{remote}/{branch}")
            return True
        except git.exc.GitCommandError:
            return False

    def add(
        self,
        path: Path,
        branch: str,
        new_branch_from: Optional[str] = None,
        track: bool = False,
    ) -> None:
        """Create a worktree at `path`.

        Args:
            path: Worktree directory; must not exist yet
            branch: Branch to check out
            new_branch_from: When set, create `branch` starting at this ref
            track: Set up tracking for the new branch (used with remote refs)
        """
        args = ["add"]
        if new_branch_from is not None:
            if track:
                args.append("--track")
            args += ["-b", branch, str(path), new_branch_from]
        else:
            args += [str(path), branch]

        try:
            self.repository.runner.worktree(*args)
        except git.exc.CommandError as e:
            raise translate_git_error(e, "worktree add", path=path, branch=branch) from e
        logger.info(f"Created worktree for {branch} at {path}")

    def remove(self, record: WorktreeRecord, force: bool = False) -> None:
        """Remove a worktree; `force` also discards changes and overrides a lock."""
        args = ["remove"]
        if force:
            args.append("--force")
            if record.locked:
                # A locked worktree needs the flag twice
                args.append("--force")
        args.append(str(record.path))

        try:
            self.repository.runner.worktree(*args)
        except git.exc.CommandError as e:
            raise translate_git_error(e, "worktree remove", path=record.path, branch=record.branch) from e
        logger.info(f"Removed worktree at {record.path}")

    def prune(self) -> None:
        """Drop Git's records of worktrees whose directories no longer exist."""
        try:
            self.repository.runner.worktree("prune")
        except git.exc.CommandError as e:
            raise translate_git_error(e, "worktree prune") from e
        logger.info("Pruned stale worktree metadata")

    def delete_branch(self, branch: str, force: bool = False) -> None:
        """Delete a local branch; without force Git refuses unmerged branches."""
        try:
            self.repository.runner.branch("-D" if force else "-d", branch)
        except git.exc.CommandError as e:
            raise translate_git_error(e, "branch delete", branch=branch) from e
        logger.info(f"Deleted branch {branch}")


def _resolve(path: Path) -> Path:
    try:
        return path.resolve()
    except OSError:
        return path.absolute()
