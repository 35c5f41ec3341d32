"""Create, remove and clean worktrees under safety guards."""

import time
from pathlib import Path
from typing import Optional

from git_workty.config import Config
from git_workty.exceptions import (
    BranchAlreadyCheckedOutError,
    CurrentWorktreeError,
    DirtyWorktreeError,
    GitOperationError,
    PrimaryWorktreeError,
    WorktreeLockedError,
    WorktreeNotFoundError,
    WorktyError,
)
from git_workty.models.worktree import (
    BranchStatus,
    CleanCriteria,
    CreateOptions,
    LifecycleResult,
    RemoveOptions,
    ResultKind,
    WorktreeRecord,
)
from git_workty.services.git.repository import GitRepository
from git_workty.services.git.worktrees import WorktreeService
from git_workty.services.path_resolver import PathResolver
from git_workty.services.status_service import StatusService
from git_workty.logging_config import get_logger

logger = get_logger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


class LifecycleService:
    """Lifecycle transitions composed from registry, status and resolver.

    Every operation starts from a fresh discovery pass and re-checks dirty
    state immediately before removing anything.
    """

    def __init__(
        self,
        repository: GitRepository,
        config: Config,
        worktrees: WorktreeService,
        status: StatusService,
        resolver: PathResolver,
    ):
        self.repository = repository
        self.config = config
        self.worktrees = worktrees
        self.status = status
        self.resolver = resolver

    def create(self, branch: str, options: Optional[CreateOptions] = None) -> LifecycleResult:
        """Create a worktree for `branch`, creating the branch from the base if needed.

        Raises:
            BranchAlreadyCheckedOutError: branch is bound to another worktree
            PathCollisionError: the target path is taken
        """
        options = options or CreateOptions()
        records = self.worktrees.discover()

        existing = WorktreeService.find_by_branch(records, branch)
        if existing:
            raise BranchAlreadyCheckedOutError(branch, existing.path)

        path = self.resolver.resolve(branch, records, options.path)
        created_dirs = _make_parents(path)
        try:
            if self.worktrees.branch_exists(branch):
                logger.info(f"Using existing branch '{branch}'")
                self.worktrees.add(path, branch)
            elif options.from_ref is None and self.worktrees.remote_branch_exists(branch):
                logger.info(f"Tracking remote branch 'origin/{branch}'")
                self.worktrees.add(path, branch, new_branch_from=f"origin/{branch}", track=True)
            else:
                base = options.from_ref or self.config.base_branch
                logger.info(f"Creating new branch '{branch}' from '{base}'")
                self.worktrees.add(path, branch, new_branch_from=base)
        except WorktyError:
            _remove_empty_dirs(created_dirs)
            raise

        return LifecycleResult.created(path, branch)

    def remove(self, name: str, options: Optional[RemoveOptions] = None) -> LifecycleResult:
        """Remove the worktree named by branch, directory name or path.

        Raises:
            WorktreeNotFoundError: nothing matches `name`
            DirtyWorktreeError: uncommitted changes and not forced
        """
        options = options or RemoveOptions()
        records = self.worktrees.discover()
        record = WorktreeService.find(records, name)
        if record is None:
            raise WorktreeNotFoundError(name)
        return self._remove_record(record, records, options.force, options.delete_branch)

    def clean(self, criteria: Optional[CleanCriteria] = None) -> list[LifecycleResult]:
        """Remove every worktree matching `criteria`, in discovery order.

        Dirty worktrees are skipped unless forced; one failure never stops the batch.
        """
        criteria = criteria or CleanCriteria()
        records = self.worktrees.discover()
        current = WorktreeService.current(records, self.repository.cwd)

        candidates = [r for r in records if self._is_clean_candidate(r, current)]
        if not candidates or not criteria.has_filter:
            return []

        statuses = self.status.annotate(candidates)
        now = time.time()
        results = []
        for record in candidates:
            status = statuses[record]
            if not _matches(status, criteria, now):
                continue
            if status.failed and record.path.exists():
                results.append(LifecycleResult.failed(record.path, status.error, record.branch))
                continue
            if status.dirty and not criteria.force:
                results.append(LifecycleResult.skipped(record.path, "dirty", record.branch))
                continue
            if record.locked and not criteria.force:
                results.append(LifecycleResult.skipped(record.path, "locked", record.branch))
                continue
            if criteria.dry_run:
                results.append(LifecycleResult.skipped(record.path, "dry-run", record.branch))
                continue

            try:
                results.append(
                    self._remove_record(record, records, criteria.force, criteria.delete_branch)
                )
            except DirtyWorktreeError:
                results.append(LifecycleResult.skipped(record.path, "dirty", record.branch))
            except WorktyError as e:
                logger.error(f"Failed to remove worktree at {record.path}: {e}")
                results.append(LifecycleResult.failed(record.path, str(e), record.branch))

        removed = sum(1 for r in results if r.kind == ResultKind.REMOVED)
        logger.info(f"Clean finished: {removed} of {len(results)} candidate(s) removed")
        return results

    def _is_clean_candidate(self, record: WorktreeRecord, current: Optional[WorktreeRecord]) -> bool:
        return (
            not record.is_primary
            and not record.is_detached
            and record.branch != self.config.base_branch
            and record != current
        )

    def _remove_record(
        self,
        record: WorktreeRecord,
        records: list[WorktreeRecord],
        force: bool,
        delete_branch: bool,
    ) -> LifecycleResult:
        if record.is_primary:
            raise PrimaryWorktreeError(record.path)
        if record == WorktreeService.current(records, self.repository.cwd):
            raise CurrentWorktreeError(record.path)

        if record.path.exists():
            if not force and self.status.is_dirty(record):
                raise DirtyWorktreeError(record.path, record.branch)
            if record.locked and not force:
                raise WorktreeLockedError(record.path, record.lock_reason or "worktree is locked")
            self.worktrees.remove(record, force=force)
        else:
            if record.locked and not force:
                raise WorktreeLockedError(record.path, record.lock_reason or "worktree is locked")
            self._unregister_missing(record, records, force)

        branch_deleted = False
        if delete_branch and record.branch:
            branch_deleted = self._delete_branch(record.branch, force)
        return LifecycleResult.removed(record.path, record.branch, branch_deleted=branch_deleted)

    def _unregister_missing(self, record: WorktreeRecord, records: list[WorktreeRecord], force: bool) -> None:
        """Drop Git's record of a worktree whose directory is already gone.

        Only this record is touched; other stale worktrees stay registered.
        """
        logger.info(f"Worktree directory {record.path} is missing, removing its record")
        try:
            self.worktrees.remove(record, force=force)
            return
        except WorktyError as e:
            logger.debug(f"worktree remove refused missing directory {record.path}: {e}")

        others = [r.name for r in records if r != record and not r.is_primary and not r.path.exists()]
        if others:
            error = GitOperationError(
                "worktree remove",
                record.branch,
                f"{record.path} is missing and cannot be removed on its own",
            )
            error.hint = (
                f"Run `git worktree prune` to drop it together with {', '.join(others)}, "
                "which are missing too."
            )
            raise error

        # The target is the only stale record, so pruning touches nothing else
        self.worktrees.prune()
        if any(r.path == record.path for r in self.worktrees.discover()):
            raise GitOperationError("worktree prune", record.branch, f"{record.path} is still registered")

    def _delete_branch(self, branch: str, force: bool) -> bool:
        """Delete a branch no longer checked out anywhere; refusal is not fatal."""
        if WorktreeService.find_by_branch(self.worktrees.discover(), branch):
            logger.warning(f"Branch '{branch}' is still checked out elsewhere; keeping it")
            return False
        try:
            self.worktrees.delete_branch(branch, force=force)
            return True
        except WorktyError as e:
            logger.warning(f"Could not delete branch '{branch}': {e}. Use `git branch -D {branch}` to force.")
            return False


def _matches(status: BranchStatus, criteria: CleanCriteria, now: float) -> bool:
    if criteria.merged and status.merged_into_base:
        return True
    if criteria.gone and status.upstream_gone:
        return True
    if criteria.stale_days is not None and status.last_commit_time is not None:
        if now - status.last_commit_time > criteria.stale_days * SECONDS_PER_DAY:
            return True
    return False


def _make_parents(path: Path) -> list[Path]:
    """Create missing parent directories, returning the ones created (deepest last)."""
    missing = []
    parent = path.parent
    while not parent.exists():
        missing.append(parent)
        if parent.parent == parent:
            break
        parent = parent.parent
    missing.reverse()
    path.parent.mkdir(parents=True, exist_ok=True)
    return missing


def _remove_empty_dirs(created: list[Path]) -> None:
    for directory in reversed(created):
        try:
            directory.rmdir()
        except OSError:
            break
