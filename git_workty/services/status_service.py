"""Live status computation for worktrees."""

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional

import git

from git_workty.config import Config
from git_workty.exceptions import WorktyError
from git_workty.models.worktree import BranchStatus, WorktreeRecord
from git_workty.services.git.repository import GitRepository, translate_git_error
from git_workty.utils.threading import get_optimal_worker_count
from git_workty.logging_config import get_logger

logger = get_logger(__name__)


def parse_status_counts(status_output: str) -> tuple[int, int, int]:
    """Count (staged, unstaged, untracked) entries in `git status --porcelain` output.

    Porcelain format: XY filename, where X is the index (staged) column and
    Y the working tree column. `??` marks untracked files, `!!` ignored ones.
    """
    staged = unstaged = untracked = 0
    for line in status_output.split("\n"):
        if len(line) < 2:
            continue
        if line.startswith("??"):
            untracked += 1
            continue
        if line.startswith("!!"):
            continue
        if line[0] != " ":
            staged += 1
        if line[1] != " ":
            unstaged += 1
    return staged, unstaged, untracked


class StatusService:
    """Computes BranchStatus for worktrees, optionally in parallel."""

    def __init__(
        self,
        repository: GitRepository,
        config: Config,
        max_workers: Optional[int] = None,
        sequential: bool = False,
    ):
        self.repository = repository
        self.config = config
        self.max_workers = max_workers
        self.sequential = sequential

    def annotate(self, records: Iterable[WorktreeRecord]) -> dict[WorktreeRecord, BranchStatus]:
        """Compute status for every record.

        The returned mapping iterates in the same order as `records`, whatever
        order the workers finish in.
        """
        records = list(records)
        if self.sequential or len(records) <= 1:
            return {record: self.status_for(record) for record in records}

        max_workers = get_optimal_worker_count(self.max_workers, task_count=len(records))
        logger.debug(f"Using {max_workers} workers for {len(records)} worktrees")
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="workty-status") as executor:
            futures = [executor.submit(self.status_for, record) for record in records]
            # status_for never raises, so result() only joins
            statuses = [future.result() for future in futures]
        return dict(zip(records, statuses))

    def status_for(self, record: WorktreeRecord) -> BranchStatus:
        """Compute status for one record; a failure is confined to that record."""
        try:
            return self._compute(record)
        except (WorktyError, git.exc.CommandError, OSError) as e:
            logger.warning(f"Could not compute status for {record.path}: {e}")
            return BranchStatus.failure(str(e))

    def _compute(self, record: WorktreeRecord) -> BranchStatus:
        # Refs live in the common dir, so branch facts survive a deleted directory
        error = None
        if record.path.is_dir():
            staged, unstaged, untracked = self.dirty_counts(record)
        else:
            staged = unstaged = untracked = 0
            error = f"worktree directory is missing: {record.path}"

        if record.is_detached:
            return BranchStatus(
                staged_count=staged,
                unstaged_count=unstaged,
                untracked_count=untracked,
                last_commit_time=self._commit_time(record.head_commit),
                error=error,
            )

        branch = record.branch
        upstream, gone = self._upstream(branch)
        ahead = behind = None
        if upstream and not gone:
            ahead, behind = self._ahead_behind(branch, upstream)

        return BranchStatus(
            staged_count=staged,
            unstaged_count=unstaged,
            untracked_count=untracked,
            upstream=upstream,
            ahead=ahead,
            behind=behind,
            upstream_gone=gone,
            last_commit_time=self._commit_time(f"refs/heads/{branch}"),
            merged_into_base=self.is_merged(branch),
            error=error,
        )

    def dirty_counts(self, record: WorktreeRecord) -> tuple[int, int, int]:
        """(staged, unstaged, untracked) counts, read inside the worktree."""
        try:
            output = self.repository.runner_in(record.path).status("--porcelain")
        except git.exc.CommandError as e:
            raise translate_git_error(e, "status", path=record.path, branch=record.branch) from e
        return parse_status_counts(output)

    def is_dirty(self, record: WorktreeRecord) -> bool:
        """Fresh dirty check used right before a destructive action."""
        return sum(self.dirty_counts(record)) > 0

    def is_merged(self, branch: Optional[str]) -> bool:
        """True iff the branch tip is an ancestor of the current base tip.

        Evaluated against the base as it is right now; never cached. The base
        branch itself, detached worktrees and a missing base are never merged.
        """
        base = self.config.base_branch
        if not branch or branch == base:
            return False

        runner = self.repository.runner
        try:
            runner.rev_parse("--verify", "--quiet", f"{base}^{{commit}}")
        except git.exc.GitCommandError:
            logger.debug(f"Base branch {base} does not exist; nothing is merged")
            return False

        try:
            runner.merge_base("--is-ancestor", f"refs/heads/{branch}", base)
            return True
        except git.exc.GitCommandError as e:
            if e.status == 1:
                return False
            raise translate_git_error(e, "merge-base", branch=branch) from e

    def _upstream(self, branch: str) -> tuple[Optional[str], bool]:
        """(upstream name, upstream gone) for a local branch."""
        try:
            output = self.repository.runner.for_each_ref(
                "--format=%(upstream:short)|%(upstream:track)", f"refs/heads/{branch}"
            )
        except git.exc.CommandError as e:
            raise translate_git_error(e, "for-each-ref", branch=branch) from e

        upstream, _, track = output.strip().partition("|")
        if not upstream:
            return None, False
        return upstream, track.strip() == "[gone]"

    def _ahead_behind(self, branch: str, upstream: str) -> tuple[Optional[int], Optional[int]]:
        try:
            output = self.repository.runner.rev_list(
                "--left-right", "--count", f"refs/heads/{branch}...{upstream}"
            )
        except git.exc.GitCommandError as e:
            logger.debug(f"Could not count ahead/behind for {branch}: {e}")
            return None, None

        parts = output.split()
        if len(parts) != 2:
            return None, None
        return int(parts[0]), int(parts[1])

    def _commit_time(self, ref: str) -> Optional[int]:
        if not ref:
            return None
        try:
            output = self.repository.runner.log("-1", "--format=%ct", ref)
        except git.exc.GitCommandError as e:
            logger.debug(f"Could not read commit time for {ref}: {e}")
            return None
        output = output.strip()
        return int(output) if output.isdigit() else None
