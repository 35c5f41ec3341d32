"""Core functionality for git-workty"""

import shlex
import subprocess
from pathlib import Path
from typing import Optional, Union

from git_workty.config import Config, config_path, load_config
from git_workty.exceptions import WorktreeNotFoundError, WorktyError
from git_workty.models.worktree import (
    BranchStatus,
    CleanCriteria,
    CreateOptions,
    Finding,
    LifecycleResult,
    RemoveOptions,
    WorktreeRecord,
)
from git_workty.services.doctor_service import DoctorService
from git_workty.services.git import GitRepository, WorktreeService
from git_workty.services.lifecycle_service import LifecycleService
from git_workty.services.path_resolver import PathResolver
from git_workty.services.ranking import rank_worktrees
from git_workty.services.status_service import StatusService
from git_workty.logging_config import get_logger

logger = get_logger(__name__)


class Workty:
    """The worktree engine for one command invocation.

    Construction discovers the repository and loads its config; failures here
    (no repository, no git, bad config) abort before anything is mutated.
    Nothing is cached between calls: each operation rediscovers worktrees.
    """

    def __init__(
        self,
        start_path: Optional[Union[str, Path]] = None,
        config: Optional[Config] = None,
        max_workers: Optional[int] = None,
        sequential: bool = False,
    ):
        """Initialize the engine.

        Args:
            start_path: Directory to run as if started in (default: cwd)
            config: Explicit config; loaded from the repository when omitted
            max_workers: Upper bound for parallel status workers
            sequential: Compute status one worktree at a time
        """
        self.start_path = start_path
        self.repository = GitRepository.discover(start_path)
        self.config = config if config is not None else load_config(config_path(self.repository))

        self.worktree_service = WorktreeService(self.repository)
        self.status_service = StatusService(
            self.repository, self.config, max_workers=max_workers, sequential=sequential
        )
        self.resolver = PathResolver(
            self.config, self.repository.name, self.repository.repo_id, base_dir=self.repository.cwd
        )
        self.lifecycle_service = LifecycleService(
            self.repository,
            self.config,
            self.worktree_service,
            self.status_service,
            self.resolver,
        )
        logger.debug(f"Engine ready for {self.repository!r} with base {self.config.base_branch}")

    def discover(self) -> list[WorktreeRecord]:
        return self.worktree_service.discover()

    def list_worktrees(self) -> list[tuple[WorktreeRecord, BranchStatus]]:
        """Dashboard rows: primary worktree first, then discovery order."""
        records = self.discover()
        statuses = self.status_service.annotate(records)
        rows = list(statuses.items())
        return sorted(rows, key=lambda row: not row[0].is_primary)

    def current(self) -> Optional[WorktreeRecord]:
        return WorktreeService.current(self.discover(), self.repository.cwd)

    def go(self, name: str) -> Path:
        """Path of the worktree named by branch, directory name or path."""
        record = WorktreeService.find(self.discover(), name)
        if record is None:
            raise WorktreeNotFoundError(name)
        return record.path

    def rank(self, query: str = "") -> list[WorktreeRecord]:
        """Worktrees ranked by fuzzy match for an interactive picker."""
        return rank_worktrees(query, self.discover())

    def create(self, branch: str, options: Optional[CreateOptions] = None) -> LifecycleResult:
        return self.lifecycle_service.create(branch, options)

    def remove(self, name: str, options: Optional[RemoveOptions] = None) -> LifecycleResult:
        return self.lifecycle_service.remove(name, options)

    def clean(self, criteria: Optional[CleanCriteria] = None) -> list[LifecycleResult]:
        return self.lifecycle_service.clean(criteria)

    def diagnose(self) -> list[Finding]:
        return DoctorService(self.start_path, self.config).diagnose()

    def open(self, path: Path) -> bool:
        """Launch the configured open command on `path`; False when none is set."""
        if not self.config.open_cmd:
            return False
        command = shlex.split(self.config.open_cmd) + [str(path)]
        logger.info(f"Opening {path} with {command[0]}")
        try:
            subprocess.Popen(command, start_new_session=True)
        except OSError as e:
            raise WorktyError(f"Could not run open_cmd '{self.config.open_cmd}': {e}") from e
        return True
