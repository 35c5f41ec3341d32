"""Repository discovery and Git error translation."""

import hashlib
import os
import re
from pathlib import Path
from typing import Optional, Union

import git

from git_workty.exceptions import (
    BranchAlreadyCheckedOutError,
    DirtyWorktreeError,
    GitNotRepoError,
    GitOperationError,
    GitUnavailableError,
    PathCollisionError,
    WorktreeLockedError,
    WorktyError,
)
from git_workty.logging_config import get_logger

logger = get_logger(__name__)

_CHECKED_OUT_PATTERNS = (
    "is already checked out at",
    "is already used by worktree at",
    "already checked out",
)
_LOCK_PATTERNS = (
    "index.lock",
    ".lock': file exists",
    "unable to create '",
    "cannot remove a locked working tree",
    "is locked",
    "another git process seems to be running",
)
_DIRTY_PATTERNS = (
    "contains modified or untracked files",
)
_QUOTED_PATH = re.compile(r"at '([^']+)'")


def is_git_installed() -> bool:
    """Check whether the git executable can be invoked."""
    try:
        git.Git().version_info
        return True
    except (git.exc.GitCommandNotFound, git.exc.GitCommandError, OSError) as e:
        logger.debug(f"git is not usable: {e}")
        return False


def stderr_text(error: git.exc.CommandError) -> str:
    """Extract the bare stderr message from a GitPython command error."""
    raw = (getattr(error, "stderr", "") or "").strip()
    # GitPython formats stderr as "stderr: '<message>'"
    if raw.startswith("stderr:"):
        raw = raw[len("stderr:"):].strip()
        if len(raw) >= 2 and raw[0] == raw[-1] == "'":
            raw = raw[1:-1]
    return raw.strip() or str(error)


def translate_git_error(
    error: Exception,
    operation: str,
    path: Optional[Path] = None,
    branch: Optional[str] = None,
) -> WorktyError:
    """Map a GitPython failure onto the git-workty error taxonomy."""
    if isinstance(error, WorktyError):
        return error
    if isinstance(error, git.exc.GitCommandNotFound):
        return GitUnavailableError(str(error))
    if not isinstance(error, git.exc.CommandError):
        return GitOperationError(operation, branch, str(error))

    message = stderr_text(error)
    lowered = message.lower()

    if any(p in lowered for p in _CHECKED_OUT_PATTERNS):
        match = _QUOTED_PATH.search(message)
        return BranchAlreadyCheckedOutError(branch or "", match.group(1) if match else None)
    if any(p in lowered for p in _LOCK_PATTERNS):
        return WorktreeLockedError(path, message)
    if any(p in lowered for p in _DIRTY_PATTERNS) and path is not None:
        return DirtyWorktreeError(path, branch)
    if "already exists" in lowered and path is not None and operation == "worktree add":
        return PathCollisionError(path, branch)
    if "not a git repository" in lowered:
        return GitNotRepoError(path or Path.cwd(), message)

    return GitOperationError(operation, branch, message)


class GitRepository:
    """A repository opened for one invocation.

    `root` is the top level of the working tree the command was started in,
    which may be a linked worktree. `common_dir` is the git directory shared by
    every worktree of the repository.
    """

    def __init__(self, root: Path, common_dir: Path, cwd: Optional[Path] = None):
        self.root = root
        self.common_dir = common_dir
        self.cwd = cwd or root

    @classmethod
    def discover(cls, start_path: Optional[Union[str, Path]] = None) -> "GitRepository":
        """Open the repository containing `start_path` (default: current directory).

        Raises:
            GitNotRepoError: start_path is not inside a Git working tree
            GitUnavailableError: the git executable cannot be invoked
        """
        start = Path(start_path) if start_path else Path(os.getcwd())
        try:
            repo = git.Repo(start, search_parent_directories=True)
        except git.exc.NoSuchPathError as e:
            raise GitNotRepoError(start, "path does not exist") from e
        except git.exc.InvalidGitRepositoryError as e:
            raise GitNotRepoError(start) from e

        try:
            if repo.bare or repo.working_tree_dir is None:
                raise GitNotRepoError(start, "bare repository")
            root = Path(repo.working_tree_dir).resolve()
            common = Path(repo.git.rev_parse("--git-common-dir"))
        except git.exc.GitCommandNotFound as e:
            raise GitUnavailableError(str(e)) from e
        except git.exc.GitCommandError as e:
            raise translate_git_error(e, "rev-parse", path=start) from e
        finally:
            repo.close()

        if not common.is_absolute():
            common = root / common
        repository = cls(root, common.resolve(), cwd=start.resolve())
        logger.debug(f"Discovered repository {repository.name} at {root} (common dir {repository.common_dir})")
        return repository

    @property
    def name(self) -> str:
        """Repository name, derived from the shared git directory."""
        if self.common_dir.name == ".git":
            return self.common_dir.parent.name
        return self.common_dir.name.removesuffix(".git") or self.common_dir.name

    @property
    def repo_id(self) -> str:
        """Short stable token identifying this repository on this machine."""
        return hashlib.sha1(str(self.common_dir).encode("utf-8")).hexdigest()[:8]

    @property
    def runner(self) -> git.Git:
        """A fresh command runner rooted at the working tree.

        A new instance per call keeps concurrent status workers independent.
        """
        return git.Git(str(self.root))

    def runner_in(self, path: Path) -> git.Git:
        """A command runner rooted at another worktree."""
        return git.Git(str(path))

    def __repr__(self) -> str:
        return f"GitRepository(root={self.root!s}, common_dir={self.common_dir!s})"
