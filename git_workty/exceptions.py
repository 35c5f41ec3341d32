"""Custom exceptions for git-workty"""

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class WorktyError(Exception):
    """Base exception for all git-workty errors."""

    hint: Optional[str] = None
    retryable = False


class GitOperationError(WorktyError):
    """Exception raised for Git failures that have no more specific meaning."""

    def __init__(self, operation: str, branch: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.branch = branch
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if branch:
            error_msg += f" for branch '{branch}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class GitNotRepoError(WorktyError):
    """Raised when invoked outside a Git working tree."""

    hint = "Run this command from inside a Git repository."

    def __init__(self, path: PathLike, cause: Optional[str] = None):
        self.path = Path(path)
        self.cause = cause
        msg = f"Not a Git working tree: {self.path}"
        if cause:
            msg += f" ({cause})"
        super().__init__(msg)


class GitUnavailableError(WorktyError):
    """Raised when the git executable cannot be located or invoked."""

    hint = "Install Git and make sure `git` is on your PATH."

    def __init__(self, cause: Optional[str] = None):
        self.cause = cause
        msg = "Git is not available"
        if cause:
            msg += f": {cause}"
        super().__init__(msg)


class BranchAlreadyCheckedOutError(WorktyError):
    """Raised when a branch is already bound to another worktree."""

    def __init__(self, branch: str, path: Optional[PathLike] = None):
        self.branch = branch
        self.path = Path(path) if path else None
        msg = f"Branch '{branch}' is already checked out"
        if self.path:
            msg += f" at {self.path}"
        self.hint = f"Use `git workty go {branch}` to switch to it."
        super().__init__(msg)


class DirtyWorktreeError(WorktyError):
    """Raised when removing a worktree with uncommitted changes without force."""

    hint = "Use --force to remove anyway, or commit/stash the changes first."

    def __init__(self, path: PathLike, branch: Optional[str] = None):
        self.path = Path(path)
        self.branch = branch
        super().__init__(f"Worktree at {self.path} has uncommitted changes")


class PathCollisionError(WorktyError):
    """Raised when a resolved worktree path is already taken."""

    hint = "Use --path to choose a different location, or remove the existing directory."

    def __init__(self, path: PathLike, branch: Optional[str] = None, owner: Optional[str] = None):
        self.path = Path(path)
        self.branch = branch
        self.owner = owner
        msg = f"Path already in use: {self.path}"
        if owner:
            msg += f" (registered to {owner})"
        super().__init__(msg)


class WorktreeNotFoundError(WorktyError):
    """Raised when no worktree matches a name or path."""

    hint = "Use `git workty list` to see available worktrees."

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Worktree '{name}' not found")


class WorktreeLockedError(WorktyError):
    """Raised when Git reports lock contention or a locked worktree."""

    retryable = True

    def __init__(self, path: Optional[PathLike] = None, cause: Optional[str] = None):
        self.path = Path(path) if path else None
        self.cause = cause
        msg = "Worktree metadata is locked"
        if self.path:
            msg += f" for {self.path}"
        if cause:
            msg += f": {cause}"
        self.hint = (
            "Another Git process may be running; retry once it finishes, "
            "or run `git worktree unlock` if the worktree was locked on purpose."
        )
        super().__init__(msg)


class ConfigParseError(WorktyError):
    """Raised when the configuration file cannot be parsed or validated."""

    def __init__(self, path: Optional[PathLike], cause: str):
        self.path = Path(path) if path else None
        self.cause = cause
        where = f" in {self.path}" if self.path else ""
        self.hint = "Fix the configuration file or delete it to use the defaults."
        super().__init__(f"Invalid configuration{where}: {cause}")


class PrimaryWorktreeError(WorktyError):
    """Raised when attempting to remove the primary worktree."""

    hint = "The primary worktree is the original repository checkout."

    def __init__(self, path: PathLike):
        self.path = Path(path)
        super().__init__(f"Cannot remove the primary worktree at {self.path}")


class CurrentWorktreeError(WorktyError):
    """Raised when attempting to remove the worktree the caller is standing in."""

    hint = "Change to a different worktree first with `git workty go`."

    def __init__(self, path: PathLike):
        self.path = Path(path)
        super().__init__(f"Cannot remove the current worktree at {self.path}")
