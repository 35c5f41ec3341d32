"""Git-related services for git-workty."""

from .repository import GitRepository, is_git_installed, translate_git_error
from .worktrees import WorktreeService, parse_worktree_list

__all__ = [
    "GitRepository",
    "WorktreeService",
    "is_git_installed",
    "parse_worktree_list",
    "translate_git_error",
]
