"""Tests for repository discovery and Git error translation"""
from pathlib import Path
from unittest.mock import PropertyMock, patch

import git
import pytest

from git_workty.exceptions import (
    BranchAlreadyCheckedOutError,
    DirtyWorktreeError,
    GitNotRepoError,
    GitOperationError,
    GitUnavailableError,
    PathCollisionError,
    WorktreeLockedError,
)
from git_workty.services.git import GitRepository, is_git_installed, translate_git_error
from git_workty.services.git.repository import stderr_text


def _command_error(stderr, status=128, command=("git", "worktree", "add")):
    return git.exc.GitCommandError(list(command), status, stderr=stderr)


class TestTranslateGitError:
    """Test mapping of Git failures onto typed errors."""

    def test_stderr_text_unwraps_gitpython_format(self):
        error = _command_error("fatal: something broke")
        assert stderr_text(error) == "fatal: something broke"

    @pytest.mark.parametrize("message", [
        "fatal: 'feat' is already checked out at '/tmp/wt/feat'",
        "fatal: 'feat' is already used by worktree at '/tmp/wt/feat'",
    ])
    def test_already_checked_out(self, message):
        result = translate_git_error(_command_error(message), "worktree add", branch="feat")

        assert isinstance(result, BranchAlreadyCheckedOutError)
        assert result.path == Path("/tmp/wt/feat")

    def test_index_lock_is_retryable(self):
        message = ("fatal: Unable to create '/repo/.git/index.lock': File exists.\n"
                   "Another git process seems to be running in this repository")
        result = translate_git_error(_command_error(message), "worktree add", path=Path("/wt"))

        assert isinstance(result, WorktreeLockedError)
        assert result.retryable is True

    def test_locked_worktree(self):
        message = "fatal: cannot remove a locked working tree, lock reason: usb\nuse 'remove -f -f' to override"
        result = translate_git_error(_command_error(message), "worktree remove", path=Path("/wt"))
        assert isinstance(result, WorktreeLockedError)

    def test_dirty(self):
        message = "fatal: '/wt' contains modified or untracked files, use --force to delete it"
        result = translate_git_error(_command_error(message), "worktree remove", path=Path("/wt"), branch="x")

        assert isinstance(result, DirtyWorktreeError)
        assert result.branch == "x"

    def test_path_exists(self):
        message = "fatal: '/wt/feat' already exists"
        result = translate_git_error(_command_error(message), "worktree add", path=Path("/wt/feat"))
        assert isinstance(result, PathCollisionError)

    def test_not_a_repository(self):
        message = "fatal: not a git repository (or any of the parent directories): .git"
        result = translate_git_error(_command_error(message, command=("git", "status")), "status")
        assert isinstance(result, GitNotRepoError)

    def test_other_failures_keep_operation_and_message(self):
        message = "fatal: invalid reference: nope"
        result = translate_git_error(_command_error(message), "worktree add", branch="feat")

        assert isinstance(result, GitOperationError)
        assert result.operation == "worktree add"
        assert "invalid reference" in str(result)

    def test_missing_executable(self):
        error = git.exc.GitCommandNotFound("git", "not found")
        assert isinstance(translate_git_error(error, "status"), GitUnavailableError)


class TestRepositoryDiscovery:
    """Test opening repositories."""

    def test_discover_from_subdirectory(self, git_repo):
        sub = Path(git_repo.working_dir) / "src" / "pkg"
        sub.mkdir(parents=True)

        repository = GitRepository.discover(sub)
        assert repository.root == Path(git_repo.working_dir)
        assert repository.cwd == sub
        assert repository.name == "test_repo"
        assert len(repository.repo_id) == 8

    def test_linked_worktree_shares_identity(self, git_repo, worktree_root):
        linked = worktree_root / "linked"
        git_repo.git.worktree("add", "-b", "linked", str(linked))

        primary = GitRepository.discover(git_repo.working_dir)
        secondary = GitRepository.discover(linked)
        assert secondary.root == linked
        assert secondary.common_dir == primary.common_dir
        assert secondary.repo_id == primary.repo_id
        assert secondary.name == "test_repo"

    def test_runners_are_rooted_per_worktree(self, git_repo, worktree_root):
        linked = worktree_root / "linked"
        git_repo.git.worktree("add", "-b", "linked", str(linked))
        repository = GitRepository.discover(git_repo.working_dir)

        assert isinstance(repository.runner, git.Git)
        assert repository.runner is not repository.runner
        assert repository.runner.rev_parse("--abbrev-ref", "HEAD") == "main"
        assert repository.runner_in(linked).rev_parse("--abbrev-ref", "HEAD") == "linked"

    def test_not_a_repository(self, temp_dir):
        plain = temp_dir / "plain"
        plain.mkdir()

        with pytest.raises(GitNotRepoError) as exc_info:
            GitRepository.discover(plain)
        assert exc_info.value.hint

    def test_missing_path(self, temp_dir):
        with pytest.raises(GitNotRepoError):
            GitRepository.discover(temp_dir / "does-not-exist")

    def test_bare_repository(self, temp_dir):
        bare = temp_dir / "bare.git"
        git.Repo.init(bare, bare=True)

        with pytest.raises(GitNotRepoError, match="bare"):
            GitRepository.discover(bare)

    def test_git_not_installed(self):
        missing = git.exc.GitCommandNotFound("git", "not found")
        with patch.object(git.Git, "version_info", new_callable=PropertyMock, side_effect=missing):
            assert is_git_installed() is False

    def test_git_installed(self):
        assert is_git_installed() is True