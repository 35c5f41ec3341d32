"""Pytest fixtures for git-workty tests"""
import tempfile
from pathlib import Path

import git
import pytest

from git_workty.config import Config
from git_workty.core import Workty


def _commit_file(worktree_path, name, content, message=None):
    runner = git.Git(str(worktree_path))
    (Path(worktree_path) / name).write_text(content)
    runner.add(name)
    runner.commit("-m", message or f"Add {name}")
    return runner.rev_parse("HEAD")


@pytest.fixture
def commit_file():
    """Write a file inside a worktree and commit it there."""
    return _commit_file


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository with one commit on main."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)

    # Configure git user for commits; shared by every worktree
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.git.add("README.md")
    repo.git.commit("-m", "Initial commit")

    # Rename master to main if needed
    repo.git.branch("-M", "main")

    yield repo

    repo.close()


@pytest.fixture
def worktree_root(temp_dir):
    """Directory that receives worktrees, outside the primary checkout."""
    root = temp_dir / "worktrees"
    root.mkdir()
    return root


@pytest.fixture
def config(worktree_root):
    return Config(base_branch="main", root_template=str(worktree_root / "{repo}" / "{branch}"))


@pytest.fixture
def engine(git_repo, config):
    """Engine started in the primary worktree."""
    return Workty(git_repo.working_dir, config=config)


@pytest.fixture
def merged_worktree(engine, git_repo):
    """`feat/login` with one commit, fast-forwarded into main."""
    result = engine.create("feat/login")
    _commit_file(result.path, "login.txt", "login\n")
    git_repo.git.merge("--ff-only", "feat/login")
    return result.path
