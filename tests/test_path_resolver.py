"""Tests for worktree path resolution"""
from pathlib import Path

import pytest

from git_workty.config import Config
from git_workty.exceptions import PathCollisionError
from git_workty.models.worktree import WorktreeRecord
from git_workty.services.path_resolver import PathResolver, sanitize_branch, validate_template


class TestSanitizeBranch:
    """Test branch-to-directory mapping."""

    @pytest.mark.parametrize("branch,expected", [
        ("feat/login", "feat-login"),
        ("main", "main"),
        ("fix/JIRA-123_thing", "fix-JIRA-123_thing"),
        ("a//b", "a--b"),
        ("/leading/", "leading"),
        ("release@{1.0}", "release--1-0"),
    ])
    def test_sanitize(self, branch, expected):
        assert sanitize_branch(branch) == expected

    def test_result_is_single_segment(self):
        assert "/" not in sanitize_branch("deep/nested/branch/name")

    def test_all_unsafe_characters_fall_back_to_hash(self):
        slug = sanitize_branch("///")
        assert slug.startswith("branch-")
        assert slug == sanitize_branch("///")


class TestValidateTemplate:
    """Test root template validation."""

    def test_default_template_is_valid(self):
        assert validate_template("~/.workty/{repo}-{id}/{branch}") == []

    def test_missing_branch(self):
        assert any("{branch}" in p for p in validate_template("/tmp/{repo}"))

    def test_unknown_placeholder(self):
        assert any("{user}" in p for p in validate_template("/tmp/{user}/{branch}"))

    def test_malformed(self):
        assert validate_template("/tmp/{branch")

    def test_relative_path(self):
        assert any("absolute" in p for p in validate_template("worktrees/{branch}"))


class TestPathResolver:
    """Test collision-checked resolution."""

    @pytest.fixture
    def resolver(self, temp_dir):
        config = Config(root_template=str(temp_dir / "{repo}-{id}" / "{branch}"))
        return PathResolver(config, "project", "abcd1234")

    def test_deterministic_path(self, resolver, temp_dir):
        expected = temp_dir / "project-abcd1234" / "feat-login"
        assert resolver.path_for("feat/login") == expected
        assert resolver.resolve("feat/login", []) == expected
        assert resolver.resolve("feat/login", []) == expected

    def test_expands_home(self):
        resolver = PathResolver(Config(), "project", "abcd1234")
        assert resolver.path_for("x") == Path.home() / ".workty" / "project-abcd1234" / "x"

    def test_collision_with_other_worktree(self, resolver, temp_dir):
        taken = temp_dir / "project-abcd1234" / "feat-login"
        records = [WorktreeRecord(taken, "feat-login", "abc", False)]

        with pytest.raises(PathCollisionError) as exc_info:
            resolver.resolve("feat/login", records)
        assert exc_info.value.owner == "feat-login"

    def test_same_branch_returns_existing_path(self, resolver, temp_dir):
        path = temp_dir / "project-abcd1234" / "feat-login"
        records = [WorktreeRecord(path, "feat/login", "abc", False)]
        assert resolver.resolve("feat/login", records) == path

    def test_unregistered_directory_collides(self, resolver, temp_dir):
        stale = temp_dir / "project-abcd1234" / "old"
        stale.mkdir(parents=True)

        with pytest.raises(PathCollisionError) as exc_info:
            resolver.resolve("old", [])
        assert exc_info.value.owner is None

    def test_explicit_path_overrides_template(self, resolver, temp_dir):
        custom = temp_dir / "elsewhere"
        assert resolver.resolve("feat/login", [], path=custom) == custom

    def test_relative_explicit_path_uses_base_dir(self, temp_dir):
        resolver = PathResolver(Config(), "project", "abcd1234", base_dir=temp_dir / "repo")
        assert resolver.resolve("x", [], path=Path("../side")) == temp_dir / "side"

    def test_root_dir(self, resolver, temp_dir):
        assert resolver.root_dir() == temp_dir / "project-abcd1234"
