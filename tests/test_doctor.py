"""Tests for the doctor diagnostics"""
import shutil
from pathlib import Path

import git

from git_workty.config import Config
from git_workty.models.worktree import CreateOptions, Severity
from git_workty.services.doctor_service import DoctorService


def _by_severity(findings, severity):
    return [f for f in findings if f.severity == severity]


class TestDoctor:
    """Test read-only diagnostics."""

    def test_healthy_repository(self, engine):
        engine.create("feature")
        findings = engine.diagnose()

        assert not _by_severity(findings, Severity.ERROR)
        assert not _by_severity(findings, Severity.WARNING)
        assert findings[-1].description == "All checks passed"
        assert any("Found 2 worktree(s)" in f.description for f in findings)

    def test_default_config_is_reported(self, git_repo):
        findings = DoctorService(git_repo.working_dir).diagnose()
        assert any("default config" in f.description for f in findings)

    def test_missing_worktree_directory(self, engine):
        path = engine.create("feature").path
        shutil.rmtree(path)

        warnings = _by_severity(engine.diagnose(), Severity.WARNING)
        assert len(warnings) == 1
        assert str(path) in warnings[0].description
        assert "git worktree prune" in warnings[0].suggested_fix

    def test_orphaned_directory(self, engine, worktree_root):
        engine.create("feature")
        stray = worktree_root / "test_repo" / "leftover"
        stray.mkdir()

        warnings = _by_severity(engine.diagnose(), Severity.WARNING)
        assert [str(stray) in w.description for w in warnings] == [True]

    def test_other_repository_is_not_an_orphan(self, engine, worktree_root):
        engine.create("feature")
        git.Repo.init(worktree_root / "test_repo" / "someone-else").close()

        assert not _by_severity(engine.diagnose(), Severity.WARNING)

    def test_locked_worktree_is_informational(self, engine, git_repo):
        path = engine.create("feature").path
        git_repo.git.worktree("lock", "--reason", "on usb", str(path))

        findings = engine.diagnose()
        assert any("locked: on usb" in f.description for f in _by_severity(findings, Severity.INFO))
        assert not _by_severity(findings, Severity.WARNING)

    def test_sanitized_name_collision(self, engine, worktree_root):
        engine.create("feat/x")
        engine.create("feat-x", CreateOptions(path=worktree_root / "test_repo" / "feat-x-2"))

        warnings = _by_severity(engine.diagnose(), Severity.WARNING)
        assert any("'feat-x'" in w.description for w in warnings)

    def test_root_inside_primary(self, git_repo):
        config = Config(root_template=git_repo.working_dir + "/.worktrees/{branch}")
        warnings = _by_severity(DoctorService(git_repo.working_dir, config).diagnose(), Severity.WARNING)
        assert any("inside the primary worktree" in w.description for w in warnings)

    def test_unparseable_config(self, git_repo):
        (Path(git_repo.common_dir) / "workty.toml").write_text("oops = \n")

        errors = _by_severity(DoctorService(git_repo.working_dir).diagnose(), Severity.ERROR)
        assert len(errors) == 1
        assert "workty.toml" in errors[0].description

    def test_outside_repository(self, temp_dir):
        plain = temp_dir / "plain"
        plain.mkdir()

        errors = _by_severity(DoctorService(plain).diagnose(), Severity.ERROR)
        assert len(errors) == 1
        assert "Not inside a Git repository" in errors[0].description

    def test_never_mutates(self, engine, worktree_root):
        path = engine.create("feature").path
        shutil.rmtree(path)
        (worktree_root / "test_repo" / "leftover").mkdir()
        before = engine.discover()

        engine.diagnose()

        assert engine.discover() == before
        assert (worktree_root / "test_repo" / "leftover").exists()
