"""Tests for configuration loading and validation"""
import logging

import pytest

from git_workty.config import CONFIG_FILENAME, DEFAULT_ROOT_TEMPLATE, Config, config_path, load_config
from git_workty.exceptions import ConfigParseError
from git_workty.services.git import GitRepository


class TestConfigValidation:
    """Test Config dataclass validation."""

    def test_defaults(self):
        config = Config()
        assert config.base_branch == "main"
        assert config.root_template == DEFAULT_ROOT_TEMPLATE
        assert config.open_cmd is None

    def test_base_branch_is_stripped(self):
        assert Config(base_branch="  develop ").base_branch == "develop"

    def test_empty_base_branch(self):
        with pytest.raises(ValueError, match="base_branch"):
            Config(base_branch="   ")

    def test_template_without_branch(self):
        with pytest.raises(ValueError, match="root_template"):
            Config(root_template="/tmp/{repo}")

    def test_empty_open_cmd(self):
        with pytest.raises(ValueError, match="open_cmd"):
            Config(open_cmd="")

    def test_from_dict_ignores_unknown_keys(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = Config.from_dict({"base_branch": "develop", "colour": "blue"})
        assert config.base_branch == "develop"
        assert "colour" in caplog.text

    def test_to_dict_round_trip(self):
        config = Config(base_branch="trunk", open_cmd="code")
        assert Config.from_dict(config.to_dict()) == config


class TestLoadConfig:
    """Test reading the TOML config file."""

    def test_missing_file_gives_defaults(self, temp_dir):
        assert load_config(temp_dir / CONFIG_FILENAME) == Config()
        assert load_config(None) == Config()

    def test_valid_file(self, temp_dir):
        path = temp_dir / CONFIG_FILENAME
        path.write_text(
            'base_branch = "develop"\n'
            'root_template = "/srv/wt/{repo}/{branch}"\n'
            'open_cmd = "code --new-window"\n'
        )
        config = load_config(path)
        assert config.base_branch == "develop"
        assert config.root_template == "/srv/wt/{repo}/{branch}"
        assert config.open_cmd == "code --new-window"

    def test_malformed_toml(self, temp_dir):
        path = temp_dir / CONFIG_FILENAME
        path.write_text("base_branch = \n")

        with pytest.raises(ConfigParseError) as exc_info:
            load_config(path)
        assert exc_info.value.path == path

    def test_invalid_value(self, temp_dir):
        path = temp_dir / CONFIG_FILENAME
        path.write_text('root_template = "relative/{branch}"\n')

        with pytest.raises(ConfigParseError, match="absolute"):
            load_config(path)

    def test_wrong_type(self, temp_dir):
        path = temp_dir / CONFIG_FILENAME
        path.write_text("base_branch = 3\n")

        with pytest.raises(ConfigParseError):
            load_config(path)

    def test_config_lives_in_common_dir(self, git_repo, worktree_root):
        """Every worktree of a repository reads the same file."""
        linked = worktree_root / "linked"
        git_repo.git.worktree("add", "-b", "linked", str(linked))

        primary = GitRepository.discover(git_repo.working_dir)
        secondary = GitRepository.discover(linked)
        assert config_path(primary) == config_path(secondary)
        assert config_path(primary).parent.name == ".git"
