"""Configuration handling for git-workty"""

import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, TYPE_CHECKING

from git_workty.exceptions import ConfigParseError
from git_workty.logging_config import get_logger

if TYPE_CHECKING:
    from git_workty.services.git.repository import GitRepository

logger = get_logger(__name__)

CONFIG_FILENAME = "workty.toml"
DEFAULT_ROOT_TEMPLATE = "~/.workty/{repo}-{id}/{branch}"


@dataclass(frozen=True)
class Config:
    """Per-repository configuration with validation."""

    base_branch: str = "main"
    root_template: str = DEFAULT_ROOT_TEMPLATE
    open_cmd: Optional[str] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_base_branch()
        self._validate_root_template()
        self._validate_open_cmd()

    def _validate_base_branch(self):
        """Validate base_branch is a non-empty string."""
        if not isinstance(self.base_branch, str) or not self.base_branch.strip():
            raise ValueError("base_branch cannot be empty")
        object.__setattr__(self, "base_branch", self.base_branch.strip())

    def _validate_root_template(self):
        """Validate root_template placeholders."""
        # Imported here to avoid a cycle: the resolver depends on Config
        from git_workty.services.path_resolver import validate_template

        if not isinstance(self.root_template, str):
            raise ValueError("root_template must be a string")
        problems = validate_template(self.root_template)
        if problems:
            raise ValueError(f"root_template '{self.root_template}': {'; '.join(problems)}")

    def _validate_open_cmd(self):
        """Validate open_cmd is a string when given."""
        if self.open_cmd is None:
            return
        if not isinstance(self.open_cmd, str) or not self.open_cmd.strip():
            raise ValueError("open_cmd must be a non-empty string")

    def to_dict(self) -> dict:
        """Convert config to a plain dictionary."""
        return {
            "base_branch": self.base_branch,
            "root_template": self.root_template,
            "open_cmd": self.open_cmd,
        }

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from a dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        unknown = sorted(set(config_dict) - known_fields)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")

        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)


def config_path(repository: "GitRepository") -> Path:
    """Location of the config file, shared by every worktree of the repository."""
    return repository.common_dir / CONFIG_FILENAME


def load_config(path: Optional[Path]) -> Config:
    """Load config from a TOML file.

    A missing file yields the defaults. A file that cannot be parsed, or whose
    values fail validation, raises ConfigParseError.
    """
    if path is None or not path.exists():
        logger.debug(f"No config file at {path}, using defaults")
        return Config()

    try:
        with open(path, "rb") as fh:
            data = tomllib.load(fh)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(path, str(e)) from e
    except OSError as e:
        raise ConfigParseError(path, f"cannot read file: {e}") from e

    try:
        config = Config.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ConfigParseError(path, str(e)) from e

    logger.debug(f"Loaded config from {path}: {config.to_dict()}")
    return config
