"""Turns branch names into worktree directories."""

import hashlib
import os
import re
import string
from pathlib import Path
from typing import Iterable, Optional

from git_workty.config import Config
from git_workty.exceptions import PathCollisionError
from git_workty.models.worktree import WorktreeRecord
from git_workty.logging_config import get_logger

logger = get_logger(__name__)

PLACEHOLDERS = ("repo", "id", "branch")
_UNSAFE_CHARS = re.compile(r"[^\w-]", re.UNICODE)


def sanitize_branch(branch: str) -> str:
    """Map a branch name onto a single directory segment.

    Anything other than letters, digits, `-` and `_` becomes `-`, so
    `feat/login` becomes `feat-login`.
    """
    slug = _UNSAFE_CHARS.sub("-", branch).strip("-")
    if not slug:
        slug = "branch-" + hashlib.sha1(branch.encode("utf-8")).hexdigest()[:8]
    return slug


def validate_template(template: str) -> list[str]:
    """Return the problems with a root template; an empty list means it is usable."""
    problems = []
    try:
        parsed = list(string.Formatter().parse(template))
    except ValueError as e:
        return [f"malformed placeholder ({e})"]

    names = [field for _, field, _, _ in parsed if field is not None]
    unknown = sorted({n for n in names if n not in PLACEHOLDERS})
    if unknown:
        problems.append("unknown placeholder(s): " + ", ".join("{" + n + "}" for n in unknown))
    if any(n == "" for n in names):
        problems.append("empty placeholder {}")
    if "branch" not in names:
        problems.append("missing {branch} placeholder")

    if not problems:
        sample = _expand(template, repo="repo", repo_id="0" * 8, branch="branch")
        if not sample.is_absolute():
            problems.append(f"does not produce an absolute path (got {sample})")
    return problems


def _expand(template: str, repo: str, repo_id: str, branch: str) -> Path:
    formatted = template.format(repo=repo, id=repo_id, branch=branch)
    return Path(os.path.expanduser(formatted))


class PathResolver:
    """Resolves deterministic, collision-checked worktree paths."""

    def __init__(self, config: Config, repo_name: str, repo_id: str, base_dir: Optional[Path] = None):
        """Initialize the resolver.

        Args:
            config: Supplies the root template
            repo_name: Value for {repo}
            repo_id: Value for {id}
            base_dir: Directory that relative explicit paths are taken from
                (default: the process working directory)
        """
        self.config = config
        self.repo_name = repo_name
        self.repo_id = repo_id
        self.base_dir = base_dir

    def path_for(self, branch: str) -> Path:
        """Apply the template without any collision check."""
        return _expand(
            self.config.root_template,
            repo=self.repo_name,
            repo_id=self.repo_id,
            branch=sanitize_branch(branch),
        )

    def resolve(
        self,
        branch: str,
        records: Iterable[WorktreeRecord],
        path: Optional[Path] = None,
    ) -> Path:
        """Resolve the directory for `branch`, checked against the live registry.

        Args:
            branch: Branch the worktree will be bound to
            records: Current discovery snapshot
            path: Explicit location overriding the template

        Raises:
            PathCollisionError: the path belongs to another worktree, or exists
                on disk without being a registered worktree
        """
        target = self._explicit(path) if path else self.path_for(branch)
        resolved_target = _normalize(target)

        for record in records:
            if _normalize(record.path) != resolved_target:
                continue
            if record.branch == branch:
                logger.debug(f"{target} is already the worktree for {branch}")
                return target
            raise PathCollisionError(target, branch, owner=record.name)

        if target.exists():
            raise PathCollisionError(target, branch)
        return target

    def _explicit(self, path: Path) -> Path:
        target = Path(os.path.expanduser(path))
        if not target.is_absolute():
            target = (self.base_dir or Path.cwd()) / target
        return Path(os.path.normpath(target))

    def root_dir(self) -> Path:
        """Directory holding every worktree of this repository.

        The template up to (not including) the first segment containing {branch}.
        """
        parts = Path(self.config.root_template).parts
        kept = []
        for part in parts:
            if "{branch}" in part:
                break
            kept.append(part)
        prefix = str(Path(*kept)) if kept else "."
        return _expand(prefix, repo=self.repo_name, repo_id=self.repo_id, branch="")


def _normalize(path: Path) -> Path:
    try:
        return path.resolve()
    except OSError:
        return path.absolute()
