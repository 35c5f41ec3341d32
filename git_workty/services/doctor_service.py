"""Read-only diagnostics of worktree state."""

from collections import Counter
from pathlib import Path
from typing import Optional, Union

from git_workty.config import Config, config_path, load_config
from git_workty.exceptions import ConfigParseError, WorktyError
from git_workty.models.worktree import Finding, Severity, WorktreeRecord
from git_workty.services.git.repository import GitRepository, is_git_installed
from git_workty.services.git.worktrees import WorktreeService
from git_workty.services.path_resolver import PathResolver, sanitize_branch, validate_template
from git_workty.logging_config import get_logger

logger = get_logger(__name__)


class DoctorService:
    """Cross-checks Git's worktree records against the filesystem and config.

    Never mutates anything; every problem becomes a Finding.
    """

    def __init__(self, start_path: Optional[Union[str, Path]] = None, config: Optional[Config] = None):
        self.start_path = start_path
        self.config = config

    def diagnose(self) -> list[Finding]:
        findings: list[Finding] = []

        if not is_git_installed():
            findings.append(Finding(Severity.ERROR, "Git is not installed", "Install Git and put it on your PATH."))
            return findings

        try:
            repository = GitRepository.discover(self.start_path)
        except WorktyError as e:
            findings.append(Finding(Severity.ERROR, f"Not inside a Git repository: {e}", e.hint))
            return findings

        config = self._check_config(repository, findings)
        if config is None:
            return findings

        try:
            records = WorktreeService(repository).discover()
        except WorktyError as e:
            findings.append(Finding(Severity.ERROR, f"Cannot list worktrees: {e}", e.hint))
            return findings
        findings.append(Finding(Severity.INFO, f"Found {len(records)} worktree(s) in {repository.name}"))

        resolver = PathResolver(config, repository.name, repository.repo_id)
        self._check_paths_exist(records, findings)
        self._check_duplicates(records, findings)
        self._check_orphans(repository, resolver, records, findings)
        self._check_template_paths(resolver, records, findings)

        if not any(f.severity != Severity.INFO for f in findings):
            findings.append(Finding(Severity.INFO, "All checks passed"))
        return findings

    def _check_config(self, repository: GitRepository, findings: list[Finding]) -> Optional[Config]:
        if self.config is not None:
            config = self.config
        else:
            path = config_path(repository)
            try:
                config = load_config(path)
            except ConfigParseError as e:
                findings.append(Finding(Severity.ERROR, str(e), e.hint))
                return None
            if not path.exists():
                findings.append(Finding(Severity.INFO, f"Using default config (no {path.name} found)"))

        problems = validate_template(config.root_template)
        for problem in problems:
            findings.append(Finding(
                Severity.ERROR,
                f"root_template '{config.root_template}' {problem}",
                "Use a template such as ~/.workty/{repo}-{id}/{branch}.",
            ))
        return None if problems else config

    def _check_paths_exist(self, records: list[WorktreeRecord], findings: list[Finding]) -> None:
        for record in records:
            if not record.path.exists() or record.prunable:
                findings.append(Finding(
                    Severity.WARNING,
                    f"Worktree '{record.name}' is registered but {record.path} does not exist",
                    "Run `git worktree prune` to clean up.",
                ))
            if record.locked:
                reason = f": {record.lock_reason}" if record.lock_reason else ""
                findings.append(Finding(
                    Severity.INFO,
                    f"Worktree '{record.name}' is locked{reason}",
                    f"Run `git worktree unlock {record.path}` if the lock is no longer needed.",
                ))

    def _check_duplicates(self, records: list[WorktreeRecord], findings: list[Finding]) -> None:
        counts = Counter(_normalize(r.path) for r in records)
        for path, count in counts.items():
            if count > 1:
                findings.append(Finding(
                    Severity.ERROR,
                    f"{count} worktree records share the path {path}",
                    "Run `git worktree repair` to fix the administrative files.",
                ))

    def _check_orphans(
        self,
        repository: GitRepository,
        resolver: PathResolver,
        records: list[WorktreeRecord],
        findings: list[Finding],
    ) -> None:
        root = resolver.root_dir()
        if not root.is_dir():
            return

        registered = {_normalize(r.path) for r in records}
        for child in sorted(root.iterdir()):
            if not child.is_dir():
                continue
            resolved = _normalize(child)
            if resolved in registered or any(p.is_relative_to(resolved) for p in registered):
                continue
            if resolved in {_normalize(repository.common_dir), _normalize(repository.root)}:
                continue
            if _belongs_to_other_repository(child, repository):
                continue
            findings.append(Finding(
                Severity.WARNING,
                f"Orphaned directory {child} matches no registered worktree",
                f"Remove it, or run `git worktree repair {child}` if it was moved.",
            ))

    def _check_template_paths(
        self, resolver: PathResolver, records: list[WorktreeRecord], findings: list[Finding]
    ) -> None:
        primary = next((r for r in records if r.is_primary), None)
        root = resolver.root_dir()
        if primary is not None and _normalize(root).is_relative_to(_normalize(primary.path)):
            findings.append(Finding(
                Severity.WARNING,
                f"Worktree root {root} is inside the primary worktree",
                "New worktrees will show up as untracked files; move root_template outside the repository.",
            ))

        by_slug: dict[str, list[str]] = {}
        for record in records:
            if record.branch:
                by_slug.setdefault(sanitize_branch(record.branch), []).append(record.branch)
        for slug, branches in sorted(by_slug.items()):
            if len(branches) > 1:
                findings.append(Finding(
                    Severity.WARNING,
                    f"Branches {', '.join(sorted(branches))} all map to the directory name '{slug}'",
                    "Pass --path when creating one of them.",
                ))


def _belongs_to_other_repository(directory: Path, repository: GitRepository) -> bool:
    """True when `directory` is a checkout of some other repository."""
    dot_git = directory / ".git"
    if dot_git.is_dir():
        # An independent repository next to ours
        return True
    if not dot_git.is_file():
        return False
    try:
        content = dot_git.read_text(encoding="utf-8").strip()
    except OSError:
        return False
    if not content.startswith("gitdir:"):
        return False
    gitdir = Path(content[len("gitdir:"):].strip())
    if not gitdir.is_absolute():
        gitdir = directory / gitdir
    return not _normalize(gitdir).is_relative_to(_normalize(repository.common_dir))


def _normalize(path: Path) -> Path:
    try:
        return path.resolve()
    except OSError:
        return path.absolute()
