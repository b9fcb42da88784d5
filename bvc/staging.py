"""
Staging manager and working-tree status.

Staging holds at most one entry per path; staging a path again replaces the
earlier snapshot. Missing paths are reported per path and never abort the
rest of the call.
"""

import base64
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from .core.clock import format_timestamp
from .core.errors import NotFoundError
from .core.hashing import digest
from .core.models import StagedFile
from .store.ignore import IgnoreRules
from .store.repository import RepositoryStore

logger = logging.getLogger(__name__)

DEFAULT_INLINE_LIMIT = 1024 * 1024


def snapshot_file(root: Path, path: Path, inline_limit: int = DEFAULT_INLINE_LIMIT) -> StagedFile:
    """
    Read a file and build its staging entry.

    Args:
        root: Repository root
        path: Absolute path of a regular file under root
        inline_limit: Largest size (bytes) whose content is inlined as base64

    Returns:
        StagedFile with digest, size, mtime and (maybe) inline content
    """
    data = path.read_bytes()
    stat = path.stat()
    modified = format_timestamp(datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc))
    content = base64.b64encode(data).decode("ascii") if len(data) <= inline_limit else None
    return StagedFile(
        path=path.relative_to(root).as_posix(),
        content_digest=digest(data),
        size=len(data),
        modified_at=modified,
        content=content,
    )


@dataclass
class StageReport:
    """
    Outcome of one stage() call.

    Fields:
        staged: Entries written (in call order)
        missing: One NotFoundError per path that does not exist
        ignored: Explicitly named paths skipped by ignore rules
    """
    staged: List[StagedFile] = field(default_factory=list)
    missing: List[NotFoundError] = field(default_factory=list)
    ignored: List[str] = field(default_factory=list)


class StagingManager:
    """Add and clear staging.json entries."""

    def __init__(
        self,
        store: RepositoryStore,
        ignore_rules: Optional[IgnoreRules] = None,
        inline_limit: int = DEFAULT_INLINE_LIMIT,
    ) -> None:
        self.store = store
        self.root = store.root
        self.ignore_rules = ignore_rules or IgnoreRules.load(self.root)
        self.inline_limit = inline_limit

    def _rel(self, path: Path) -> Optional[str]:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return None

    def _expand(self, raw: str, cwd: Path, report: StageReport) -> List[Path]:
        target = Path(raw)
        if not target.is_absolute():
            target = cwd / target
        target = Path(os.path.abspath(target))

        rel = self._rel(target)
        if rel is None or not target.exists():
            err = NotFoundError(
                f"File not found: {raw}",
                remediation="Check the path; paths must exist inside the repository.",
            )
            logger.warning("Skipping %s: not found in repository", raw)
            report.missing.append(err)
            return []

        if target.is_dir():
            if rel and rel != "." and self.ignore_rules.is_ignored(rel, is_dir=True):
                report.ignored.append(raw)
                return []
            return list(self.ignore_rules.walk(self.root, target))

        if self.ignore_rules.is_ignored(rel):
            logger.info("Skipping %s: matched ignore rules", rel)
            report.ignored.append(raw)
            return []
        return [target]

    def stage(self, paths: Iterable[str], cwd: Union[str, Path, None] = None) -> StageReport:
        """
        Stage files and directories.

        Args:
            paths: Paths relative to cwd (or absolute); directories recurse
            cwd: Directory the paths are relative to (default: repository root)

        Returns:
            StageReport listing staged entries, missing and ignored paths
        """
        cwd = Path(cwd) if cwd is not None else self.root
        report = StageReport()
        files: List[Path] = []
        for raw in paths:
            files.extend(self._expand(raw, cwd, report))
        report.staged = self._upsert(files)
        return report

    def stage_modified(self) -> StageReport:
        """Stage every non-ignored file that is new or changed since the head commit."""
        head = self.store.head()
        known: Dict[str, str] = {}
        if head is not None:
            known = {f.path: f.content_digest for f in head.files}

        changed: List[Path] = []
        for path in self.ignore_rules.walk(self.root):
            rel = path.relative_to(self.root).as_posix()
            if known.get(rel) != digest(path.read_bytes()):
                changed.append(path)

        report = StageReport()
        report.staged = self._upsert(changed)
        return report

    def _upsert(self, files: List[Path]) -> List[StagedFile]:
        entries: Dict[str, StagedFile] = {f.path: f for f in self.store.load_staging()}
        staged: List[StagedFile] = []
        for path in files:
            entry = snapshot_file(self.root, path, self.inline_limit)
            entries[entry.path] = entry
            staged.append(entry)
        if staged:
            self.store.save_staging(list(entries.values()))
        return staged

    def unstage(self, paths: Iterable[str]) -> List[str]:
        """Drop entries by repository-relative path; returns the paths removed."""
        wanted = set(paths)
        kept: List[StagedFile] = []
        removed: List[str] = []
        for entry in self.store.load_staging():
            if entry.path in wanted:
                removed.append(entry.path)
            else:
                kept.append(entry)
        if removed:
            self.store.save_staging(kept)
        return removed

    def clear(self) -> None:
        self.store.clear_staging()


@dataclass
class TreeStatus:
    """
    Working tree compared with staging and the head commit.

    Fields:
        staged: Paths in staging.json
        modified: Tracked paths whose bytes differ from the head snapshot
        deleted: Tracked paths missing from the working tree
        untracked: Non-ignored files never committed nor staged
    """
    staged: List[str] = field(default_factory=list)
    modified: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    untracked: List[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not (self.staged or self.modified or self.deleted or self.untracked)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "staged": self.staged,
            "modified": self.modified,
            "deleted": self.deleted,
            "untracked": self.untracked,
        }


def working_tree_status(store: RepositoryStore, ignore_rules: Optional[IgnoreRules] = None) -> TreeStatus:
    """
    Compute repository status.

    A tracked file staged with its current digest counts as staged only, not
    modified.
    """
    root = store.root
    rules = ignore_rules or IgnoreRules.load(root)
    staged = {f.path: f.content_digest for f in store.load_staging()}
    head = store.head()
    tracked = {f.path: f.content_digest for f in head.files} if head else {}

    status = TreeStatus(staged=sorted(staged))
    seen = set()
    for path in rules.walk(root):
        rel = path.relative_to(root).as_posix()
        seen.add(rel)
        current = digest(path.read_bytes())
        if rel in staged and staged[rel] == current:
            continue
        if rel in tracked:
            if tracked[rel] != current:
                status.modified.append(rel)
        elif rel not in staged:
            status.untracked.append(rel)
        else:
            status.modified.append(rel)

    status.deleted = sorted(p for p in tracked if p not in seen)
    return status
