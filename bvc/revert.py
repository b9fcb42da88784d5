"""
Restore the working tree to a recorded commit.

Sources, in order:
1. the commit's bundle from the content store (retrievable ids only)
2. inline content of the commit's file snapshots

Files present in the working tree but absent from the commit are left alone.
The commit log is not modified.
"""

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .checkpoint.bundle import bundle_from_snapshots, extract_bundle
from .core.chain import resolve_commit
from .core.errors import BvcError, ConfigurationError
from .core.models import Commit
from .remote.content import ContentRef, ContentStoreClient
from .store.repository import BVC_DIR, RepositoryStore

logger = logging.getLogger(__name__)

BACKUP_DIR = "backups"
SOURCE_CONTENT_STORE = "content-store"
SOURCE_LOCAL = "local"
_BACKUP_SKIP = {BVC_DIR, "node_modules"}


@dataclass
class RevertReport:
    commit: Commit
    source: str = SOURCE_LOCAL
    restored: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    backup_path: Optional[Path] = None
    warnings: List[str] = field(default_factory=list)


def create_backup(store: RepositoryStore, commit: Commit, stamp: str) -> Path:
    """Copy the working tree (minus .bvc and node_modules) to .bvc/backups/."""
    safe_stamp = stamp.replace(":", "-").replace(".", "-")
    target = store.bvc_dir / BACKUP_DIR / f"backup-{commit.short_id}-{safe_stamp}"
    target.mkdir(parents=True, exist_ok=False)
    for name in sorted(os.listdir(store.root)):
        if name in _BACKUP_SKIP:
            continue
        src = store.root / name
        if src.is_dir():
            shutil.copytree(src, target / name, symlinks=True)
        else:
            shutil.copy2(src, target / name)
    logger.info("Backed up working tree to %s", target)
    return target


def revert(
    store: RepositoryStore,
    commit_prefix: str,
    clock,
    content: Optional[ContentStoreClient] = None,
    force: bool = False,
    backup: bool = True,
) -> RevertReport:
    """
    Restore files of a commit into the working tree.

    Args:
        store: Repository store
        commit_prefix: Commit id or prefix
        clock: Time source for the backup directory name
        content: Content store client; None restores from inline content only
        force: Discard staged changes
        backup: Copy the working tree to .bvc/backups first

    Raises:
        CommitNotFoundError: If the commit does not resolve
        ConfigurationError: If staging is not empty and force is not set
    """
    commit = resolve_commit(store.load_commits(), commit_prefix)
    if store.load_staging() and not force:
        raise ConfigurationError(
            "Staged changes would be lost by revert",
            remediation="Commit them first, or pass --force to discard them.",
        )

    report = RevertReport(commit=commit)
    if backup:
        report.backup_path = create_backup(store, commit, clock.now())

    ref = ContentRef.parse(commit.content_id)
    if content is not None and ref is not None and ref.retrievable:
        result = content.download(ref)
        if result.ok:
            try:
                extracted = extract_bundle(result.value, store.root)
                report.restored = extracted.written
                report.source = SOURCE_CONTENT_STORE
            except BvcError as ex:
                report.warnings.append(f"Bundle {ref} unusable: {ex}")
        else:
            report.warnings.append(f"Download of {ref} failed: {result.error}")

    if report.source == SOURCE_LOCAL:
        data, skipped = bundle_from_snapshots(store.root, commit.files)
        report.restored = extract_bundle(data, store.root).written
        report.skipped = skipped

    for text in report.warnings:
        logger.warning(text)
    store.clear_staging()
    logger.info("Reverted working tree to %s (%d files)", commit.short_id, len(report.restored))
    return report
