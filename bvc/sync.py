"""
Reconciliation between the local chain and the ledger.

- push: record local commits the ledger does not know yet
- pull: append ledger commits missing locally and fetch their bundles
- clone: create a local repository for a ledger repository, then pull
- list: remote repositories, and local repositories under a directory

Push only marks commits anchored; pull only appends. Commit ids and parent
links are never rewritten.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .checkpoint.bundle import extract_bundle
from .core.chain import resolve_index
from .core.clock import format_timestamp
from .core.errors import BvcError, ConfigurationError, ConfigurationMissingError
from .core.models import Commit, RepoConfig
from .logging_config import get_logger
from .remote.content import ContentRef, ContentStoreClient
from .remote.ledger import LedgerClient, RemoteCommit, RemoteRepository
from .store.layout import create_working_copy
from .store.repository import BVC_DIR, RepositoryStore

logger = logging.getLogger(__name__)


@dataclass
class PushReport:
    pushed: List[Commit] = field(default_factory=list)
    tx_hashes: List[str] = field(default_factory=list)
    dry_run: bool = False
    warnings: List[str] = field(default_factory=list)


@dataclass
class PullReport:
    pulled: List[Commit] = field(default_factory=list)
    files_written: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def up_to_date(self) -> bool:
        return not self.pulled


def require_repo_id(store: RepositoryStore, override: Optional[str] = None) -> str:
    """
    Remote repository id to sync with.

    Raises:
        ConfigurationMissingError: If the repository is local-only and no override is given
    """
    repo_id = override or store.load_config().repo_id
    if not repo_id:
        raise ConfigurationMissingError(
            "Repository is local-only: no remote repository id",
            remediation="Run 'bvc config --setup' then 'bvc init --upgrade'.",
        )
    return repo_id


def _ledger_timestamp(seconds: int) -> str:
    return format_timestamp(datetime.fromtimestamp(seconds, tz=timezone.utc))


class RepositorySync:
    """
    Push and pull for one local repository.

    Args:
        store: Local repository store
        ledger: Ledger client
        content: Content store client (pull downloads bundles through it)
    """

    def __init__(self, store: RepositoryStore, ledger: LedgerClient, content: Optional[ContentStoreClient] = None) -> None:
        self.store = store
        self.ledger = ledger
        self.content = content

    def _repo_id(self, override: Optional[str] = None) -> str:
        return require_repo_id(self.store, override)

    def unpushed(self, commit_prefix: Optional[str] = None) -> List[Commit]:
        """Local commits (chain order) whose ids the ledger does not list."""
        repo_id = self._repo_id()
        remote_ids = {c.commit_id for c in self.ledger.list_commits(repo_id).unwrap()}
        commits = self.store.load_commits()
        if commit_prefix:
            target = commits[resolve_index(commits, commit_prefix)]
            if target.commit_id in remote_ids:
                return []
            return [target]
        return [c for c in commits if c.commit_id not in remote_ids]

    def push(self, commit_prefix: Optional[str] = None, dry_run: bool = False) -> PushReport:
        """
        Record unpushed commits on the ledger, one transaction each.

        Raises:
            ConfigurationMissingError: If the repository is local-only
            CommitNotFoundError: If commit_prefix does not resolve
            RemoteUnavailableError, UnauthorizedError, RemoteCallError: First ledger failure
        """
        repo_id = self._repo_id()
        pending = self.unpushed(commit_prefix)
        log = get_logger(__name__, repo_id=repo_id)
        report = PushReport(dry_run=dry_run)
        if dry_run:
            report.pushed = pending
            return report

        commits = self.store.load_commits()
        position = {c.commit_id: i for i, c in enumerate(commits)}
        for commit in pending:
            content_id = commit.content_id
            ref = ContentRef.parse(content_id)
            if ref is not None and not ref.retrievable:
                report.warnings.append(f"{commit.short_id}: simulated content id {content_id} not sent to the ledger")
                content_id = ""
            tx_hash = self.ledger.record_commit(repo_id, commit.commit_id, content_id, commit.message).unwrap()
            anchored = commit.with_changes(anchored=True, tx_hash=tx_hash)
            commits[position[commit.commit_id]] = anchored
            self.store.save_commits(commits)
            report.pushed.append(anchored)
            report.tx_hashes.append(tx_hash)
            log.info("Pushed %s (%s)", commit.short_id, tx_hash)
        return report

    def _download(self, remote: RemoteCommit, verify: bool, report: PullReport) -> None:
        ref = ContentRef.parse(remote.content_id)
        if ref is None or not ref.retrievable:
            return
        if self.content is None:
            report.warnings.append(f"{remote.commit_id[:8]}: no content store configured, files not downloaded")
            return

        result = self.content.download(ref)
        if not result.ok:
            report.warnings.append(f"{remote.commit_id[:8]}: download failed: {result.error}")
            return
        try:
            extracted = extract_bundle(result.value, self.store.root, verify=verify)
        except BvcError as ex:
            report.warnings.append(f"{remote.commit_id[:8]}: {ex}")
            return

        for path in extracted.corrupted:
            report.warnings.append(f"{remote.commit_id[:8]}: {path} does not match its recorded hash")
        report.files_written.extend(extracted.written)

    def pull(self, repo_id: Optional[str] = None, download: bool = True, verify: bool = False) -> PullReport:
        """
        Append ledger commits that are missing locally.

        Pulled commits are linked to the current local head and marked
        anchored. Bundles with retrievable ids are extracted into the working
        tree; download problems are reported as warnings.
        """
        target = self._repo_id(repo_id)
        log = get_logger(__name__, repo_id=target)
        remote_commits = self.ledger.list_commits(target).unwrap()
        commits = self.store.load_commits()
        known = {c.commit_id for c in commits}

        report = PullReport()
        for remote in remote_commits:
            if remote.commit_id in known:
                continue
            if download:
                self._download(remote, verify, report)
            commit = Commit(
                commit_id=remote.commit_id,
                parent_id=commits[-1].commit_id if commits else "",
                author=remote.author,
                message=remote.message,
                timestamp=_ledger_timestamp(remote.timestamp),
                content_id=remote.content_id,
                anchored=True,
            )
            commits.append(commit)
            known.add(commit.commit_id)
            report.pulled.append(commit)

        if report.pulled:
            self.store.save_commits(commits)
            log.info("Pulled %d commits", len(report.pulled))
        for text in report.warnings:
            log.warning(text)
        return report


def clone(
    repo_id: str,
    parent_dir: Union[str, Path],
    ledger: LedgerClient,
    content: Optional[ContentStoreClient],
    clock,
    dest: Optional[str] = None,
    author: str = "",
) -> Tuple[RepositoryStore, PullReport]:
    """
    Create a local repository for a ledger repository and pull it.

    Raises:
        NotFoundError: If the repository does not exist on the ledger
        ConfigurationError: If the destination directory already exists
    """
    remote = ledger.get_repository(repo_id).unwrap()
    target = Path(parent_dir) / (dest or remote.name)
    if target.exists():
        raise ConfigurationError(
            f"Destination {target} already exists",
            remediation="Pass --dest <dir> to clone into another directory.",
        )

    config = RepoConfig(
        name=remote.name,
        created_at=clock.now(),
        repo_id=repo_id,
        description=f"Cloned from {repo_id}",
        author=author,
    )
    store = create_working_copy(target, config, readme=False)
    report = RepositorySync(store, ledger, content).pull()
    return store, report


def list_repositories(ledger: LedgerClient, mine: bool = False) -> List[RemoteRepository]:
    """Every ledger repository, or only those owned by the configured account."""
    repos = ledger.list_repositories().unwrap()
    if mine:
        me = ledger.account_address.lower()
        repos = [r for r in repos if r.owner.lower() == me]
    return repos


def list_local_repositories(root: Union[str, Path]) -> List[Tuple[Path, RepoConfig]]:
    """Direct child directories of root that hold .bvc/config.json."""
    root = Path(root)
    found = []
    for child in sorted(root.iterdir()):
        config_path = child / BVC_DIR / "config.json"
        if child.is_dir() and config_path.is_file():
            try:
                found.append((child, RepositoryStore(child).load_config()))
            except BvcError as ex:
                logger.warning("Skipping %s: %s", child, ex)
    return found
