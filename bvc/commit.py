"""
Commit Builder.

Turns staging into an immutable commit appended to the local chain, and
optionally uploads the files and records the commit on the ledger.

Remote steps never fail the commit: each failure becomes a warning on the
outcome and the commit is kept with anchored=False.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .checkpoint.bundle import bundle_from_snapshots
from .core.errors import CommitNotFoundError, EmptyCommitError
from .core.hashing import commit_id
from .core.models import Commit, StagedFile
from .remote.content import ContentRef, ContentStoreClient
from .remote.ledger import LedgerClient
from .store.repository import RepositoryStore

logger = logging.getLogger(__name__)


def build_commit(
    staged: Sequence[StagedFile],
    previous_head: Optional[Commit],
    message: str,
    author: str,
    timestamp: str,
) -> Commit:
    """
    Build a commit record (pure).

    Args:
        staged: File snapshots to include
        previous_head: Current head, or None for the root commit
        message: Commit message
        author: Author display name
        timestamp: ISO-8601 timestamp, hashed into the id

    Returns:
        Commit with anchored=False and no content id
    """
    cid = commit_id([f.content_digest for f in staged], message, timestamp)
    return Commit(
        commit_id=cid,
        parent_id=previous_head.commit_id if previous_head else "",
        author=author,
        message=message,
        timestamp=timestamp,
        files=list(staged),
    )


@dataclass
class CommitOptions:
    """
    Options of one commit invocation.

    Fields:
        message: Commit message (required, non-blank)
        amend: Replace the tail commit instead of appending
        remote: Upload files and record the commit on the ledger
        author: Author display name
    """
    message: str
    amend: bool = False
    remote: bool = False
    author: str = ""

    def validate(self) -> None:
        if not self.message or not self.message.strip():
            raise ValueError("Commit message must not be empty")


@dataclass
class CommitOutcome:
    commit: Commit
    anchored: bool = False
    warnings: List[str] = field(default_factory=list)


class CommitBuilder:
    """
    Create commits in a repository.

    Example:
        builder = CommitBuilder(store, SystemClock())
        outcome = builder.commit(CommitOptions(message="Initial commit"))
    """

    def __init__(
        self,
        store: RepositoryStore,
        clock,
        content: Optional[ContentStoreClient] = None,
        ledger: Optional[LedgerClient] = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.content = content
        self.ledger = ledger

    def commit(self, options: CommitOptions) -> CommitOutcome:
        """
        Commit staged files.

        Raises:
            EmptyCommitError: If staging is empty (and not amending)
            CommitNotFoundError: If amending with no commits
        """
        options.validate()
        if options.amend:
            return self._amend(options)

        staged = self.store.load_staging()
        if not staged:
            raise EmptyCommitError("Nothing to commit: staging is empty")

        commits = self.store.load_commits()
        head = commits[-1] if commits else None
        author = options.author or self.store.load_config().author
        commit = build_commit(staged, head, options.message, author, self.clock.now())

        outcome = CommitOutcome(commit=commit)
        if options.remote:
            self._anchor(outcome)

        commits.append(outcome.commit)
        self.store.save_commits(commits)
        self.store.clear_staging()
        logger.info("Committed %s (%d files)", outcome.commit.short_id, len(staged))
        return outcome

    def _amend(self, options: CommitOptions) -> CommitOutcome:
        commits = self.store.load_commits()
        if not commits:
            raise CommitNotFoundError(
                "Nothing to amend: no commits yet",
                remediation="Create a commit first with 'bvc commit -m <message>'.",
            )
        tail = commits[-1]
        staged = self.store.load_staging() or tail.files
        timestamp = self.clock.now()
        replacement = Commit(
            commit_id=commit_id([f.content_digest for f in staged], options.message, timestamp),
            parent_id=tail.parent_id,
            author=options.author or tail.author,
            message=options.message,
            timestamp=timestamp,
            files=list(staged),
            amended=True,
        )

        outcome = CommitOutcome(commit=replacement)
        if tail.anchored:
            outcome.warnings.append(
                f"Amended commit {tail.short_id} was already anchored; the ledger keeps the original"
            )
        if options.remote:
            self._anchor(outcome)

        commits[-1] = outcome.commit
        self.store.save_commits(commits)
        self.store.clear_staging()
        logger.info("Amended %s -> %s", tail.short_id, replacement.short_id)
        return outcome

    def _warn(self, outcome: CommitOutcome, text: str) -> None:
        logger.warning(text)
        outcome.warnings.append(text)

    def _anchor(self, outcome: CommitOutcome) -> None:
        commit = outcome.commit
        config = self.store.load_config()

        ref: Optional[ContentRef] = None
        if self.content is None:
            self._warn(outcome, "No content store configured; files were not uploaded")
        else:
            data, skipped = bundle_from_snapshots(self.store.root, commit.files)
            for path in skipped:
                outcome.warnings.append(f"{path} was not included in the uploaded bundle")
            result = self.content.upload(data, f"commit-{commit.short_id}.json")
            if result.ok:
                ref = result.value
                commit = commit.with_changes(content_id=ref.persisted())
            else:
                self._warn(outcome, f"Upload failed: {result.error}")

        if not config.is_remote:
            self._warn(outcome, "Local-only repository: commit not recorded on the ledger")
        elif self.ledger is None:
            self._warn(outcome, "No ledger configured: commit not recorded on the ledger")
        elif ref is not None and not ref.retrievable:
            self._warn(outcome, f"Content id {ref} is simulated; commit kept local until it can be uploaded")
        else:
            result = self.ledger.record_commit(config.repo_id, commit.commit_id, commit.content_id, commit.message)
            if result.ok:
                commit = commit.with_changes(anchored=True, tx_hash=result.value)
                outcome.anchored = True
            else:
                self._warn(outcome, f"Ledger call failed: {result.error}")

        outcome.commit = commit

