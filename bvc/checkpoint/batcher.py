"""
Checkpoint Batcher.

Anchors an inclusive range of local commits with one ledger transaction:
resolve range -> bundle files -> upload -> aggregate digest -> record -> persist.

Failures after the range is resolved propagate; checkpoints.json is only
written once the ledger call succeeded.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..core.chain import resolve_index
from ..core.errors import (
    CommitNotFoundError,
    ConfigurationMissingError,
    EmptyCommitError,
    InvalidRangeError,
    RemoteUnavailableError,
)
from ..core.hashing import aggregate_digest
from ..core.models import CheckpointRecord, Commit, StagedFile
from ..logging_config import get_logger
from ..remote.content import ContentStoreClient
from ..remote.ledger import LedgerClient
from ..store.repository import RepositoryStore
from .bundle import bundle_from_paths, bundle_from_snapshots
from .estimate import DEFAULT_GAS_PRICE_GWEI, CostEstimate, estimate_cost

logger = logging.getLogger(__name__)

SOURCE_WORKING_TREE = "working-tree"
SOURCE_COMMITS = "commits"
SOURCES = (SOURCE_WORKING_TREE, SOURCE_COMMITS)


@dataclass
class CheckpointOptions:
    """
    Options of one checkpoint invocation.

    Fields:
        from_id: First commit (id or prefix); default first commit
        to_id: Last commit (id or prefix); default head
        message: Checkpoint message
        dry_run: Only estimate, no uploads/ledger calls/writes
        since_last: Default from_id to the commit after the newest checkpoint
        source: "working-tree" or "commits"
        gas_price_gwei: Gas price used by the dry-run estimate
    """
    from_id: Optional[str] = None
    to_id: Optional[str] = None
    message: str = ""
    dry_run: bool = False
    since_last: bool = False
    source: str = SOURCE_WORKING_TREE
    gas_price_gwei: float = DEFAULT_GAS_PRICE_GWEI

    def validate(self) -> None:
        if self.source not in SOURCES:
            raise ValueError(f"source must be one of {', '.join(SOURCES)}, got {self.source!r}")
        if self.gas_price_gwei < 0:
            raise ValueError("gas price must not be negative")
        if self.since_last and self.from_id:
            raise ValueError("--since-last and --from are mutually exclusive")


@dataclass
class CheckpointOutcome:
    """
    Result of a checkpoint.

    Exactly one of checkpoint (real run) or estimate (dry run) is set.
    """
    commits: List[Commit]
    checkpoint: Optional[CheckpointRecord] = None
    estimate: Optional[CostEstimate] = None
    skipped_paths: List[str] = field(default_factory=list)
    overlapping: List[CheckpointRecord] = field(default_factory=list)

    @property
    def dry_run(self) -> bool:
        return self.checkpoint is None


def select_range(
    commits: Sequence[Commit],
    from_id: Optional[str],
    to_id: Optional[str],
) -> List[Commit]:
    """
    Resolve an inclusive commit range.

    Raises:
        EmptyCommitError: If there are no commits
        CommitNotFoundError: If an id does not resolve
        InvalidRangeError: If from comes after to
    """
    if not commits:
        raise EmptyCommitError("No commits to checkpoint")
    start = resolve_index(commits, from_id) if from_id else 0
    end = resolve_index(commits, to_id) if to_id else len(commits) - 1
    if start > end:
        raise InvalidRangeError(
            f"Range start {commits[start].short_id} comes after range end {commits[end].short_id}"
        )
    return list(commits[start:end + 1])


def latest_snapshots(commits: Sequence[Commit]) -> List[StagedFile]:
    """Newest snapshot of every path touched by commits, sorted by path."""
    latest: Dict[str, StagedFile] = {}
    for c in commits:
        for f in c.files:
            latest[f.path] = f
    return [latest[p] for p in sorted(latest)]


def _overlaps(record: CheckpointRecord, ids: Sequence[str]) -> bool:
    if record.commit_ids:
        return bool(set(record.commit_ids) & set(ids))
    return record.from_commit_id in ids or record.to_commit_id in ids


class CheckpointBatcher:
    """
    Batch commits into one on-chain checkpoint.

    Example:
        batcher = CheckpointBatcher(store, clock, content, ledger)
        outcome = batcher.checkpoint(CheckpointOptions(message="Sprint 1"))
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

    def _default_from(self, commits: Sequence[Commit], checkpoints: Sequence[CheckpointRecord]) -> Optional[str]:
        if not checkpoints:
            return None
        last = checkpoints[-1]
        ids = [c.commit_id for c in commits]
        checkpointed = set(last.commit_ids or [last.to_commit_id])
        covered = [i for i, cid in enumerate(ids) if cid in checkpointed]
        if not covered:
            raise CommitNotFoundError(
                f"Commits of the last checkpoint ({last.from_commit_id[:8]}..{last.to_commit_id[:8]}) "
                "are no longer in the local log",
                remediation="The checkpointed commits were amended or replaced; pass --from <commit> instead.",
            )
        if last.to_commit_id not in ids:
            logger.info("Checkpoint tail %s was amended; continuing after %s", last.to_commit_id[:8], ids[covered[-1]][:8])
        next_index = covered[-1] + 1
        if next_index >= len(commits):
            raise EmptyCommitError(
                "No commits since the last checkpoint",
                remediation="Create new commits before checkpointing again.",
            )
        return commits[next_index].commit_id

    def checkpoint(self, options: CheckpointOptions) -> CheckpointOutcome:
        """
        Create a checkpoint (or estimate one with dry_run).

        Raises:
            EmptyCommitError, CommitNotFoundError, InvalidRangeError: Range errors
            ConfigurationMissingError: If the repository is local-only
            RemoteUnavailableError, UnauthorizedError, RemoteCallError: Remote errors
        """
        options.validate()
        commits = self.store.load_commits()
        checkpoints = self.store.load_checkpoints()
        if not commits:
            raise EmptyCommitError("No commits to checkpoint")

        from_id = options.from_id
        if options.since_last:
            from_id = self._default_from(commits, checkpoints)
        selected = select_range(commits, from_id, options.to_id)
        ids = [c.commit_id for c in selected]

        outcome = CheckpointOutcome(commits=selected)
        outcome.overlapping = [r for r in checkpoints if _overlaps(r, ids)]
        for record in outcome.overlapping:
            logger.info(
                "Range overlaps checkpoint %s..%s",
                record.from_commit_id[:8],
                record.to_commit_id[:8],
            )

        if options.dry_run:
            outcome.estimate = estimate_cost(len(selected), options.gas_price_gwei)
            return outcome

        config = self.store.load_config()
        if not config.is_remote:
            raise ConfigurationMissingError(
                "Local-only repository: checkpoints need a remote repository id",
                remediation="Run 'bvc init --upgrade' after 'bvc config --setup'.",
            )
        if self.content is None or self.ledger is None:
            raise ConfigurationMissingError("Content store and ledger must be configured to checkpoint")

        if options.source == SOURCE_COMMITS:
            data, skipped = bundle_from_snapshots(self.store.root, latest_snapshots(selected))
        else:
            touched = [f.path for c in selected for f in c.files]
            data, skipped = bundle_from_paths(self.store.root, touched)
        outcome.skipped_paths = skipped

        ref = self.content.upload(data, f"checkpoint-{selected[0].short_id}-{selected[-1].short_id}.json").unwrap()
        if not ref.retrievable:
            raise RemoteUnavailableError(
                f"Bundle upload produced simulated id {ref}; a checkpoint must reference retrievable content"
            )

        agg = aggregate_digest(ids)
        tx_hash = self.ledger.record_checkpoint(
            config.repo_id, ids[0], ids[-1], ref.persisted(), agg
        ).unwrap()

        record = CheckpointRecord(
            from_commit_id=ids[0],
            to_commit_id=ids[-1],
            bundle_content_id=ref.persisted(),
            aggregate_digest=agg,
            message=options.message or f"Checkpoint of {len(ids)} commits",
            timestamp=self.clock.now(),
            commit_count=len(ids),
            commit_ids=ids,
            bundle_source=options.source,
            tx_hash=tx_hash,
        )
        self.store.append_checkpoint(record)
        outcome.checkpoint = record
        log = get_logger(__name__, repo_id=config.repo_id)
        log.info("Checkpoint %s..%s recorded (%d commits)", ids[0][:8], ids[-1][:8], len(ids))
        return outcome
