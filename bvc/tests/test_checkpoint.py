"""
Tests for checkpoint batching.

Critical tests:
1. Cost estimate figures
2. Range selection and validation
3. Dry run touches nothing
4. Successful checkpoint persists one record per ledger transaction
5. Failures leave checkpoints.json untouched
"""

import pytest

from bvc.checkpoint import (
    GAS_PER_CHECKPOINT,
    GAS_PER_COMMIT,
    SOURCE_COMMITS,
    CheckpointBatcher,
    CheckpointOptions,
    estimate_cost,
    read_bundle,
    select_range,
)
from bvc.commit import CommitBuilder, CommitOptions
from bvc.core.errors import (
    CommitNotFoundError,
    ConfigurationMissingError,
    EmptyCommitError,
    InvalidRangeError,
    RemoteCallError,
    RemoteUnavailableError,
)
from bvc.core.hashing import aggregate_digest

from .fakes import make_commit


def _history(store, clock, n=3):
    return [make_commit(store, clock, {f"f{i}.txt": f"content {i}"}, f"commit {i}") for i in range(n)]


def test_estimate_three_commits():
    est = estimate_cost(3)
    assert est.individual_gas == 3 * GAS_PER_COMMIT == 360_000
    assert est.checkpoint_gas == GAS_PER_CHECKPOINT == 180_000
    assert est.saved_gas == 180_000
    assert est.savings_percent == 50.0
    assert est.individual_eth == pytest.approx(0.0072)
    assert est.checkpoint_eth == pytest.approx(0.0036)


def test_estimate_single_commit_costs_more():
    est = estimate_cost(1)
    assert est.saved_gas == -60_000
    assert est.savings_percent == -50.0


def test_estimate_zero_commits():
    est = estimate_cost(0)
    assert est.checkpoint_gas == 0
    assert est.savings_percent == 0.0


def test_options_validation():
    with pytest.raises(ValueError):
        CheckpointOptions(source="tarball").validate()
    with pytest.raises(ValueError):
        CheckpointOptions(gas_price_gwei=-1).validate()
    with pytest.raises(ValueError):
        CheckpointOptions(since_last=True, from_id="abc").validate()


def test_select_range(repo, clock):
    commits = _history(repo, clock, 4)
    assert select_range(commits, None, None) == commits
    assert select_range(commits, commits[1].commit_id[:8], commits[2].commit_id) == commits[1:3]
    with pytest.raises(InvalidRangeError):
        select_range(commits, commits[3].commit_id, commits[0].commit_id)
    with pytest.raises(CommitNotFoundError):
        select_range(commits, "ffffffff", None)
    with pytest.raises(EmptyCommitError):
        select_range([], None, None)


def test_dry_run_changes_nothing(remote_repo, clock, content, ledger):
    commits = _history(remote_repo, clock)
    outcome = CheckpointBatcher(remote_repo, clock, content, ledger).checkpoint(CheckpointOptions(dry_run=True))

    assert outcome.dry_run
    assert outcome.estimate.commit_count == 3
    assert outcome.commits == commits
    assert content.uploads == []
    assert ledger.calls == []
    assert remote_repo.load_checkpoints() == []


def test_dry_run_works_for_local_only(repo, clock):
    _history(repo, clock, 2)
    outcome = CheckpointBatcher(repo, clock).checkpoint(CheckpointOptions(dry_run=True))
    assert outcome.estimate.commit_count == 2


def test_empty_repository(remote_repo, clock):
    with pytest.raises(EmptyCommitError):
        CheckpointBatcher(remote_repo, clock).checkpoint(CheckpointOptions(dry_run=True))


def test_local_only_repository_cannot_checkpoint(repo, clock, content, ledger):
    _history(repo, clock)
    with pytest.raises(ConfigurationMissingError):
        CheckpointBatcher(repo, clock, content, ledger).checkpoint(CheckpointOptions())
    assert content.uploads == []


def test_checkpoint_records_range(remote_repo, clock, content, ledger):
    commits = _history(remote_repo, clock)
    ids = [c.commit_id for c in commits]

    outcome = CheckpointBatcher(remote_repo, clock, content, ledger).checkpoint(CheckpointOptions(message="Sprint 1"))
    record = outcome.checkpoint

    assert record.from_commit_id == ids[0]
    assert record.to_commit_id == ids[-1]
    assert record.commit_ids == ids
    assert record.commit_count == 3
    assert record.aggregate_digest == aggregate_digest(ids)
    assert record.message == "Sprint 1"
    assert record.bundle_content_id in content.blobs
    assert record.tx_hash.startswith("0x")

    repo_id = remote_repo.load_config().repo_id
    assert ledger.writes("checkpoint") == [
        ("checkpoint", repo_id, ids[0], ids[-1], record.bundle_content_id, record.aggregate_digest)
    ]
    assert ledger.writes("commit") == []
    assert remote_repo.load_checkpoints() == [record]

    bundled = read_bundle(content.blobs[record.bundle_content_id])
    assert [f.path for f in bundled] == ["f0.txt", "f1.txt", "f2.txt"]


def test_default_message(remote_repo, clock, content, ledger):
    _history(remote_repo, clock, 2)
    outcome = CheckpointBatcher(remote_repo, clock, content, ledger).checkpoint(CheckpointOptions())
    assert outcome.checkpoint.message == "Checkpoint of 2 commits"


def test_since_last(remote_repo, clock, content, ledger):
    batcher = CheckpointBatcher(remote_repo, clock, content, ledger)
    first = _history(remote_repo, clock, 2)
    batcher.checkpoint(CheckpointOptions())

    later = [make_commit(remote_repo, clock, {"g.txt": "G"}, "later")]
    outcome = batcher.checkpoint(CheckpointOptions(since_last=True))
    assert outcome.checkpoint.commit_ids == [later[0].commit_id]
    assert outcome.overlapping == []
    assert first[0].commit_id not in outcome.checkpoint.commit_ids

    with pytest.raises(EmptyCommitError):
        batcher.checkpoint(CheckpointOptions(since_last=True))


def test_since_last_after_amending_checkpoint_tail(remote_repo, clock, content, ledger):
    batcher = CheckpointBatcher(remote_repo, clock, content, ledger)
    first = _history(remote_repo, clock, 2)
    batcher.checkpoint(CheckpointOptions())

    amended = CommitBuilder(remote_repo, clock).commit(CommitOptions(message="commit 1, reworded", amend=True)).commit
    outcome = batcher.checkpoint(CheckpointOptions(since_last=True))
    assert outcome.checkpoint.commit_ids == [amended.commit_id]
    assert first[0].commit_id not in outcome.checkpoint.commit_ids


def test_since_last_when_whole_checkpoint_was_amended(remote_repo, clock, content, ledger):
    batcher = CheckpointBatcher(remote_repo, clock, content, ledger)
    _history(remote_repo, clock, 1)
    batcher.checkpoint(CheckpointOptions())
    CommitBuilder(remote_repo, clock).commit(CommitOptions(message="reworded", amend=True))

    with pytest.raises(CommitNotFoundError) as exc:
        batcher.checkpoint(CheckpointOptions(since_last=True))
    assert "amended" in exc.value.remediation
    assert "--from" in exc.value.remediation


def test_overlapping_ranges_are_reported(remote_repo, clock, content, ledger):
    batcher = CheckpointBatcher(remote_repo, clock, content, ledger)
    commits = _history(remote_repo, clock, 3)
    first = batcher.checkpoint(CheckpointOptions(to_id=commits[1].commit_id)).checkpoint

    outcome = batcher.checkpoint(CheckpointOptions(from_id=commits[1].commit_id))
    assert outcome.overlapping == [first]
    assert len(remote_repo.load_checkpoints()) == 2


def test_commit_snapshots_source(remote_repo, clock, content, ledger):
    _history(remote_repo, clock, 2)
    (remote_repo.root / "f0.txt").unlink()

    batcher = CheckpointBatcher(remote_repo, clock, content, ledger)
    from_tree = batcher.checkpoint(CheckpointOptions())
    assert from_tree.skipped_paths == ["f0.txt"]

    from_commits = batcher.checkpoint(CheckpointOptions(source=SOURCE_COMMITS))
    assert from_commits.skipped_paths == []
    bundled = read_bundle(content.blobs[from_commits.checkpoint.bundle_content_id])
    assert [f.path for f in bundled] == ["f0.txt", "f1.txt"]
    assert from_commits.checkpoint.bundle_source == SOURCE_COMMITS


def test_simulated_upload_is_refused(remote_repo, clock, content, ledger):
    _history(remote_repo, clock)
    content.simulate = True
    with pytest.raises(RemoteUnavailableError):
        CheckpointBatcher(remote_repo, clock, content, ledger).checkpoint(CheckpointOptions())
    assert ledger.calls == []
    assert remote_repo.load_checkpoints() == []


def test_upload_failure_propagates(remote_repo, clock, content, ledger):
    _history(remote_repo, clock)
    content.fail_uploads = True
    with pytest.raises(RemoteUnavailableError):
        CheckpointBatcher(remote_repo, clock, content, ledger).checkpoint(CheckpointOptions())
    assert remote_repo.load_checkpoints() == []


def test_ledger_failure_writes_nothing(remote_repo, clock, content, ledger):
    _history(remote_repo, clock)
    ledger.fail_with = RemoteCallError("checkpoint reverted: Invalid range")
    with pytest.raises(RemoteCallError):
        CheckpointBatcher(remote_repo, clock, content, ledger).checkpoint(CheckpointOptions())
    assert remote_repo.load_checkpoints() == []


def test_missing_clients(remote_repo, clock):
    _history(remote_repo, clock)
    with pytest.raises(ConfigurationMissingError):
        CheckpointBatcher(remote_repo, clock).checkpoint(CheckpointOptions())
