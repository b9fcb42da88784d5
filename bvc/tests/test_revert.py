"""
Tests for reverting the working tree to a commit.
"""

import pytest

from bvc.checkpoint import bundle_entry, encode_bundle
from bvc.core.errors import CommitNotFoundError, ConfigurationError
from bvc.revert import BACKUP_DIR, SOURCE_CONTENT_STORE, SOURCE_LOCAL, revert
from bvc.staging import StagingManager

from .fakes import make_commit, write_file


def test_revert_restores_committed_bytes(repo, clock):
    first = make_commit(repo, clock, {"a.txt": "v1", "b.txt": "B"}, "first")
    make_commit(repo, clock, {"a.txt": "v2"}, "second")
    write_file(repo.root, "untracked.txt", "keep me")

    report = revert(repo, first.short_id, clock, backup=False)

    assert report.source == SOURCE_LOCAL
    assert sorted(report.restored) == ["a.txt", "b.txt"]
    assert (repo.root / "a.txt").read_text() == "v1"
    assert (repo.root / "untracked.txt").read_text() == "keep me"
    assert report.backup_path is None
    assert len(repo.load_commits()) == 2


def test_revert_creates_backup(repo, clock):
    first = make_commit(repo, clock, {"a.txt": "v1"}, "first")
    write_file(repo.root, "a.txt", "work in progress")
    write_file(repo.root, "node_modules/dep.js", "skip")

    report = revert(repo, first.commit_id, clock)

    backup = report.backup_path
    assert backup.parent == repo.bvc_dir / BACKUP_DIR
    assert backup.name.startswith(f"backup-{first.short_id}-")
    assert ":" not in backup.name
    assert (backup / "a.txt").read_text() == "work in progress"
    assert not (backup / "node_modules").exists()
    assert not (backup / ".bvc").exists()


def test_revert_refuses_staged_changes(repo, clock):
    first = make_commit(repo, clock, {"a.txt": "v1"}, "first")
    write_file(repo.root, "b.txt", "B")
    StagingManager(repo).stage(["b.txt"])

    with pytest.raises(ConfigurationError):
        revert(repo, first.commit_id, clock, backup=False)

    revert(repo, first.commit_id, clock, force=True, backup=False)
    assert repo.load_staging() == []


def test_revert_unknown_commit(repo, clock):
    make_commit(repo, clock, {"a.txt": "v1"}, "first")
    with pytest.raises(CommitNotFoundError):
        revert(repo, "ffffffff", clock)


def test_revert_from_content_store(repo, clock, content):
    make_commit(repo, clock, {"a.txt": "v1"}, "first")
    cid = content.put(encode_bundle([bundle_entry("a.txt", b"from ipfs"), bundle_entry("c.txt", b"C")]))
    commits = repo.load_commits()
    commits[0] = commits[0].with_changes(content_id=cid)
    repo.save_commits(commits)

    report = revert(repo, commits[0].commit_id, clock, content=content, backup=False)
    assert report.source == SOURCE_CONTENT_STORE
    assert sorted(report.restored) == ["a.txt", "c.txt"]
    assert (repo.root / "a.txt").read_text() == "from ipfs"


def test_revert_falls_back_when_download_fails(repo, clock, content):
    make_commit(repo, clock, {"a.txt": "v1"}, "first")
    commits = repo.load_commits()
    commits[0] = commits[0].with_changes(content_id="QmGone")
    repo.save_commits(commits)
    write_file(repo.root, "a.txt", "changed")

    report = revert(repo, commits[0].commit_id, clock, content=content, backup=False)
    assert report.source == SOURCE_LOCAL
    assert len(report.warnings) == 1
    assert (repo.root / "a.txt").read_text() == "v1"


def test_revert_skips_simulated_ids(repo, clock, content):
    make_commit(repo, clock, {"a.txt": "v1"}, "first")
    commits = repo.load_commits()
    commits[0] = commits[0].with_changes(content_id="mock_deadbeef")
    repo.save_commits(commits)

    report = revert(repo, commits[0].commit_id, clock, content=content, backup=False)
    assert report.source == SOURCE_LOCAL
    assert content.downloads == []
    assert report.warnings == []


def test_revert_skips_files_without_content(repo, clock):
    from bvc.commit import CommitBuilder, CommitOptions

    write_file(repo.root, "big.bin", "0123456789")
    StagingManager(repo, inline_limit=4).stage(["big.bin"])
    first = CommitBuilder(repo, clock).commit(CommitOptions(message="big")).commit
    (repo.root / "big.bin").unlink()

    report = revert(repo, first.commit_id, clock, backup=False)
    assert report.skipped == ["big.bin"]
    assert report.restored == []
