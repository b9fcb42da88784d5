"""
Repository data model.

Records persisted under .bvc/:
- RepoConfig: config.json
- StagedFile: entries of staging.json and commit file snapshots
- Commit: entries of commits.json (oldest first)
- CheckpointRecord: entries of checkpoints.json (oldest first)

Field names on disk are camelCase; to_dict/from_dict translate.
"""

import base64
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

DEFAULT_BRANCH = "main"
REPO_FORMAT_VERSION = "1.0.0"


@dataclass
class RepoConfig:
    """
    Repository configuration.

    repo_id is empty for local-only repositories and is set exactly once,
    by init or by init --upgrade.
    """
    name: str
    created_at: str
    repo_id: str = ""
    description: str = ""
    author: str = ""
    branch: str = DEFAULT_BRANCH
    version: str = REPO_FORMAT_VERSION

    @property
    def is_remote(self) -> bool:
        return bool(self.repo_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repoId": self.repo_id,
            "name": self.name,
            "description": self.description,
            "createdAt": self.created_at,
            "author": self.author,
            "branch": self.branch,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepoConfig":
        return cls(
            name=data.get("name", ""),
            created_at=data.get("createdAt", ""),
            repo_id=data.get("repoId") or "",
            description=data.get("description") or "",
            author=data.get("author") or "",
            branch=data.get("branch") or DEFAULT_BRANCH,
            version=data.get("version") or REPO_FORMAT_VERSION,
        )


@dataclass(frozen=True)
class StagedFile:
    """
    Snapshot of one file at staging time.

    Fields:
        path: POSIX path relative to the repository root
        content_digest: SHA-256 of the bytes
        size: Size in bytes
        modified_at: File modification time (ISO-8601)
        content: Base64 of the bytes, when small enough to inline
    """
    path: str
    content_digest: str
    size: int
    modified_at: str
    content: Optional[str] = None

    def raw_content(self) -> Optional[bytes]:
        """Decoded inline content, or None when not inlined."""
        if self.content is None:
            return None
        return base64.b64decode(self.content)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "path": self.path,
            "contentDigest": self.content_digest,
            "size": self.size,
            "modifiedAt": self.modified_at,
        }
        if self.content is not None:
            data["content"] = self.content
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StagedFile":
        return cls(
            path=data["path"],
            content_digest=data["contentDigest"],
            size=int(data.get("size", 0)),
            modified_at=data.get("modifiedAt", ""),
            content=data.get("content"),
        )


@dataclass(frozen=True)
class Commit:
    """
    Immutable commit record.

    Fields:
        commit_id: SHA-256 over sorted file digests + message + timestamp
        parent_id: Previous commit's id, "" for the root
        author: Author display name
        message: Commit message
        timestamp: ISO-8601 creation time (part of the id)
        content_id: Content-store reference of the file bundle, "" if none
        anchored: Recorded on the remote ledger
        files: StagedFile snapshots at commit time
        amended: Set only on a tail replaced by amend
        tx_hash: Ledger transaction hash, when anchored
    """
    commit_id: str
    parent_id: str
    author: str
    message: str
    timestamp: str
    content_id: str = ""
    anchored: bool = False
    files: List[StagedFile] = field(default_factory=list)
    amended: bool = False
    tx_hash: Optional[str] = None

    @property
    def short_id(self) -> str:
        return self.commit_id[:8]

    def with_changes(self, **changes: Any) -> "Commit":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "commitId": self.commit_id,
            "parentId": self.parent_id,
            "author": self.author,
            "message": self.message,
            "timestamp": self.timestamp,
            "contentId": self.content_id,
            "anchored": self.anchored,
            "files": [f.to_dict() for f in self.files],
        }
        if self.amended:
            data["amended"] = True
        if self.tx_hash:
            data["txHash"] = self.tx_hash
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Commit":
        return cls(
            commit_id=data["commitId"],
            parent_id=data.get("parentId") or "",
            author=data.get("author") or "",
            message=data.get("message") or "",
            timestamp=data.get("timestamp") or "",
            content_id=data.get("contentId") or "",
            anchored=bool(data.get("anchored", False)),
            files=[StagedFile.from_dict(f) for f in data.get("files", [])],
            amended=bool(data.get("amended", False)),
            tx_hash=data.get("txHash"),
        )


@dataclass(frozen=True)
class CheckpointRecord:
    """
    One anchored batch of commits.

    Fields:
        from_commit_id: First commit of the inclusive range
        to_commit_id: Last commit of the inclusive range
        bundle_content_id: Content-store reference of the bundled files
        aggregate_digest: SHA-256 over the ordered commit ids in range
        message: Checkpoint message
        timestamp: ISO-8601 creation time
        commit_count: Number of commits in range
        commit_ids: Ordered commit ids in range
        bundle_source: "working-tree" or "commits"
        tx_hash: Ledger transaction hash
    """
    from_commit_id: str
    to_commit_id: str
    bundle_content_id: str
    aggregate_digest: str
    message: str
    timestamp: str
    commit_count: int
    commit_ids: List[str] = field(default_factory=list)
    bundle_source: str = "working-tree"
    tx_hash: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fromCommitId": self.from_commit_id,
            "toCommitId": self.to_commit_id,
            "bundleContentId": self.bundle_content_id,
            "aggregateDigest": self.aggregate_digest,
            "message": self.message,
            "timestamp": self.timestamp,
            "commitCount": self.commit_count,
            "commitIds": list(self.commit_ids),
            "bundleSource": self.bundle_source,
            "txHash": self.tx_hash,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckpointRecord":
        return cls(
            from_commit_id=data["fromCommitId"],
            to_commit_id=data["toCommitId"],
            bundle_content_id=data.get("bundleContentId") or "",
            aggregate_digest=data.get("aggregateDigest") or "",
            message=data.get("message") or "",
            timestamp=data.get("timestamp") or "",
            commit_count=int(data.get("commitCount", 0)),
            commit_ids=list(data.get("commitIds", [])),
            bundle_source=data.get("bundleSource") or "working-tree",
            tx_hash=data.get("txHash"),
        )
