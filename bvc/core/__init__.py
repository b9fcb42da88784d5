"""
Core primitives.

- Models: RepoConfig, StagedFile, Commit, CheckpointRecord
- Hashing: content digests, commit ids, aggregate digests
- Canonical: deterministic serialization
- Clock: injectable time source
- Chain: prefix resolution and linked-list verification
"""

from .models import RepoConfig, StagedFile, Commit, CheckpointRecord
from .hashing import digest, file_digest, commit_id, aggregate_digest
from .canonical import canonicalize, canonical_json_bytes, canonical_json_str
from .clock import SystemClock, FixedClock, format_timestamp
from .chain import resolve_index, resolve_commit, verify_chain, verify_commit_id
from .errors import (
    BvcError,
    NotFoundError,
    NotARepositoryError,
    EmptyCommitError,
    CommitNotFoundError,
    InvalidRangeError,
    RemoteUnavailableError,
    UnauthorizedError,
    ConfigurationMissingError,
    ConfigurationError,
    RemoteCallError,
    ContentNotRetrievableError,
    IntegrityError,
)

__all__ = [
    "RepoConfig",
    "StagedFile",
    "Commit",
    "CheckpointRecord",
    "digest",
    "file_digest",
    "commit_id",
    "aggregate_digest",
    "canonicalize",
    "canonical_json_bytes",
    "canonical_json_str",
    "SystemClock",
    "FixedClock",
    "format_timestamp",
    "resolve_index",
    "resolve_commit",
    "verify_chain",
    "verify_commit_id",
    "BvcError",
    "NotFoundError",
    "NotARepositoryError",
    "EmptyCommitError",
    "CommitNotFoundError",
    "InvalidRangeError",
    "RemoteUnavailableError",
    "UnauthorizedError",
    "ConfigurationMissingError",
    "ConfigurationError",
    "RemoteCallError",
    "ContentNotRetrievableError",
    "IntegrityError",
]
