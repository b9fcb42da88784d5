"""
Content hasher.

SHA-256 everywhere:
- per-file identity (contentDigest)
- commit id derivation
- checkpoint aggregate digest (a flat hash, not a Merkle root)
"""

import hashlib
from typing import Iterable

ZERO_DIGEST = "0" * 64
_CHUNK = 1024 * 1024


def digest(data: bytes) -> str:
    """
    Hash bytes.

    Args:
        data: Raw bytes

    Returns:
        SHA-256 hash as hex string
    """
    return hashlib.sha256(data).hexdigest()


def file_digest(path: str) -> str:
    """Hash a file's bytes without loading it whole."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def commit_id(digests: Iterable[str], message: str, timestamp: str) -> str:
    """
    Derive a commit id.

    Hash input: sorted file digests concatenated, then message, then timestamp.
    The timestamp makes ids unique across otherwise identical commits; it is
    stored on the commit so the id can be recomputed.

    Args:
        digests: contentDigest of every file in the commit
        message: Commit message
        timestamp: ISO-8601 timestamp stored on the commit

    Returns:
        SHA-256 hash as hex string
    """
    raw = "".join(sorted(digests)) + message + timestamp
    return digest(raw.encode("utf-8"))


def aggregate_digest(commit_ids: Iterable[str]) -> str:
    """
    Digest over an ordered range of commit ids.

    Order matters: the same ids in a different order give a different digest.
    """
    return digest("".join(commit_ids).encode("utf-8"))
