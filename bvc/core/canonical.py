"""
Canonical serialization for deterministic hashing and stable documents.

Bundles are encoded through canonical_json_bytes so the same files always
produce the same bytes (and therefore the same IPFS content id).
"""

import json
from typing import Any


def canonicalize(obj: Any) -> Any:
    """
    Convert arbitrary nested dict/list to canonical form.

    Rules:
    - dict keys sorted alphabetically
    - tuples converted to lists
    - recursive normalization
    """
    if isinstance(obj, dict):
        return {k: canonicalize(obj[k]) for k in sorted(obj.keys())}
    if isinstance(obj, (list, tuple)):
        return [canonicalize(x) for x in obj]
    return obj


def canonical_json_bytes(obj: Any) -> bytes:
    """
    Deterministic JSON bytes for hashing and upload.

    Returns:
        UTF-8 encoded JSON bytes, sorted keys, no whitespace
    """
    canon = canonicalize(obj)
    s = json.dumps(canon, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return s.encode("utf-8")


def canonical_json_str(obj: Any) -> str:
    """Deterministic JSON string (same guarantees as canonical_json_bytes)."""
    return canonical_json_bytes(obj).decode("utf-8")


def document_json_str(obj: Any) -> str:
    """
    Human-readable JSON for the .bvc/ documents.

    Two-space indent, insertion order preserved, trailing newline.
    """
    return json.dumps(obj, indent=2, ensure_ascii=False) + "\n"
