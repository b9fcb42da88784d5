"""
Bundle codec.

A bundle is the canonical JSON of a list of file entries sorted by path:

    [{"path": ..., "content": <base64>, "hash": <sha256>, "size": n, "modified": <iso>}, ...]

Canonical encoding means the same files always produce the same bytes, and
so the same content id.
"""

import base64
import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..core.canonical import canonical_json_bytes
from ..core.clock import format_timestamp
from ..core.errors import IntegrityError
from ..core.hashing import digest
from ..core.models import StagedFile

logger = logging.getLogger(__name__)


def bundle_entry(path: str, data: bytes, modified: str = "") -> Dict[str, Any]:
    return {
        "path": path,
        "content": base64.b64encode(data).decode("ascii"),
        "hash": digest(data),
        "size": len(data),
        "modified": modified,
    }


def encode_bundle(entries: Iterable[Dict[str, Any]]) -> bytes:
    """Canonical bytes of the entries, one per path (last wins), sorted by path."""
    by_path: Dict[str, Dict[str, Any]] = {}
    for entry in entries:
        by_path[entry["path"]] = entry
    return canonical_json_bytes([by_path[p] for p in sorted(by_path)])


def _modified(path: Path) -> str:
    return format_timestamp(datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc))


def bundle_from_paths(root: Union[str, Path], paths: Iterable[str]) -> Tuple[bytes, List[str]]:
    """
    Bundle the current working-tree bytes of paths.

    Returns:
        (bundle bytes, paths skipped because they no longer exist)
    """
    root = Path(root)
    entries = []
    skipped: List[str] = []
    for rel in sorted(set(paths)):
        full = root / rel
        if not full.is_file():
            logger.warning("Skipping %s: no longer in the working tree", rel)
            skipped.append(rel)
            continue
        entries.append(bundle_entry(rel, full.read_bytes(), _modified(full)))
    return encode_bundle(entries), skipped


def bundle_from_snapshots(root: Union[str, Path], files: Iterable[StagedFile]) -> Tuple[bytes, List[str]]:
    """
    Bundle recorded snapshots, using inline content when present.

    Snapshots without inline content fall back to the working tree; a
    fallback whose bytes no longer match the recorded digest is skipped.

    Returns:
        (bundle bytes, paths skipped)
    """
    root = Path(root)
    entries = []
    skipped: List[str] = []
    for f in files:
        data = f.raw_content()
        if data is None:
            full = root / f.path
            if not full.is_file():
                logger.warning("Skipping %s: not inlined and missing from the working tree", f.path)
                skipped.append(f.path)
                continue
            data = full.read_bytes()
            if digest(data) != f.content_digest:
                logger.warning("Skipping %s: working-tree bytes differ from the recorded snapshot", f.path)
                skipped.append(f.path)
                continue
        entries.append(bundle_entry(f.path, data, f.modified_at))
    return encode_bundle(entries), skipped


@dataclass
class BundleFile:
    path: str
    data: bytes
    hash: str
    size: int
    modified: str = ""

    @property
    def intact(self) -> bool:
        return digest(self.data) == self.hash


def read_bundle(data: bytes) -> List[BundleFile]:
    """
    Decode bundle bytes.

    Raises:
        IntegrityError: If the bytes are not a bundle
    """
    try:
        raw = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as ex:
        raise IntegrityError(f"Bundle is not valid JSON: {ex}") from ex
    if not isinstance(raw, list):
        raise IntegrityError("Bundle must be a JSON list of file entries")

    files = []
    for item in raw:
        if not isinstance(item, dict) or "path" not in item or "content" not in item:
            raise IntegrityError("Bundle entry is missing path or content")
        content = base64.b64decode(item["content"])
        files.append(
            BundleFile(
                path=item["path"],
                data=content,
                hash=item.get("hash") or digest(content),
                size=int(item.get("size", len(content))),
                modified=item.get("modified") or "",
            )
        )
    return files


@dataclass
class ExtractReport:
    written: List[str] = field(default_factory=list)
    corrupted: List[str] = field(default_factory=list)


def _safe_target(dest: Path, rel: str) -> Optional[Path]:
    target = Path(os.path.abspath(dest / rel))
    try:
        target.relative_to(dest)
    except ValueError:
        return None
    return target


def extract_bundle(data: bytes, dest: Union[str, Path], verify: bool = False) -> ExtractReport:
    """
    Write bundle files under dest.

    Args:
        data: Bundle bytes
        dest: Directory to extract into
        verify: Check each file against its recorded hash before writing

    Raises:
        IntegrityError: If an entry escapes dest, or (verify) a hash mismatches
    """
    dest = Path(os.path.abspath(dest))
    files = read_bundle(data)
    report = ExtractReport()

    targets: List[Tuple[BundleFile, Path]] = []
    for f in files:
        target = _safe_target(dest, f.path)
        if target is None:
            raise IntegrityError(f"Bundle entry {f.path} escapes the destination directory")
        if not f.intact:
            if verify:
                raise IntegrityError(f"Content of {f.path} does not match its recorded hash")
            report.corrupted.append(f.path)
        targets.append((f, target))

    for f, target in targets:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(f.data)
        report.written.append(f.path)
    return report
