"""
Ignore rules for staging and status.

Sources, in order:
- always skipped: .bvc/, hidden entries, DEFAULT_EXCLUDED_DIRS
- .bvcignore at the repository root (glob per line, '#' comments,
  trailing '/' matches directories only); bypassed with force=True
"""

import fnmatch
import os
from pathlib import Path
from typing import Iterator, List, Union

IGNORE_FILE = ".bvcignore"
DEFAULT_EXCLUDED_DIRS = ("node_modules", ".git", "artifacts", "cache", "__pycache__")

DEFAULT_IGNORE_TEMPLATE = """# BVC ignore patterns
node_modules/
.env
*.log
.DS_Store
.bvc/
dist/
build/
"""


class IgnoreRules:
    """Decide which working-tree entries bvc looks at."""

    def __init__(self, patterns: List[str], force: bool = False) -> None:
        self.patterns = patterns
        self.force = force

    @classmethod
    def load(cls, root: Union[str, Path], force: bool = False) -> "IgnoreRules":
        path = Path(root) / IGNORE_FILE
        patterns: List[str] = []
        if path.exists():
            for line in path.read_text(encoding="utf-8").splitlines():
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                patterns.append(line)
        return cls(patterns, force=force)

    def is_ignored(self, rel_path: str, is_dir: bool = False) -> bool:
        """
        Check one path.

        Args:
            rel_path: POSIX path relative to the repository root
            is_dir: Whether the entry is a directory
        """
        parts = [p for p in rel_path.split("/") if p]
        if not parts:
            return False
        if parts[0] == ".bvc":
            return True
        name = parts[-1]
        if name.startswith("."):
            return True
        if is_dir and name in DEFAULT_EXCLUDED_DIRS:
            return True
        if self.force:
            return False

        for pattern in self.patterns:
            dir_only = pattern.endswith("/")
            pat = pattern.rstrip("/")
            if dir_only and not is_dir:
                continue
            if "/" in pat:
                if fnmatch.fnmatch(rel_path, pat.lstrip("/")):
                    return True
            elif fnmatch.fnmatch(name, pat):
                return True
        return False

    def walk(self, root: Union[str, Path], start: Union[str, Path, None] = None) -> Iterator[Path]:
        """
        Yield non-ignored regular files under start (default: root).

        Traversal is sorted so results are stable across platforms.
        """
        root = Path(root)
        start = Path(start) if start is not None else root
        for dirpath, dirnames, filenames in os.walk(start):
            base = Path(dirpath)
            kept = []
            for d in sorted(dirnames):
                rel = (base / d).relative_to(root).as_posix()
                if not self.is_ignored(rel, is_dir=True):
                    kept.append(d)
            dirnames[:] = kept
            for name in sorted(filenames):
                full = base / name
                rel = full.relative_to(root).as_posix()
                if full.is_file() and not self.is_ignored(rel):
                    yield full
