"""
Local repository store.

Four JSON documents under <root>/.bvc/:
- config.json: RepoConfig
- staging.json: {"files": [StagedFile, ...]}
- commits.json: [Commit, ...] oldest first
- checkpoints.json: [CheckpointRecord, ...] oldest first

Guarantees:
- load() of a missing document returns its empty default
- save() replaces the whole document (temp file + fsync + rename)

There is no cross-process locking: two bvc processes writing the same
repository race, and the last save wins.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..core.canonical import document_json_str
from ..core.errors import ConfigurationError, NotARepositoryError
from ..core.models import CheckpointRecord, Commit, RepoConfig, StagedFile

logger = logging.getLogger(__name__)

BVC_DIR = ".bvc"
KINDS = ("config", "staging", "commits", "checkpoints")


def _default(kind: str) -> Any:
    if kind == "config":
        return {}
    if kind == "staging":
        return {"files": []}
    return []


def find_repository(start: Union[str, Path]) -> Path:
    """
    Find the repository root containing start.

    Walks from start up to the filesystem root looking for a .bvc directory.

    Raises:
        NotARepositoryError: If no ancestor holds a .bvc directory
    """
    current = Path(start).resolve()
    for candidate in [current, *current.parents]:
        if (candidate / BVC_DIR).is_dir():
            return candidate
    raise NotARepositoryError(f"Not a BVC repository (or any parent): {current}")


class RepositoryStore:
    """
    Read/write the .bvc/ documents of one repository.

    Storage format: pretty-printed JSON, one file per document kind.
    """

    def __init__(self, root: Union[str, Path]) -> None:
        """
        Initialize store.

        Args:
            root: Repository root (the directory holding .bvc/)
        """
        self.root = Path(root).resolve()
        self.bvc_dir = self.root / BVC_DIR

    @classmethod
    def create(cls, root: Union[str, Path], config: RepoConfig) -> "RepositoryStore":
        """
        Write the initial layout of a new repository.

        Raises:
            ConfigurationError: If root already holds a repository
        """
        store = cls(root)
        if store.bvc_dir.exists():
            raise ConfigurationError(
                f"Repository already initialized at {store.root}",
                remediation="Use the existing repository, or pick another directory.",
            )
        store.bvc_dir.mkdir(parents=True)
        store.save("config", config.to_dict())
        store.save("staging", _default("staging"))
        store.save("commits", _default("commits"))
        store.save("checkpoints", _default("checkpoints"))
        logger.debug("Created repository layout at %s", store.bvc_dir)
        return store

    @classmethod
    def discover(cls, start: Union[str, Path]) -> "RepositoryStore":
        return cls(find_repository(start))

    def path_for(self, kind: str) -> Path:
        if kind not in KINDS:
            raise ValueError(f"unknown document kind: {kind}")
        return self.bvc_dir / f"{kind}.json"

    def load(self, kind: str) -> Any:
        """
        Load one document.

        Args:
            kind: config, staging, commits or checkpoints

        Returns:
            Parsed JSON, or the kind's empty default if the file is missing
        """
        path = self.path_for(kind)
        if not path.exists():
            return _default(kind)
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        if not text.strip():
            return _default(kind)
        try:
            return json.loads(text)
        except json.JSONDecodeError as ex:
            raise ConfigurationError(
                f"{path} is not valid JSON: {ex}",
                remediation=f"Repair or remove {path}; a backup may exist under {self.bvc_dir / 'backups'}.",
            ) from ex

    def save(self, kind: str, document: Any) -> None:
        """
        Replace one document atomically.

        Writes to a temporary file in .bvc/, fsyncs, then renames over the
        target so a crash never leaves a half-written document.
        """
        path = self.path_for(kind)
        self.bvc_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{kind}-", suffix=".tmp", dir=str(self.bvc_dir))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(document_json_str(document))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    # Typed helpers

    def load_config(self) -> RepoConfig:
        data = self.load("config")
        if not data:
            raise NotARepositoryError(
                f"Missing {self.path_for('config')}",
                remediation="Run 'bvc init <name>' to create a repository.",
            )
        return RepoConfig.from_dict(data)

    def save_config(self, config: RepoConfig) -> None:
        """
        Persist the repository configuration.

        Raises:
            ConfigurationError: If this would change an already assigned repo_id
        """
        current = self.load("config")
        existing_id = (current or {}).get("repoId") or ""
        if existing_id and config.repo_id != existing_id:
            raise ConfigurationError(
                f"Repository id is already set to {existing_id} and cannot change",
                remediation="Clone the other repository into a new directory instead.",
            )
        self.save("config", config.to_dict())

    def load_staging(self) -> List[StagedFile]:
        data = self.load("staging")
        return [StagedFile.from_dict(f) for f in data.get("files", [])]

    def save_staging(self, files: List[StagedFile]) -> None:
        self.save("staging", {"files": [f.to_dict() for f in files]})

    def clear_staging(self) -> None:
        self.save("staging", _default("staging"))

    def load_commits(self) -> List[Commit]:
        return [Commit.from_dict(c) for c in self.load("commits")]

    def save_commits(self, commits: List[Commit]) -> None:
        self.save("commits", [c.to_dict() for c in commits])

    def head(self) -> Optional[Commit]:
        commits = self.load_commits()
        return commits[-1] if commits else None

    def load_checkpoints(self) -> List[CheckpointRecord]:
        return [CheckpointRecord.from_dict(c) for c in self.load("checkpoints")]

    def append_checkpoint(self, checkpoint: CheckpointRecord) -> None:
        records: List[Dict[str, Any]] = self.load("checkpoints")
        records.append(checkpoint.to_dict())
        self.save("checkpoints", records)
