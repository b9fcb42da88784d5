"""
Content Store Client (IPFS).

Upload fallback chain:
1. HTTP API: multipart POST {endpoint}/api/v0/add
2. CLI: `ipfs add -q <tmpfile>`
3. Development mode only: a Simulated reference derived from the bytes

Simulated references are never retrievable; they are persisted with the
reserved "mock_" prefix so older repositories keep parsing.
"""

import logging
import os
import subprocess
import tempfile
from dataclasses import dataclass
from typing import ClassVar, Optional, Union

import requests

from ..core.errors import ContentNotRetrievableError, RemoteUnavailableError
from ..core.hashing import digest
from .result import RemoteResult

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://127.0.0.1:5001"
SIMULATED_PREFIX = "mock_"


@dataclass(frozen=True)
class ContentRef:
    """Reference to content in the store."""

    cid: str
    retrievable: ClassVar[bool] = True

    def persisted(self) -> str:
        """String written to commits.json / checkpoints.json."""
        return self.cid

    def __str__(self) -> str:
        return self.persisted()

    @staticmethod
    def parse(value: Optional[str]) -> Optional["ContentRef"]:
        """Map a persisted string back to its variant; "" and None give None."""
        if not value:
            return None
        if value.startswith(SIMULATED_PREFIX):
            return Simulated(value[len(SIMULATED_PREFIX):])
        return Uploaded(value)


@dataclass(frozen=True)
class Uploaded(ContentRef):
    """Content actually stored on an IPFS node."""


@dataclass(frozen=True)
class Simulated(ContentRef):
    """Placeholder id produced when no IPFS node was reachable."""

    retrievable: ClassVar[bool] = False

    def persisted(self) -> str:
        return SIMULATED_PREFIX + self.cid

    @classmethod
    def for_bytes(cls, data: bytes) -> "Simulated":
        return cls(digest(data)[:8])


class ContentStoreClient:
    """
    IPFS client over the HTTP API with a CLI fallback.

    Example:
        client = ContentStoreClient("http://127.0.0.1:5001")
        ref = client.upload(b"...", "bundle.json").unwrap()
        data = client.download(ref).unwrap()
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 30.0,
        allow_simulated: bool = False,
        cli_binary: str = "ipfs",
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.allow_simulated = allow_simulated
        self.cli_binary = cli_binary

    def _upload_http(self, data: bytes, filename: str) -> str:
        resp = requests.post(
            f"{self.endpoint}/api/v0/add",
            files={"file": (filename, data, "application/octet-stream")},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        cid = resp.json().get("Hash")
        if not cid:
            raise ValueError("IPFS add response has no Hash field")
        return cid

    def _upload_cli(self, data: bytes, filename: str) -> str:
        fd, tmp_path = tempfile.mkstemp(prefix="bvc_", suffix=f"_{filename}")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            proc = subprocess.run(
                [self.cli_binary, "add", "-q", tmp_path],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        finally:
            os.remove(tmp_path)
        cid = proc.stdout.strip().splitlines()[-1] if proc.stdout.strip() else ""
        if not cid:
            raise ValueError("ipfs add printed no content id")
        return cid

    def upload(self, data: bytes, filename: str = "bundle.json") -> RemoteResult[ContentRef]:
        """
        Store bytes.

        Args:
            data: Raw bytes (usually an encoded bundle)
            filename: Name given to the multipart part / temp file

        Returns:
            RemoteResult carrying an Uploaded ref, or a Simulated ref in
            development mode when every real transport failed
        """
        try:
            cid = self._upload_http(data, filename)
            logger.debug("Uploaded %d bytes via HTTP API: %s", len(data), cid)
            return RemoteResult.success(Uploaded(cid))
        except (requests.RequestException, ValueError) as ex:
            logger.warning("IPFS HTTP upload failed (%s); trying the ipfs CLI", ex)

        try:
            cid = self._upload_cli(data, filename)
            logger.debug("Uploaded %d bytes via ipfs CLI: %s", len(data), cid)
            return RemoteResult.success(Uploaded(cid))
        except (OSError, subprocess.SubprocessError, ValueError) as ex:
            logger.warning("IPFS CLI upload failed (%s)", ex)

        if self.allow_simulated:
            ref = Simulated.for_bytes(data)
            logger.warning("Using simulated content id %s (development mode)", ref)
            return RemoteResult.success(ref)

        return RemoteResult.failure(
            RemoteUnavailableError(f"Could not upload content to IPFS at {self.endpoint}")
        )

    def download(self, ref: Union[ContentRef, str]) -> RemoteResult[bytes]:
        """
        Fetch bytes by reference.

        A Simulated reference fails with ContentNotRetrievableError without
        touching the network.
        """
        if isinstance(ref, str):
            parsed = ContentRef.parse(ref)
            if parsed is None:
                return RemoteResult.failure(ContentNotRetrievableError("Empty content id"))
            ref = parsed

        if not ref.retrievable:
            return RemoteResult.failure(
                ContentNotRetrievableError(f"Content id {ref} is simulated and cannot be downloaded")
            )

        try:
            resp = requests.post(
                f"{self.endpoint}/api/v0/cat",
                params={"arg": ref.cid},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as ex:
            return RemoteResult.failure(
                RemoteUnavailableError(f"Failed to download {ref.cid} from IPFS: {ex}")
            )
        return RemoteResult.success(resp.content)

    def ping(self) -> bool:
        """True when the HTTP API answers /api/v0/version."""
        try:
            resp = requests.post(f"{self.endpoint}/api/v0/version", timeout=self.timeout)
            return resp.ok
        except requests.RequestException:
            return False
