"""
User configuration (credentials and endpoints).

Stored as user-config.json, resolved by first match in:
1. <repo>/.bvc/user-config.json
2. ~/.bvc/user-config.json
3. <repo>/../.bvc/user-config.json

Environment variables override file values (see ENV_OVERRIDES).
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from ..core.canonical import document_json_str
from ..core.errors import ConfigurationError, ConfigurationMissingError
from ..remote.content import DEFAULT_ENDPOINT
from ..remote.networks import DEFAULT_NETWORK
from .secrets import PASSPHRASE_ENV, decrypt_secret

logger = logging.getLogger(__name__)

USER_CONFIG_FILE = "user-config.json"

ENV_OVERRIDES = {
    "BVC_PRIVATE_KEY": "private_key",
    "BVC_RPC_URL": "rpc_url",
    "BVC_NETWORK": "network",
    "BVC_CONTRACT_ADDRESS": "contract_address",
    "BVC_IPFS_ENDPOINT": "ipfs_endpoint",
    "BVC_AUTHOR": "author",
    "BVC_DEV_MODE": "development",
}

_TRUTHY = {"1", "true", "yes", "on"}


class UserConfig(BaseModel):
    """Per-user settings; camelCase on disk."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    private_key: Optional[str] = Field(default=None, alias="privateKey")
    encrypted_private_key: Optional[Dict[str, str]] = Field(default=None, alias="encryptedPrivateKey")
    rpc_url: Optional[str] = Field(default=None, alias="rpcUrl")
    network: str = DEFAULT_NETWORK
    contract_address: Optional[str] = Field(default=None, alias="contractAddress")
    ipfs_endpoint: str = Field(default=DEFAULT_ENDPOINT, alias="ipfsEndpoint")
    author: str = ""
    development: bool = False
    request_timeout: float = Field(default=30.0, alias="requestTimeout")

    _source: Optional[Path] = PrivateAttr(default=None)

    @property
    def source(self) -> Optional[Path]:
        """File this configuration was loaded from, if any."""
        return self._source

    @property
    def has_private_key(self) -> bool:
        return bool(self.private_key or self.encrypted_private_key)

    def resolved_private_key(self, passphrase: Optional[str] = None) -> Optional[str]:
        """
        Plaintext private key, decrypting when only the encrypted form is stored.

        Raises:
            ConfigurationMissingError: If the key is encrypted and no passphrase is available
        """
        if self.private_key:
            return self.private_key
        if not self.encrypted_private_key:
            return None
        passphrase = passphrase or os.environ.get(PASSPHRASE_ENV)
        if not passphrase:
            raise ConfigurationMissingError(
                "Private key is encrypted and no passphrase was provided",
                remediation=f"Export {PASSPHRASE_ENV} with the passphrase used by 'bvc config --encrypt-key'.",
            )
        return decrypt_secret(self.encrypted_private_key, passphrase)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def masked(self) -> Dict[str, Any]:
        """Document with secrets hidden, for display."""
        doc = self.to_document()
        if self.private_key:
            doc["privateKey"] = self.private_key[:6] + "..." + self.private_key[-4:]
        if self.encrypted_private_key:
            doc["encryptedPrivateKey"] = "<encrypted>"
        return doc


def user_config_paths(base: Union[str, Path], home: Union[str, Path, None] = None) -> List[Path]:
    """Candidate user-config.json locations, in resolution order."""
    base = Path(base)
    home = Path(home) if home is not None else Path.home()
    return [
        base / ".bvc" / USER_CONFIG_FILE,
        home / ".bvc" / USER_CONFIG_FILE,
        base.parent / ".bvc" / USER_CONFIG_FILE,
    ]


def _apply_env(data: Dict[str, Any], env: Mapping[str, str]) -> Dict[str, Any]:
    for var, field_name in ENV_OVERRIDES.items():
        value = env.get(var)
        if value is None or value == "":
            continue
        if field_name == "development":
            data[field_name] = value.strip().lower() in _TRUTHY
        else:
            data[field_name] = value
    return data


def read_user_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as ex:
        raise ConfigurationError(
            f"{path} is not valid JSON: {ex}",
            remediation="Fix the file or recreate it with 'bvc config --reset' then 'bvc config --setup'.",
        ) from ex
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")
    return data


def parse_user_config(data: Dict[str, Any], path: Union[str, Path, None] = None) -> UserConfig:
    """
    Validate a user-config document.

    Raises:
        ConfigurationError: If a field has the wrong type or value
    """
    try:
        return UserConfig.model_validate(data)
    except ValidationError as ex:
        where = f"{path}" if path is not None else "environment overrides"
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'document'}: {err['msg']}" for err in ex.errors()
        )
        raise ConfigurationError(
            f"Invalid user configuration in {where}: {problems}",
            remediation="Fix the value or rewrite it with 'bvc config --setup'.",
        ) from ex


def load_user_config(
    base: Union[str, Path],
    home: Union[str, Path, None] = None,
    env: Optional[Mapping[str, str]] = None,
) -> UserConfig:
    """
    Resolve the effective user configuration.

    Args:
        base: Repository root (or working directory outside a repository)
        home: Home directory (default: Path.home())
        env: Environment mapping (default: os.environ)

    Returns:
        UserConfig; defaults when no file exists
    """
    env = os.environ if env is None else env
    source: Optional[Path] = None
    data: Dict[str, Any] = {}
    for candidate in user_config_paths(base, home):
        if candidate.is_file():
            source = candidate
            raw = read_user_config_file(candidate)
            data = parse_user_config(raw, candidate).model_dump()
            break

    config = parse_user_config(_apply_env(data, env))
    config._source = source
    logger.debug("User configuration from %s", source or "defaults")
    return config


def save_user_config(config: UserConfig, path: Union[str, Path]) -> Path:
    """Write config to path with owner-only permissions."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(document_json_str(config.to_document()), encoding="utf-8")
    try:
        os.chmod(path, 0o600)
    except OSError:
        logger.debug("Could not restrict permissions on %s", path)
    return path
