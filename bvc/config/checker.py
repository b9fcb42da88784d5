"""
Configuration checks for remote operations.

Each issue carries a solution line that the CLI prints as-is.
"""

import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from ..core.errors import ConfigurationMissingError
from ..remote.networks import NETWORKS, get_network, is_placeholder, is_valid_network
from .user import UserConfig

_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


@dataclass(frozen=True)
class ConfigIssue:
    kind: str
    message: str
    solution: str
    blocking: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def check_configuration(config: UserConfig) -> List[ConfigIssue]:
    """
    Inspect a UserConfig for problems that would break remote operations.

    Returns:
        Issues found (empty when the configuration is usable)
    """
    issues: List[ConfigIssue] = []

    preset = None
    if is_valid_network(config.network):
        preset = get_network(config.network)
    else:
        issues.append(
            ConfigIssue(
                kind="invalid_network",
                message=f"Invalid network: {config.network}",
                solution=f"Run: bvc config --network <{'|'.join(NETWORKS)}>",
            )
        )

    if not config.has_private_key:
        issues.append(
            ConfigIssue(
                kind="missing_private_key",
                message="Private key not configured",
                solution="Run: bvc config --private-key <your-key>",
            )
        )
    elif config.private_key and not _KEY_RE.match(config.private_key):
        issues.append(
            ConfigIssue(
                kind="malformed_private_key",
                message="Private key format invalid",
                solution="Use 64 hex characters, optionally prefixed with 0x",
            )
        )

    rpc_url = config.rpc_url or (preset.rpc_url if preset else None)
    if not rpc_url or is_placeholder(rpc_url):
        issues.append(
            ConfigIssue(
                kind="invalid_rpc",
                message="RPC URL not properly configured",
                solution="Get an RPC URL from your node provider and run: bvc config --rpc-url <url>",
            )
        )
    elif not rpc_url.startswith(("http://", "https://")):
        issues.append(
            ConfigIssue(
                kind="invalid_rpc",
                message=f"RPC URL should start with http:// or https://: {rpc_url}",
                solution="Run: bvc config --rpc-url <url>",
            )
        )

    address = config.contract_address or (preset.contract_address if preset else None)
    if not address:
        issues.append(
            ConfigIssue(
                kind="missing_contract",
                message=f"Contract address not configured for {config.network}",
                solution="Run: bvc config --contract-address <address>",
            )
        )

    if not config.author:
        issues.append(
            ConfigIssue(
                kind="missing_author",
                message="Author name not set",
                solution='Run: bvc config --author "Your Name"',
                blocking=False,
            )
        )

    return issues


def require_remote(config: UserConfig) -> None:
    """
    Fail fast when remote operations cannot work.

    Raises:
        ConfigurationMissingError: Listing every blocking issue
    """
    blocking = [i for i in check_configuration(config) if i.blocking]
    if not blocking:
        return
    details = "; ".join(i.message for i in blocking)
    solutions = " | ".join(i.solution for i in blocking)
    raise ConfigurationMissingError(
        f"Remote operations are not configured: {details}",
        remediation=f"Run 'bvc config --setup', or fix individually: {solutions}",
    )
