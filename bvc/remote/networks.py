"""
Ledger network presets.

A user rpcUrl / contractAddress overrides the preset values.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from ..core.errors import ConfigurationError

DEFAULT_NETWORK = "sepolia"
PLACEHOLDER_MARKERS = ("YOUR_", "your-", "<")


@dataclass(frozen=True)
class NetworkPreset:
    name: str
    display_name: str
    chain_id: int
    rpc_url: str
    contract_address: Optional[str] = None
    block_explorer: Optional[str] = None
    is_testnet: bool = True


NETWORKS: Dict[str, NetworkPreset] = {
    "sepolia": NetworkPreset(
        name="sepolia",
        display_name="Sepolia Testnet",
        chain_id=11155111,
        rpc_url="https://ethereum-sepolia-rpc.publicnode.com",
        contract_address="0xA8A77a933Db23eFBC39d7D3D246649BE7070Eb59",
        block_explorer="https://sepolia.etherscan.io",
    ),
    "localhost": NetworkPreset(
        name="localhost",
        display_name="Local Hardhat",
        chain_id=1337,
        rpc_url="http://127.0.0.1:8545",
    ),
    "mainnet": NetworkPreset(
        name="mainnet",
        display_name="Ethereum Mainnet",
        chain_id=1,
        rpc_url="https://mainnet.infura.io/v3/YOUR_INFURA_PROJECT_ID",
        block_explorer="https://etherscan.io",
        is_testnet=False,
    ),
}


def is_valid_network(name: str) -> bool:
    return name in NETWORKS


def get_network(name: Optional[str] = None) -> NetworkPreset:
    """
    Look up a preset.

    Raises:
        ConfigurationError: If the network name is unknown
    """
    name = name or DEFAULT_NETWORK
    preset = NETWORKS.get(name)
    if preset is None:
        raise ConfigurationError(
            f"Unknown network: {name}",
            remediation=f"Use one of: {', '.join(NETWORKS)} (bvc config --network <name>).",
        )
    return preset


def is_placeholder(url: Optional[str]) -> bool:
    """True when an RPC URL still carries a template marker."""
    if not url:
        return False
    return any(marker in url for marker in PLACEHOLDER_MARKERS)
