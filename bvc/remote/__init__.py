"""
Remote collaborators: the ledger contract and the content store.

- RemoteResult: success/failure carrier returned by every remote call
- ContentStoreClient, ContentRef (Uploaded / Simulated): IPFS storage
- LedgerClient, connect_ledger: BVC contract access through web3
- NETWORKS: ledger network presets
"""

from .result import RemoteResult
from .content import ContentRef, ContentStoreClient, Simulated, Uploaded, SIMULATED_PREFIX
from .ledger import (
    LedgerClient,
    RemoteCheckpoint,
    RemoteCommit,
    RemoteRepository,
    TransactionSender,
    connect_ledger,
)
from .networks import NETWORKS, DEFAULT_NETWORK, NetworkPreset, get_network, is_valid_network

__all__ = [
    "RemoteResult",
    "ContentRef",
    "ContentStoreClient",
    "Simulated",
    "Uploaded",
    "SIMULATED_PREFIX",
    "LedgerClient",
    "RemoteCheckpoint",
    "RemoteCommit",
    "RemoteRepository",
    "TransactionSender",
    "connect_ledger",
    "NETWORKS",
    "DEFAULT_NETWORK",
    "NetworkPreset",
    "get_network",
    "is_valid_network",
]
