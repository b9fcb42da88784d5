"""
Embedded ABI of the BVC ledger contract.

Argument order matters: the contract is already deployed and the ABI must
match it exactly.
"""

from typing import Any, Dict, List


def _inputs(*names: str) -> List[Dict[str, str]]:
    return [{"internalType": "string", "name": n, "type": "string"} for n in names]


_COMMIT_TUPLE = {
    "components": [
        {"internalType": "string", "name": "commitHash", "type": "string"},
        {"internalType": "string", "name": "ipfsCid", "type": "string"},
        {"internalType": "string", "name": "message", "type": "string"},
        {"internalType": "address", "name": "author", "type": "address"},
        {"internalType": "uint256", "name": "timestamp", "type": "uint256"},
    ],
    "internalType": "struct BVC.Commit[]",
    "name": "",
    "type": "tuple[]",
}

_CHECKPOINT_TUPLE = {
    "components": [
        {"internalType": "string", "name": "fromCommit", "type": "string"},
        {"internalType": "string", "name": "toCommit", "type": "string"},
        {"internalType": "string", "name": "bundleCid", "type": "string"},
        {"internalType": "string", "name": "merkleRoot", "type": "string"},
        {"internalType": "address", "name": "author", "type": "address"},
        {"internalType": "uint256", "name": "timestamp", "type": "uint256"},
    ],
    "internalType": "struct BVC.Checkpoint[]",
    "name": "",
    "type": "tuple[]",
}

BVC_ABI: List[Dict[str, Any]] = [
    {
        "anonymous": False,
        "inputs": [
            {"indexed": False, "internalType": "string", "name": "repoId", "type": "string"},
            {"indexed": False, "internalType": "string", "name": "name", "type": "string"},
            {"indexed": True, "internalType": "address", "name": "owner", "type": "address"},
        ],
        "name": "RepositoryCreated",
        "type": "event",
    },
    {
        "inputs": _inputs("name"),
        "name": "createRepo",
        "outputs": [{"internalType": "string", "name": "", "type": "string"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": _inputs("repoId", "commitHash", "ipfsCid", "message"),
        "name": "commit",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": _inputs("repoId", "fromCommit", "toCommit", "bundleCid", "merkleRoot"),
        "name": "checkpoint",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": _inputs("repoId"),
        "name": "getCommits",
        "outputs": [_COMMIT_TUPLE],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": _inputs("repoId"),
        "name": "getCheckpoints",
        "outputs": [_CHECKPOINT_TUPLE],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": _inputs("repoId"),
        "name": "getRepository",
        "outputs": [
            {"internalType": "string", "name": "name", "type": "string"},
            {"internalType": "address", "name": "owner", "type": "address"},
            {"internalType": "uint256", "name": "createdAt", "type": "uint256"},
            {"internalType": "bool", "name": "exists", "type": "bool"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "getAllRepoIds",
        "outputs": [{"internalType": "string[]", "name": "", "type": "string[]"}],
        "stateMutability": "view",
        "type": "function",
    },
]
