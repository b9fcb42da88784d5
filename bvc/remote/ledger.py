"""
Remote Ledger Client.

Talks to the BVC contract through web3. Each operation is a single call with
no retry and returns a RemoteResult; errors are mapped to:
- RemoteUnavailableError: connection failures and timeouts
- UnauthorizedError: a revert whose reason mentions ownership
- RemoteCallError: any other revert or contract failure

Writes go through a TransactionSender so tests can replace signing and
broadcasting with an in-process fake.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, TypeVar

import requests
from eth_account import Account
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception
from web3.logs import DISCARD

from ..core.errors import (
    BvcError,
    ConfigurationMissingError,
    NotFoundError,
    RemoteCallError,
    RemoteUnavailableError,
    UnauthorizedError,
)
from .abi import BVC_ABI
from .networks import get_network
from .result import RemoteResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

RECEIPT_TIMEOUT_SECONDS = 180


@dataclass(frozen=True)
class RemoteCommit:
    commit_id: str
    content_id: str
    message: str
    author: str
    timestamp: int


@dataclass(frozen=True)
class RemoteCheckpoint:
    from_commit_id: str
    to_commit_id: str
    bundle_content_id: str
    aggregate_digest: str
    author: str
    timestamp: int


@dataclass(frozen=True)
class RemoteRepository:
    repo_id: str
    name: str
    owner: str
    created_at: int


class TransactionSender(Protocol):
    """Signs, broadcasts and waits for one contract transaction."""

    def send(self, call: Any) -> Dict[str, Any]:
        ...


class Web3TransactionSender:
    """Local-key signing sender for web3 contract calls."""

    def __init__(self, w3: Web3, account: Any, chain_id: int, receipt_timeout: float = RECEIPT_TIMEOUT_SECONDS) -> None:
        self.w3 = w3
        self.account = account
        self.chain_id = chain_id
        self.receipt_timeout = receipt_timeout

    def send(self, call: Any) -> Dict[str, Any]:
        tx = call.build_transaction(
            {
                "from": self.account.address,
                "nonce": self.w3.eth.get_transaction_count(self.account.address),
                "chainId": self.chain_id,
            }
        )
        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        logger.debug("Broadcast transaction %s", tx_hash.hex())
        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        if receipt.get("status") != 1:
            raise RemoteCallError(f"Transaction {tx_hash.hex()} reverted")
        return dict(receipt)


def _revert_reason(ex: ContractLogicError) -> str:
    reason = getattr(ex, "message", None) or str(ex)
    return reason.replace("execution reverted:", "").strip()


def _tx_hash(receipt: Dict[str, Any]) -> str:
    value = receipt.get("transactionHash", "")
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if hasattr(value, "hex"):
        text = value.hex()
        return text if text.startswith("0x") else "0x" + text
    return str(value)


class LedgerClient:
    """
    Typed operations on the BVC contract.

    Args:
        contract: web3 Contract (or a fake exposing .functions and .events)
        sender: TransactionSender used for state-changing calls
        account_address: Address of the configured account (for --mine)
    """

    def __init__(self, contract: Any, sender: TransactionSender, account_address: str = "") -> None:
        self.contract = contract
        self.sender = sender
        self.account_address = account_address

    def _guard(self, action: str, fn: Callable[[], T]) -> RemoteResult[T]:
        try:
            return RemoteResult.success(fn())
        except BvcError as ex:
            return RemoteResult.failure(ex)
        except ContractLogicError as ex:
            reason = _revert_reason(ex)
            logger.debug("%s reverted: %s", action, reason)
            if "owner" in reason.lower():
                return RemoteResult.failure(UnauthorizedError(f"{action} rejected: {reason}"))
            return RemoteResult.failure(RemoteCallError(f"{action} reverted: {reason}"))
        except (requests.exceptions.RequestException, ConnectionError, TimeExhausted) as ex:
            return RemoteResult.failure(RemoteUnavailableError(f"{action} failed: ledger unreachable ({ex})"))
        except Web3Exception as ex:
            return RemoteResult.failure(RemoteCallError(f"{action} failed: {ex}"))

    # Writes

    def create_repository(self, name: str) -> RemoteResult[str]:
        """Register a repository; the id is read from the RepositoryCreated event."""

        def run() -> str:
            receipt = self.sender.send(self.contract.functions.createRepo(name))
            events = self.contract.events.RepositoryCreated().process_receipt(receipt, errors=DISCARD)
            if not events:
                raise RemoteCallError("createRepo emitted no RepositoryCreated event")
            repo_id = events[0]["args"]["repoId"]
            logger.info("Created remote repository %s (%s)", repo_id, name)
            return repo_id

        return self._guard("createRepo", run)

    def record_commit(self, repo_id: str, commit_id: str, content_id: str, message: str) -> RemoteResult[str]:
        def run() -> str:
            receipt = self.sender.send(self.contract.functions.commit(repo_id, commit_id, content_id, message))
            return _tx_hash(receipt)

        return self._guard("commit", run)

    def record_checkpoint(
        self,
        repo_id: str,
        from_commit_id: str,
        to_commit_id: str,
        bundle_content_id: str,
        aggregate_digest: str,
    ) -> RemoteResult[str]:
        def run() -> str:
            call = self.contract.functions.checkpoint(
                repo_id, from_commit_id, to_commit_id, bundle_content_id, aggregate_digest
            )
            return _tx_hash(self.sender.send(call))

        return self._guard("checkpoint", run)

    # Reads

    def list_commits(self, repo_id: str) -> RemoteResult[List[RemoteCommit]]:
        def run() -> List[RemoteCommit]:
            rows = self.contract.functions.getCommits(repo_id).call()
            return [
                RemoteCommit(
                    commit_id=row[0],
                    content_id=row[1],
                    message=row[2],
                    author=row[3],
                    timestamp=int(row[4]),
                )
                for row in rows
            ]

        return self._guard("getCommits", run)

    def list_checkpoints(self, repo_id: str) -> RemoteResult[List[RemoteCheckpoint]]:
        def run() -> List[RemoteCheckpoint]:
            rows = self.contract.functions.getCheckpoints(repo_id).call()
            return [
                RemoteCheckpoint(
                    from_commit_id=row[0],
                    to_commit_id=row[1],
                    bundle_content_id=row[2],
                    aggregate_digest=row[3],
                    author=row[4],
                    timestamp=int(row[5]),
                )
                for row in rows
            ]

        return self._guard("getCheckpoints", run)

    def get_repository(self, repo_id: str) -> RemoteResult[RemoteRepository]:
        def run() -> RemoteRepository:
            name, owner, created_at, exists = self.contract.functions.getRepository(repo_id).call()
            if not exists:
                raise NotFoundError(
                    f"Repository {repo_id} does not exist on the ledger",
                    remediation="Run 'bvc list' to see available repositories.",
                )
            return RemoteRepository(repo_id=repo_id, name=name, owner=owner, created_at=int(created_at))

        return self._guard("getRepository", run)

    def list_repositories(self) -> RemoteResult[List[RemoteRepository]]:
        def run() -> List[RemoteRepository]:
            repos = []
            for repo_id in self.contract.functions.getAllRepoIds().call():
                repos.append(self.get_repository(repo_id).unwrap())
            return repos

        return self._guard("getAllRepoIds", run)


def connect_ledger(config: Any) -> LedgerClient:
    """
    Build a LedgerClient from a UserConfig.

    Raises:
        ConfigurationMissingError: If no private key or contract address is configured
    """
    preset = get_network(config.network)
    rpc_url = config.rpc_url or preset.rpc_url
    address = config.contract_address or preset.contract_address
    private_key: Optional[str] = config.resolved_private_key()
    if not private_key:
        raise ConfigurationMissingError("No private key configured")
    if not address:
        raise ConfigurationMissingError(
            f"No contract address configured for {preset.display_name}",
            remediation="Set one with 'bvc config --contract-address <address>'.",
        )

    w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": config.request_timeout}))
    account = Account.from_key(private_key)
    contract = w3.eth.contract(address=Web3.to_checksum_address(address), abi=BVC_ABI)
    sender = Web3TransactionSender(w3, account, preset.chain_id)
    logger.debug("Ledger client for %s at %s (account %s)", preset.name, rpc_url, account.address)
    return LedgerClient(contract, sender, account.address)
