"""
Exception types for the version control engine.

Every error carries a remediation line that the CLI prints under the
diagnosis.
"""

from typing import Optional


class BvcError(Exception):
    """Base class for all expected, user-facing failures."""

    remediation = "Run 'bvc --help' for usage."

    def __init__(self, message: str, remediation: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if remediation is not None:
            self.remediation = remediation


class NotFoundError(BvcError):
    """Raised when a local file or repository does not exist."""

    remediation = "Check the path and try again."


class NotARepositoryError(NotFoundError):
    """Raised when no .bvc directory is found."""

    remediation = "Run 'bvc init <name>' to create a repository, or cd into one."


class EmptyCommitError(BvcError):
    """Raised when there is nothing to commit or checkpoint."""

    remediation = "Stage files first with 'bvc add <paths>' and commit them."


class CommitNotFoundError(BvcError):
    """Raised when a commit id (or prefix) does not resolve."""

    remediation = "Run 'bvc log' to list available commit ids."


class InvalidRangeError(BvcError):
    """Raised when a checkpoint range starts after it ends."""

    remediation = "Pass an older commit to --from than to --to."


class RemoteUnavailableError(BvcError):
    """Raised when the ledger RPC endpoint or content store cannot be reached."""

    remediation = (
        "Check your network connection and 'bvc config --show'; "
        "start the IPFS daemon with 'ipfs daemon' if it is not running."
    )


class UnauthorizedError(BvcError):
    """Raised when the ledger rejects the caller as not the repository owner."""

    remediation = "Configure the private key of the repository owner with 'bvc config --private-key <key>'."


class ConfigurationMissingError(BvcError):
    """Raised when a required credential or endpoint is absent."""

    remediation = "Run 'bvc config --setup'."


class ConfigurationError(BvcError):
    """Raised when local state or configuration is inconsistent."""

    remediation = "Run 'bvc config --check' to inspect the configuration."


class RemoteCallError(BvcError):
    """Raised when the ledger rejects a call for a reason other than ownership."""

    remediation = "Inspect the transaction on a block explorer, or rerun with --debug."


class ContentNotRetrievableError(BvcError):
    """Raised when downloading a simulated (development-only) content id."""

    remediation = "Re-upload with a running IPFS node; simulated ids never reach the network."


class IntegrityError(BvcError):
    """Raised when content does not match its recorded digest."""

    remediation = "Fetch the content again, or rerun without --verify to inspect it."
