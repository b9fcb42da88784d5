"""
BVC CLI - Blockchain Version Control

Commands:
- bvc init/add/commit/status/log - Local repository
- bvc checkpoint - Batch commits into one ledger transaction
- bvc push/pull/clone/list - Ledger synchronization
- bvc revert - Restore a recorded commit
- bvc config - Credentials and endpoints
"""

from bvc import __version__

__all__ = ["__version__"]
