"""
Blockchain Version Control engine.

Local, hash-linked commit history under .bvc/, file bundles on IPFS, and
batched checkpoint anchoring on an Ethereum-compatible contract.
"""

__version__ = "1.0.0"
