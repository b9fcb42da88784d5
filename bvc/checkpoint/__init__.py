"""
Checkpoint batching.

This module provides:
- CheckpointBatcher: one ledger transaction for a range of commits
- Bundle codec: canonical JSON bundles of files
- estimate_cost: dry-run gas comparison
"""

from .batcher import (
    SOURCES,
    SOURCE_COMMITS,
    SOURCE_WORKING_TREE,
    CheckpointBatcher,
    CheckpointOptions,
    CheckpointOutcome,
    latest_snapshots,
    select_range,
)
from .bundle import (
    BundleFile,
    ExtractReport,
    bundle_entry,
    bundle_from_paths,
    bundle_from_snapshots,
    encode_bundle,
    extract_bundle,
    read_bundle,
)
from .estimate import GAS_PER_CHECKPOINT, GAS_PER_COMMIT, CostEstimate, estimate_cost

__all__ = [
    "SOURCES",
    "SOURCE_COMMITS",
    "SOURCE_WORKING_TREE",
    "CheckpointBatcher",
    "CheckpointOptions",
    "CheckpointOutcome",
    "latest_snapshots",
    "select_range",
    "BundleFile",
    "ExtractReport",
    "bundle_entry",
    "bundle_from_paths",
    "bundle_from_snapshots",
    "encode_bundle",
    "extract_bundle",
    "read_bundle",
    "GAS_PER_CHECKPOINT",
    "GAS_PER_COMMIT",
    "CostEstimate",
    "estimate_cost",
]
