"""
Dry-run cost estimate for checkpoints.

Compares one checkpoint transaction against one transaction per commit.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict

GAS_PER_COMMIT = 120_000
GAS_PER_CHECKPOINT = 180_000
DEFAULT_GAS_PRICE_GWEI = 20.0

_GWEI_PER_ETH = 1_000_000_000


@dataclass(frozen=True)
class CostEstimate:
    commit_count: int
    individual_gas: int
    checkpoint_gas: int
    saved_gas: int
    savings_percent: float
    gas_price_gwei: float
    individual_eth: float
    checkpoint_eth: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def estimate_cost(commit_count: int, gas_price_gwei: float = DEFAULT_GAS_PRICE_GWEI) -> CostEstimate:
    """
    Estimate gas for anchoring commit_count commits.

    A single commit still costs one checkpoint transaction, so savings can be
    negative for very small ranges.
    """
    individual = commit_count * GAS_PER_COMMIT
    checkpoint = GAS_PER_CHECKPOINT if commit_count else 0
    saved = individual - checkpoint
    percent = round(saved / individual * 100, 1) if individual else 0.0
    return CostEstimate(
        commit_count=commit_count,
        individual_gas=individual,
        checkpoint_gas=checkpoint,
        saved_gas=saved,
        savings_percent=percent,
        gas_price_gwei=gas_price_gwei,
        individual_eth=individual * gas_price_gwei / _GWEI_PER_ETH,
        checkpoint_eth=checkpoint * gas_price_gwei / _GWEI_PER_ETH,
    )
