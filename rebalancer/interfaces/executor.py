"""Plan executor protocol — batching, vouchers, signing and submission."""
from typing import Protocol

from ..models import BatchStatus, RebalanceResult


class PlanExecutor(Protocol):
    """Abstract interface for carrying out a rebalance plan on-chain.

    Returns the status of each per-chain batch, keyed by chain id.
    """

    def submit(self, result: RebalanceResult) -> dict[int, BatchStatus]: ...
