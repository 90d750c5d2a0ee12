"""Allocation engine — pure functions, no I/O."""
from .distribution import optimize_distribution
from .health import (
    additional_collateral_for,
    implied_risk_ratio,
    is_unhealthy,
    max_withdrawable_for,
    repay_amount_for,
)
from .planner import classify, merge_by_chain, plan_local_repairs, plan_rebalance
from .transfers import match_transfers

__all__ = [
    "additional_collateral_for",
    "classify",
    "implied_risk_ratio",
    "is_unhealthy",
    "match_transfers",
    "max_withdrawable_for",
    "merge_by_chain",
    "optimize_distribution",
    "plan_local_repairs",
    "plan_rebalance",
    "repay_amount_for",
]
