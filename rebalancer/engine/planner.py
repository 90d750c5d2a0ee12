"""Top-level rebalance planning: merge per chain, classify, distribute, match."""
from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from ..config import PolicyConfig
from ..fixed_point import DEFAULT_SCALES, FixedPointScales, mul_div
from ..models import (
    LocalRepair,
    Position,
    RebalanceResult,
    RebalanceStatus,
    TransferPlan,
)
from . import health, ordering
from .distribution import optimize_distribution
from .transfers import RoutablePredicate, match_transfers

logger = logging.getLogger(__name__)


def merge_by_chain(
    positions: Iterable[Position], scales: FixedPointScales = DEFAULT_SCALES
) -> tuple[Position, ...]:
    """Fold several positions on one chain into a single chain-level position.

    Amounts are summed; threshold and LTV are collateral-weighted and the
    risk ratio is recomputed from the combined amounts. Chains with one
    position pass through unchanged. Result is sorted by chain id.
    """
    by_chain: dict[int, list[Position]] = {}
    for position in positions:
        by_chain.setdefault(position.chain_id, []).append(position)

    merged: list[Position] = []
    for chain_id in sorted(by_chain):
        group = by_chain[chain_id]
        if len(group) == 1:
            merged.append(group[0])
            continue

        logger.debug("Merging %d positions on chain %s", len(group), chain_id)
        collateral = sum(p.total_collateral_base for p in group)
        debt = sum(p.total_debt_base for p in group)
        weighted_threshold = sum(
            p.total_collateral_base * p.current_liquidation_threshold for p in group
        )
        weighted_ltv = sum(p.total_collateral_base * p.ltv for p in group)
        if collateral > 0:
            threshold = weighted_threshold // collateral
            ltv = weighted_ltv // collateral
        else:
            threshold = max(p.current_liquidation_threshold for p in group)
            ltv = max(p.ltv for p in group)

        risk_ratio = 0
        if debt > 0:
            risk_ratio = max(1, mul_div(weighted_threshold, scales.threshold_factor, debt))
        merged.append(
            Position(
                chain_id=chain_id,
                total_collateral_base=collateral,
                total_debt_base=debt,
                current_liquidation_threshold=threshold,
                risk_ratio=risk_ratio,
                owner_address=group[0].owner_address,
                available_borrows_base=sum(p.available_borrows_base for p in group),
                ltv=ltv,
            )
        )
    return tuple(merged)


def classify(
    positions: Iterable[Position], min_ratio: int
) -> tuple[tuple[Position, ...], tuple[Position, ...]]:
    """Split positions into ``(healthy, unhealthy)``.

    Healthy positions must also hold collateral; empty positions are neither.
    """
    healthy: list[Position] = []
    unhealthy: list[Position] = []
    for position in positions:
        if health.is_unhealthy(position, min_ratio):
            unhealthy.append(position)
        elif position.total_collateral_base > 0:
            healthy.append(position)
    return tuple(healthy), tuple(unhealthy)


def plan_rebalance(
    positions: Sequence[Position],
    policy: PolicyConfig,
    is_routable: Optional[RoutablePredicate] = None,
) -> RebalanceResult:
    """Compute the full cross-chain rebalance for one snapshot of positions."""
    chain_positions = merge_by_chain(positions, policy.scales)
    healthy, unhealthy = classify(chain_positions, policy.min_ratio)

    if not unhealthy:
        logger.info("No unhealthy positions to rebalance")
        return RebalanceResult(status=RebalanceStatus.NO_UNHEALTHY_POSITIONS)
    if not healthy:
        logger.info("No healthy positions to provide collateral")
        return RebalanceResult(
            status=RebalanceStatus.NO_HEALTHY_POSITIONS, unhealthy=unhealthy
        )

    distribution = optimize_distribution(healthy, unhealthy, policy)

    status = RebalanceStatus.READY
    if distribution.shortfall:
        status = RebalanceStatus.INSUFFICIENT_AGGREGATE_COLLATERAL
        logger.warning(
            "Not enough collateral available. Needed: %d, Available: %d. "
            "Distributing proportionally; not every position will reach the target.",
            distribution.total_needed,
            distribution.total_available,
        )

    transfers = (
        match_transfers(distribution, is_routable)
        if not distribution.is_empty
        else TransferPlan()
    )

    return RebalanceResult(
        status=status,
        distribution=distribution,
        transfers=transfers,
        unhealthy=unhealthy,
        healthy=healthy,
    )


def plan_local_repairs(
    positions: Sequence[Position], policy: PolicyConfig
) -> tuple[LocalRepair, ...]:
    """Per-chain repay / top-up amounts for every unhealthy position, worst first."""
    _, unhealthy = classify(merge_by_chain(positions, policy.scales), policy.min_ratio)
    target = policy.supply_target_ratio
    rank = {cid: i for i, cid in enumerate(ordering.worst_first(unhealthy))}

    repairs = [
        LocalRepair(
            chain_id=p.chain_id,
            repay_amount=health.repay_amount_for(p, target, policy.scales),
            additional_collateral=health.additional_collateral_for(
                p, target, policy.scales
            ),
            risk_ratio=p.risk_ratio,
        )
        for p in unhealthy
    ]
    repairs.sort(key=lambda r: (rank[r.chain_id], r.risk_ratio))
    return tuple(repairs)
