"""Chain-level collateral distribution between healthy and unhealthy positions.

Each stage is a pure function returning a fresh ``ChainAmounts`` snapshot:

1. ``assess_needs``      — collateral each unhealthy chain needs
2. ``assess_available``  — collateral each healthy chain can spare
3. ``allocate_supplies`` — what each unhealthy chain actually receives
4. ``draw_withdrawals``  — what each healthy chain actually gives

When aggregate demand exceeds supply, every destination gets
``floor(needed * total_available / total_needed)``. Floor division never
over-allocates; the rounding loss is below one unit per destination.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from ..config import PolicyConfig
from ..fixed_point import mul_div
from ..models import ChainAmounts, DistributionPlan, Position
from . import health, ordering

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DistributionStages:
    """Aggregated inputs the allocation is computed from."""

    needs_by_chain: ChainAmounts
    available_by_chain: ChainAmounts

    @property
    def total_needed(self) -> int:
        return self.needs_by_chain.total

    @property
    def total_available(self) -> int:
        return self.available_by_chain.total

    @property
    def shortfall(self) -> bool:
        return self.total_available < self.total_needed


def assess_needs(unhealthy: Sequence[Position], policy: PolicyConfig) -> ChainAmounts:
    return ChainAmounts.from_pairs(
        (
            p.chain_id,
            health.additional_collateral_for(
                p, policy.supply_target_ratio, policy.scales
            ),
        )
        for p in unhealthy
    )


def assess_available(healthy: Sequence[Position], policy: PolicyConfig) -> ChainAmounts:
    return ChainAmounts.from_pairs(
        (
            p.chain_id,
            health.max_withdrawable_for(
                p, policy.min_ratio, policy.scales, policy.debt_free_withdraw_bps
            ),
        )
        for p in healthy
    )


def allocate_supplies(
    stages: DistributionStages, destination_order: Sequence[int]
) -> ChainAmounts:
    """Supply per unhealthy chain: full need, or a proportional cut on shortfall."""
    needs = stages.needs_by_chain
    if not stages.shortfall:
        return needs.nonzero()

    total_needed = stages.total_needed
    total_available = stages.total_available
    pairs: list[tuple[int, int]] = []
    for chain_id in destination_order:
        needed = needs.get(chain_id)
        if needed == 0:
            continue
        allocation = mul_div(needed, total_available, total_needed)
        if allocation > 0:
            pairs.append((chain_id, allocation))
    return ChainAmounts.from_pairs(pairs)


def draw_withdrawals(
    available: ChainAmounts, source_order: Sequence[int], amount: int
) -> ChainAmounts:
    """Take ``amount`` from sources in priority order, each capped at its availability."""
    pairs: list[tuple[int, int]] = []
    remaining = amount
    for chain_id in source_order:
        if remaining == 0:
            break
        capacity = available.get(chain_id)
        if capacity == 0:
            continue
        take = min(capacity, remaining)
        pairs.append((chain_id, take))
        remaining -= take
    return ChainAmounts.from_pairs(pairs)


def optimize_distribution(
    healthy: Sequence[Position],
    unhealthy: Sequence[Position],
    policy: PolicyConfig,
) -> DistributionPlan:
    """Compute withdrawal and supply targets per chain.

    Returns an empty plan when either side is empty; that is a normal
    "nothing to rebalance" outcome, not an error.
    """
    if not healthy or not unhealthy:
        logger.info(
            "Nothing to distribute (%d healthy, %d unhealthy)",
            len(healthy),
            len(unhealthy),
        )
        return DistributionPlan()

    stages = DistributionStages(
        needs_by_chain=assess_needs(unhealthy, policy),
        available_by_chain=assess_available(healthy, policy),
    )
    destination_order = ordering.worst_first(unhealthy)
    source_order = ordering.most_buffer_first(healthy)

    for chain_id, needed in stages.needs_by_chain:
        logger.debug("Chain %s needs %d", chain_id, needed)
    for chain_id, spare in stages.available_by_chain:
        logger.debug("Chain %s can spare %d", chain_id, spare)

    supplies = allocate_supplies(stages, destination_order)
    to_withdraw = stages.total_available if stages.shortfall else stages.total_needed
    withdrawals = draw_withdrawals(stages.available_by_chain, source_order, to_withdraw)

    return DistributionPlan(
        withdrawals=withdrawals,
        supplies=supplies,
        total_needed=stages.total_needed,
        total_available=stages.total_available,
        source_order=source_order,
        destination_order=destination_order,
    )
