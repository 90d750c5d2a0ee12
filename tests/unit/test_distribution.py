"""Unit tests for the chain-level distribution optimizer."""
from __future__ import annotations

import pytest

from rebalancer.config import PolicyConfig
from rebalancer.engine.distribution import (
    DistributionStages,
    allocate_supplies,
    assess_available,
    assess_needs,
    draw_withdrawals,
    optimize_distribution,
)
from rebalancer.engine.planner import classify
from rebalancer.models import ChainAmounts

OPTIMISM = 10
BASE = 8453
ARBITRUM = 42161
ETHEREUM = 1
MIN_RATIO = 12 * 10**17


@pytest.fixture()
def multi_source_positions(make_position) -> list:
    """Three sources with different buffers, one chain needing 1400."""
    return [
        make_position(ETHEREUM, 1000, 100),  # ratio 8.0, can spare 850
        make_position(OPTIMISM, 2000),  # debt-free, can spare 1000
        make_position(ARBITRUM, 500, 100),  # ratio 4.0, can spare 350
        make_position(BASE, 100, 1000),  # ratio 0.08, needs 1400
    ]


def _split(positions):
    return classify(positions, MIN_RATIO)


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


class TestStages:
    def test_assess_needs(self, two_chain_deficit, policy) -> None:
        _, unhealthy = _split(two_chain_deficit)
        assert assess_needs(unhealthy, policy).as_dict() == {BASE: 35}

    def test_assess_needs_sums_per_chain(self, make_position, policy) -> None:
        unhealthy = [make_position(BASE, 100, 90), make_position(BASE, 100, 90)]
        assert assess_needs(unhealthy, policy).as_dict() == {BASE: 70}

    def test_assess_available(self, two_chain_deficit, policy) -> None:
        healthy, _ = _split(two_chain_deficit)
        assert assess_available(healthy, policy).as_dict() == {OPTIMISM: 500}

    def test_assess_available_uses_policy_share(self, two_chain_deficit) -> None:
        healthy, _ = _split(two_chain_deficit)
        policy = PolicyConfig(min_ratio=MIN_RATIO, debt_free_withdraw_bps=1000)
        assert assess_available(healthy, policy).as_dict() == {OPTIMISM: 100}

    def test_allocate_sufficient_is_full_need(self) -> None:
        stages = DistributionStages(
            needs_by_chain=ChainAmounts.from_pairs([(1, 10), (2, 0), (3, 5)]),
            available_by_chain=ChainAmounts.from_pairs([(9, 100)]),
        )
        assert allocate_supplies(stages, (3, 2, 1)).as_dict() == {1: 10, 3: 5}

    def test_allocate_shortfall_is_proportional(self) -> None:
        stages = DistributionStages(
            needs_by_chain=ChainAmounts.from_pairs([(1, 30), (2, 10)]),
            available_by_chain=ChainAmounts.from_pairs([(9, 20)]),
        )
        assert allocate_supplies(stages, (1, 2)).as_dict() == {1: 15, 2: 5}

    def test_allocate_shortfall_drops_zero_allocations(self) -> None:
        stages = DistributionStages(
            needs_by_chain=ChainAmounts.from_pairs([(1, 1), (2, 1000)]),
            available_by_chain=ChainAmounts.from_pairs([(9, 10)]),
        )
        assert allocate_supplies(stages, (1, 2)).as_dict() == {2: 9}

    def test_draw_withdrawals_in_order(self) -> None:
        available = ChainAmounts.from_pairs([(1, 50), (2, 30), (3, 40)])
        drawn = draw_withdrawals(available, (2, 3, 1), 60)
        assert drawn.as_dict() == {2: 30, 3: 30}

    def test_draw_withdrawals_capped(self) -> None:
        available = ChainAmounts.from_pairs([(1, 5)])
        assert draw_withdrawals(available, (1,), 60).as_dict() == {1: 5}

    def test_stages_are_immutable(self) -> None:
        stages = DistributionStages(ChainAmounts(), ChainAmounts())
        with pytest.raises(AttributeError):
            stages.needs_by_chain = ChainAmounts()  # type: ignore[misc]


# ---------------------------------------------------------------------------
# optimize_distribution
# ---------------------------------------------------------------------------


class TestSufficientCase:
    def test_two_chain_deficit(self, two_chain_deficit, policy) -> None:
        healthy, unhealthy = _split(two_chain_deficit)
        plan = optimize_distribution(healthy, unhealthy, policy)
        assert plan.supplies.as_dict() == {BASE: 35}
        assert plan.withdrawals.as_dict() == {OPTIMISM: 35}
        assert plan.total_needed == 35
        assert plan.total_available == 500
        assert not plan.shortfall

    def test_sources_drained_most_buffer_first(
        self, multi_source_positions, policy
    ) -> None:
        healthy, unhealthy = _split(multi_source_positions)
        plan = optimize_distribution(healthy, unhealthy, policy)
        assert plan.source_order == (ETHEREUM, ARBITRUM, OPTIMISM)
        assert plan.withdrawals.as_dict() == {ETHEREUM: 850, ARBITRUM: 350, OPTIMISM: 200}

    def test_conservation(self, multi_source_positions, policy) -> None:
        healthy, unhealthy = _split(multi_source_positions)
        plan = optimize_distribution(healthy, unhealthy, policy)
        assert plan.supplies.total == plan.total_needed == 1400
        assert plan.withdrawals.total == plan.total_needed

    def test_target_ratio_drives_supply(self, two_chain_deficit) -> None:
        policy = PolicyConfig(min_ratio=MIN_RATIO, target_ratio=2 * 10**18)
        healthy, unhealthy = _split(two_chain_deficit)
        plan = optimize_distribution(healthy, unhealthy, policy)
        assert plan.supplies.as_dict() == {BASE: 125}
        assert plan.withdrawals.as_dict() == {OPTIMISM: 125}


class TestShortfallCase:
    def test_proportional_cut(self, shortfall_positions, policy) -> None:
        healthy, unhealthy = _split(shortfall_positions)
        plan = optimize_distribution(healthy, unhealthy, policy)
        assert plan.shortfall
        assert plan.total_needed == 200
        assert plan.total_available == 50
        assert plan.supplies.as_dict() == {BASE: 25, ARBITRUM: 25}
        assert plan.withdrawals.as_dict() == {OPTIMISM: 50}
        assert plan.destination_order == (BASE, ARBITRUM)

    def test_rounding_loss_bounded(self, make_position, policy) -> None:
        positions = [
            make_position(OPTIMISM, 200),  # spares 100
            make_position(1, 50, 100),
            make_position(2, 50, 100),
            make_position(3, 50, 100),
        ]
        healthy, unhealthy = _split(positions)
        plan = optimize_distribution(healthy, unhealthy, policy)
        assert plan.supplies.as_dict() == {1: 33, 2: 33, 3: 33}
        assert plan.supplies.total <= plan.total_available
        assert plan.total_available - plan.supplies.total <= len(unhealthy) - 1
        assert plan.withdrawals.total <= plan.total_available

    def test_nothing_available(self, make_position, policy) -> None:
        positions = [make_position(OPTIMISM, 150, 100), make_position(BASE, 100, 90)]
        healthy, unhealthy = _split(positions)
        plan = optimize_distribution(healthy, unhealthy, policy)
        assert plan.shortfall
        assert plan.is_empty


class TestEmptyInputs:
    def test_no_unhealthy(self, make_position, policy) -> None:
        plan = optimize_distribution([make_position(1, 100)], [], policy)
        assert plan.is_empty
        assert plan.total_needed == 0

    def test_no_healthy(self, make_position, policy) -> None:
        plan = optimize_distribution([], [make_position(1, 100, 90)], policy)
        assert plan.is_empty
