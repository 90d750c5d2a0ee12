"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Callable

import pytest

from rebalancer.config import AppConfig, PolicyConfig, StatusConfig
from rebalancer.engine.health import implied_risk_ratio
from rebalancer.models import Position

RATIO_ONE = 10**18
MIN_RATIO = 12 * 10**17

# Chain ids used across tests
OPTIMISM = 10
BASE = 8453
ARBITRUM = 42161
ETHEREUM = 1


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


PositionFactory = Callable[..., Position]


@pytest.fixture()
def make_position() -> PositionFactory:
    """Build a Position from raw amounts; the risk ratio defaults to the implied one."""

    def _make(
        chain_id: int,
        collateral: int,
        debt: int = 0,
        threshold: int = 8000,
        risk_ratio: int | None = None,
        owner: str = "0xOWNER",
    ) -> Position:
        if risk_ratio is None:
            risk_ratio = implied_risk_ratio(collateral, debt, threshold)
        return Position(
            chain_id=chain_id,
            total_collateral_base=collateral,
            total_debt_base=debt,
            current_liquidation_threshold=threshold,
            risk_ratio=risk_ratio,
            owner_address=owner,
        )

    return _make


@pytest.fixture()
def policy() -> PolicyConfig:
    return PolicyConfig(min_ratio=MIN_RATIO)


@pytest.fixture()
def sample_app_config(policy: PolicyConfig) -> AppConfig:
    return AppConfig(
        policy=policy,
        status=StatusConfig(),
        account="0xOWNER",
        chains={BASE: "Base"},
    )


@pytest.fixture()
def two_chain_deficit(make_position: PositionFactory) -> list[Position]:
    """Debt-free chain with 1000 and an undercollateralised chain (100 / 90 @ 80%)."""
    return [
        make_position(OPTIMISM, collateral=1000),
        make_position(BASE, collateral=100, debt=90),
    ]


@pytest.fixture()
def shortfall_positions(make_position: PositionFactory) -> list[Position]:
    """Two chains each needing 100 against a single chain that can spare 50."""
    return [
        make_position(OPTIMISM, collateral=100),
        make_position(BASE, collateral=50, debt=100),  # ratio 0.4
        make_position(ARBITRUM, collateral=200, debt=200),  # ratio 0.8
    ]


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    account: "0xOWNER"
    chain_ids: [10, 8453]
    policy:
      min_ratio: "1.2"
      target_ratio: "1.5"
      debt_free_withdraw_bps: 4000
      scales:
        base_decimals: 8
        threshold_decimals: 4
        ratio_decimals: 18
    status:
      warning_ratio: "1.5"
      healthy_ratio: "2"
    chains:
      8453: "Base Mainnet"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Snapshot YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_SNAPSHOT = textwrap.dedent("""\
    owner: "0xOWNER"
    positions:
      - chain_id: 10
        total_collateral_base: 1000
        total_debt_base: 0
        current_liquidation_threshold: 8000
      - chain_id: 8453
        total_collateral_base: 100
        total_debt_base: 90
        current_liquidation_threshold: 8000
""")


@pytest.fixture()
def sample_snapshot_path(tmp_path: Path) -> Path:
    snapshot = tmp_path / "snapshot.yaml"
    snapshot.write_text(SAMPLE_SNAPSHOT)
    return snapshot
