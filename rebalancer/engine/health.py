"""Pure per-position health calculations — no I/O, integers only.

Risk ratio formula used throughout (Aave v3 health factor)::

    ratio = collateral * threshold * 10^(ratio_dec - threshold_dec) / debt

Collateral and debt share the base unit, so only the threshold needs
rescaling to reach ratio precision.
"""
from __future__ import annotations

import logging

from ..config import StatusConfig
from ..fixed_point import (
    BPS_DENOMINATOR,
    DEFAULT_SCALES,
    FixedPointScales,
    bps_of,
    mul_div,
    saturating_sub,
)
from ..models import HealthStatus, Position

logger = logging.getLogger(__name__)

DEFAULT_DEBT_FREE_WITHDRAW_BPS = BPS_DENOMINATOR // 2


def scaled_threshold(position: Position, scales: FixedPointScales = DEFAULT_SCALES) -> int:
    """Liquidation threshold rescaled to ratio precision."""
    return position.current_liquidation_threshold * scales.threshold_factor


def implied_risk_ratio(
    collateral: int,
    debt: int,
    threshold: int,
    scales: FixedPointScales = DEFAULT_SCALES,
) -> int:
    """Health factor implied by raw amounts; ``0`` (sentinel) when there is no debt.

    With debt the result is at least 1, so a worthless position never reads
    as debt-free.
    """
    if debt == 0:
        return 0
    return max(1, mul_div(collateral, threshold * scales.threshold_factor, debt))


def is_unhealthy(position: Position, threshold_ratio: int) -> bool:
    """True when the position has debt and its ratio is below ``threshold_ratio``."""
    if not position.has_debt:
        return False
    return position.risk_ratio < threshold_ratio


def repay_amount_for(
    position: Position,
    target_ratio: int,
    scales: FixedPointScales = DEFAULT_SCALES,
) -> int:
    """Debt to retire so the position reaches ``target_ratio``.

    repay = debt - collateral * threshold_scaled / target_ratio, clamped at 0.
    """
    if not position.has_debt:
        return 0
    sustainable_debt = mul_div(
        position.total_collateral_base, scaled_threshold(position, scales), target_ratio
    )
    return saturating_sub(position.total_debt_base, sustainable_debt)


def additional_collateral_for(
    position: Position,
    target_ratio: int,
    scales: FixedPointScales = DEFAULT_SCALES,
) -> int:
    """Collateral (base units) to add so the position reaches ``target_ratio``.

    Returns 0 for a zero liquidation threshold.
    """
    if not position.has_debt:
        return 0
    threshold = scaled_threshold(position, scales)
    if threshold == 0:
        logger.debug("Chain %s has zero liquidation threshold", position.chain_id)
        return 0
    target_collateral = mul_div(target_ratio, position.total_debt_base, threshold)
    return saturating_sub(target_collateral, position.total_collateral_base)


def max_withdrawable_for(
    position: Position,
    min_ratio: int,
    scales: FixedPointScales = DEFAULT_SCALES,
    debt_free_withdraw_bps: int = DEFAULT_DEBT_FREE_WITHDRAW_BPS,
) -> int:
    """Collateral that can leave the position while keeping it at ``min_ratio``.

    Debt-free positions release only ``debt_free_withdraw_bps`` of their
    collateral (half by default). A zero threshold makes any withdrawal
    unsafe, so the result is 0.
    """
    if not position.has_debt:
        return bps_of(position.total_collateral_base, debt_free_withdraw_bps)
    threshold = scaled_threshold(position, scales)
    if threshold == 0:
        return 0
    min_collateral = mul_div(min_ratio, position.total_debt_base, threshold)
    return saturating_sub(position.total_collateral_base, min_collateral)


def health_status(position: Position, status: StatusConfig) -> HealthStatus:
    """Bucket a position for display: no debt counts as healthy."""
    if not position.has_debt or position.risk_ratio >= status.healthy_ratio:
        return HealthStatus.HEALTHY
    if position.risk_ratio >= status.warning_ratio:
        return HealthStatus.WARNING
    return HealthStatus.CRITICAL
