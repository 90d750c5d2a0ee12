"""Pure parsing functions for position snapshot records — no I/O."""
from __future__ import annotations

from typing import Any

from ..engine.health import implied_risk_ratio
from ..fixed_point import FixedPointScales, parse_units
from ..models import Position


def parse_amount(raw: Any, decimals: int) -> int:
    """Convert a snapshot field to a fixed-point integer.

    Integers are already raw on-chain values; strings are human decimals.

    Examples:
        parse_amount(8000, 4) → 8000
        parse_amount("0.8", 4) → 8000
        parse_amount("1000.5", 8) → 100050000000
    """
    if isinstance(raw, bool):
        raise TypeError(f"Boolean is not an amount: {raw!r}")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        return parse_units(raw, decimals)
    raise TypeError(f"Unsupported amount {raw!r} ({type(raw).__name__}); quote decimals")


def parse_position_record(
    record: dict[str, Any],
    scales: FixedPointScales,
    default_owner: str = "",
) -> Position:
    """Build a ``Position`` from one snapshot record.

    A missing ``risk_ratio`` is derived from collateral, debt and threshold.
    """
    chain_id = int(record["chain_id"])
    collateral = parse_amount(record.get("total_collateral_base", 0), scales.base_decimals)
    debt = parse_amount(record.get("total_debt_base", 0), scales.base_decimals)
    threshold = parse_amount(
        record.get("current_liquidation_threshold", 0), scales.threshold_decimals
    )

    if record.get("risk_ratio") is None:
        risk_ratio = implied_risk_ratio(collateral, debt, threshold, scales)
    else:
        risk_ratio = parse_amount(record["risk_ratio"], scales.ratio_decimals)

    return Position(
        chain_id=chain_id,
        total_collateral_base=collateral,
        total_debt_base=debt,
        current_liquidation_threshold=threshold,
        risk_ratio=risk_ratio,
        owner_address=str(record.get("owner", default_owner) or ""),
        available_borrows_base=parse_amount(
            record.get("available_borrows_base", 0), scales.base_decimals
        ),
        ltv=parse_amount(record.get("ltv", 0), scales.threshold_decimals),
    )


def owner_matches(record_owner: str, owner: str) -> bool:
    """Addresses compare case-insensitively; an empty filter matches anything."""
    return not owner or record_owner.lower() == owner.lower()
