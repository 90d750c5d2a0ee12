"""Human-readable rendering of positions and plans."""
from __future__ import annotations

from typing import Sequence

from .chains import chain_name
from .config import AppConfig
from .engine.health import health_status
from .fixed_point import format_units
from .models import HealthStatus, LocalRepair, Position, RebalanceResult

_STATUS_LABELS = {
    HealthStatus.HEALTHY: "✅ Healthy",
    HealthStatus.WARNING: "⚠️ WARNING",
    HealthStatus.CRITICAL: "🚨 CRITICAL",
}


class ReportFormatter:
    """Formats amounts at the configured scales and names chains."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._scales = config.policy.scales

    def name(self, chain_id: int) -> str:
        return f"{chain_name(chain_id, self._config.chains)} ({chain_id})"

    def usd(self, amount: int) -> str:
        return "$" + format_units(amount, self._scales.base_decimals)

    def ratio(self, value: int) -> str:
        if value == 0:
            return "∞ (no debt)"
        return format_units(value, self._scales.ratio_decimals)

    def positions(self, positions: Sequence[Position]) -> str:
        if not positions:
            return "No positions found"
        lines = []
        for p in sorted(positions, key=lambda p: p.chain_id):
            status = health_status(p, self._config.status)
            lines.append(
                f"{self.name(p.chain_id)}: {_STATUS_LABELS[status]}\n"
                f"  Collateral: {self.usd(p.total_collateral_base)}"
                f" · Debt: {self.usd(p.total_debt_base)}\n"
                f"  Risk ratio: {self.ratio(p.risk_ratio)}"
                f" · Liquidation threshold: "
                f"{format_units(p.current_liquidation_threshold * 100, self._scales.threshold_decimals)}%"
            )
        return "\n".join(lines)

    def plan(self, result: RebalanceResult) -> str:
        lines = [f"Status: {result.status.value}"]
        if not result.status.actionable:
            return "\n".join(lines)

        dist = result.distribution
        lines.append(
            f"Needed: {self.usd(dist.total_needed)} · Available: {self.usd(dist.total_available)}"
        )
        lines.append("Withdrawals:")
        for chain_id, amount in dist.withdrawals:
            lines.append(f"  - {self.name(chain_id)}: {self.usd(amount)}")
        lines.append("Supplies:")
        for chain_id, amount in dist.supplies:
            lines.append(f"  - {self.name(chain_id)}: {self.usd(amount)}")

        lines.append("Transfers:")
        for ins in result.transfers.instructions:
            lines.append(
                f"  - {self.name(ins.source_chain_id)} → "
                f"{self.name(ins.destination_chain_id)}: {self.usd(ins.amount)}"
            )
        if result.transfers.unrouted:
            lines.append(f"Unrouted: {self.usd(result.transfers.unrouted)}")
        return "\n".join(lines)

    def repairs(self, repairs: Sequence[LocalRepair]) -> str:
        if not repairs:
            return "No unhealthy positions"
        return "\n".join(
            f"{self.name(r.chain_id)} (ratio {self.ratio(r.risk_ratio)}): "
            f"repay {self.usd(r.repay_amount)} or supply {self.usd(r.additional_collateral)}"
            for r in repairs
        )
