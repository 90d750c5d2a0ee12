"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator


@dataclass(frozen=True)
class Position:
    """Snapshot of one lending position on one chain.

    Amounts are raw fixed-point integers exactly as the lending pool reports
    them. ``risk_ratio == 0`` is the no-debt sentinel, not a zero ratio.
    """

    chain_id: int
    total_collateral_base: int
    total_debt_base: int
    current_liquidation_threshold: int
    risk_ratio: int
    owner_address: str = ""
    available_borrows_base: int = 0
    ltv: int = 0

    def __post_init__(self) -> None:
        for name in (
            "total_collateral_base",
            "total_debt_base",
            "current_liquidation_threshold",
            "risk_ratio",
            "available_borrows_base",
            "ltv",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"Position on chain {self.chain_id}: {name} is negative")
        if (self.risk_ratio == 0) != (self.total_debt_base == 0):
            raise ValueError(
                f"Position on chain {self.chain_id}: risk_ratio sentinel "
                f"({self.risk_ratio}) disagrees with debt ({self.total_debt_base})"
            )

    @property
    def has_debt(self) -> bool:
        return self.risk_ratio != 0


@dataclass(frozen=True)
class ChainAmounts:
    """Ordered ``chain_id → amount`` association, sorted by chain id.

    Every transformation returns a new instance, so each optimizer stage is a
    snapshot that can be inspected on its own.
    """

    entries: tuple[tuple[int, int], ...] = ()

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[int, int]]) -> ChainAmounts:
        """Build from ``(chain_id, amount)`` pairs, summing duplicate chains."""
        totals: dict[int, int] = {}
        for chain_id, amount in pairs:
            if amount < 0:
                raise ValueError(f"Negative amount {amount} for chain {chain_id}")
            totals[chain_id] = totals.get(chain_id, 0) + amount
        return cls(tuple(sorted(totals.items())))

    def get(self, chain_id: int, default: int = 0) -> int:
        for cid, amount in self.entries:
            if cid == chain_id:
                return amount
        return default

    def nonzero(self) -> ChainAmounts:
        return ChainAmounts(tuple((cid, amt) for cid, amt in self.entries if amt > 0))

    @property
    def total(self) -> int:
        return sum(amount for _, amount in self.entries)

    def chain_ids(self) -> tuple[int, ...]:
        return tuple(cid for cid, _ in self.entries)

    def as_dict(self) -> dict[int, int]:
        return dict(self.entries)

    def __contains__(self, chain_id: object) -> bool:
        return any(cid == chain_id for cid, _ in self.entries)

    def __iter__(self) -> Iterator[tuple[int, int]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class DistributionPlan:
    """Chain-level withdraw/supply targets produced by the optimizer.

    ``source_order`` and ``destination_order`` carry the priority in which
    healthy chains give and unhealthy chains receive collateral.
    """

    withdrawals: ChainAmounts = field(default_factory=ChainAmounts)
    supplies: ChainAmounts = field(default_factory=ChainAmounts)
    total_needed: int = 0
    total_available: int = 0
    source_order: tuple[int, ...] = ()
    destination_order: tuple[int, ...] = ()

    @property
    def shortfall(self) -> bool:
        return self.total_available < self.total_needed

    @property
    def is_empty(self) -> bool:
        return not self.withdrawals and not self.supplies


@dataclass(frozen=True)
class TransferInstruction:
    """One outbound cross-chain transfer."""

    source_chain_id: int
    destination_chain_id: int
    amount: int

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValueError(f"Transfer amount must be positive, got {self.amount}")
        if self.source_chain_id == self.destination_chain_id:
            raise ValueError(f"Transfer from chain {self.source_chain_id} to itself")


@dataclass(frozen=True)
class TransferHop:
    """A destination visited by a transfer chain.

    ``forwarded == received - consumed``; the last hop forwards nothing.
    """

    chain_id: int
    received: int
    consumed: int

    @property
    def forwarded(self) -> int:
        return self.received - self.consumed


@dataclass(frozen=True)
class TransferChain:
    """Linked transfers that route one source's withdrawal through its destinations."""

    source_chain_id: int
    amount: int
    hops: tuple[TransferHop, ...]

    def instructions(self) -> tuple[TransferInstruction, ...]:
        result: list[TransferInstruction] = []
        previous = self.source_chain_id
        for hop in self.hops:
            result.append(TransferInstruction(previous, hop.chain_id, hop.received))
            previous = hop.chain_id
        return tuple(result)


@dataclass(frozen=True)
class TransferPlan:
    """Ordered transfer instructions, grouped by originating source."""

    chains: tuple[TransferChain, ...] = ()
    unrouted: int = 0

    @property
    def instructions(self) -> tuple[TransferInstruction, ...]:
        return tuple(ins for chain in self.chains for ins in chain.instructions())

    @property
    def total_transferred(self) -> int:
        """Collateral leaving healthy sources (forwarded hops are not double counted)."""
        return sum(chain.amount for chain in self.chains)

    def consumed_by_destination(self) -> ChainAmounts:
        return ChainAmounts.from_pairs(
            (hop.chain_id, hop.consumed) for chain in self.chains for hop in chain.hops
        )


class RebalanceStatus(str, Enum):
    READY = "ready"
    INSUFFICIENT_AGGREGATE_COLLATERAL = "insufficient_aggregate_collateral"
    NO_UNHEALTHY_POSITIONS = "no_unhealthy_positions"
    NO_HEALTHY_POSITIONS = "no_healthy_positions"

    @property
    def actionable(self) -> bool:
        return self in (
            RebalanceStatus.READY,
            RebalanceStatus.INSUFFICIENT_AGGREGATE_COLLATERAL,
        )


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


class BatchStatus(str, Enum):
    """Per-chain batch outcome reported by the executor."""

    PENDING = "pending"
    DONE = "done"
    REVERTED = "reverted"


@dataclass(frozen=True)
class RebalanceResult:
    """Everything a rebalance invocation produced."""

    status: RebalanceStatus
    distribution: DistributionPlan = field(default_factory=DistributionPlan)
    transfers: TransferPlan = field(default_factory=TransferPlan)
    unhealthy: tuple[Position, ...] = ()
    healthy: tuple[Position, ...] = ()


@dataclass(frozen=True)
class LocalRepair:
    """Single-chain fix for one unhealthy position."""

    chain_id: int
    repay_amount: int
    additional_collateral: int
    risk_ratio: int
