"""Turn chain-level withdraw/supply targets into linked transfer instructions.

The execution layer lets each chain issue only one outbound transfer per
batch. A source that has to fund several destinations therefore sends its
whole withdrawal to the first (worst-ratio) destination; every hop keeps
its share and forwards the rest to the next destination::

    A --30--> B (keeps 10) --20--> C (keeps 20)

Greedy matching walks destinations worst-first and sources most-buffer-first,
so each source serves a contiguous run of destinations and consecutive
sources share at most one boundary destination. A destination is therefore
an intermediate hop of at most one chain and forwards at most once.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..models import DistributionPlan, TransferChain, TransferHop, TransferPlan

logger = logging.getLogger(__name__)

RoutablePredicate = Callable[[int], bool]


@dataclass(frozen=True)
class MatchedLeg:
    """Direct source → destination pairing before chaining."""

    source_chain_id: int
    destination_chain_id: int
    amount: int


def _always_routable(chain_id: int) -> bool:
    return True


def match_legs(
    plan: DistributionPlan,
    is_routable: Optional[RoutablePredicate] = None,
) -> tuple[MatchedLeg, ...]:
    """Greedy source/destination pairing.

    Chains rejected by ``is_routable`` take no part; their share shows up as
    unrouted collateral rather than failing the plan.
    """
    routable = is_routable or _always_routable

    sources = [cid for cid in plan.source_order if cid in plan.withdrawals]
    destinations = [cid for cid in plan.destination_order if cid in plan.supplies]
    for chain_id in sources + destinations:
        if not routable(chain_id):
            logger.warning("Chain %s is not routable, skipping its transfers", chain_id)

    remaining = {cid: plan.withdrawals.get(cid) for cid in sources if routable(cid)}
    legs: list[MatchedLeg] = []

    for destination in destinations:
        if not routable(destination):
            continue
        need = plan.supplies.get(destination)
        for source, available in remaining.items():
            if need == 0:
                break
            if source == destination or available == 0:
                continue
            amount = min(available, need)
            legs.append(MatchedLeg(source, destination, amount))
            remaining[source] = available - amount
            need -= amount

    return tuple(legs)


def chain_legs(
    legs: tuple[MatchedLeg, ...], source_order: tuple[int, ...]
) -> tuple[TransferChain, ...]:
    """Fold each source's legs into one linked transfer chain."""
    by_source: dict[int, list[MatchedLeg]] = {}
    for leg in legs:
        by_source.setdefault(leg.source_chain_id, []).append(leg)

    rank = {cid: i for i, cid in enumerate(source_order)}
    chains: list[TransferChain] = []
    for source in sorted(by_source, key=lambda cid: (rank.get(cid, len(rank)), cid)):
        source_legs = by_source[source]
        carried = sum(leg.amount for leg in source_legs)
        total = carried
        hops: list[TransferHop] = []
        for leg in source_legs:
            hops.append(TransferHop(leg.destination_chain_id, carried, leg.amount))
            carried -= leg.amount
        chains.append(TransferChain(source, total, tuple(hops)))
    return tuple(chains)


def match_transfers(
    plan: DistributionPlan,
    is_routable: Optional[RoutablePredicate] = None,
) -> TransferPlan:
    """Build the ordered transfer plan for a distribution plan."""
    if plan.is_empty:
        return TransferPlan()

    legs = match_legs(plan, is_routable)
    chains = chain_legs(legs, plan.source_order)
    matched = sum(leg.amount for leg in legs)
    unrouted = plan.supplies.total - matched

    if unrouted:
        logger.warning("%d units of supply could not be routed", unrouted)
    logger.debug("Matched %d legs into %d transfer chains", len(legs), len(chains))

    return TransferPlan(chains=chains, unrouted=unrouted)
