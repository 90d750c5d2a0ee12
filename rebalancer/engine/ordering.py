"""Deterministic chain ordering by risk ratio.

The no-debt sentinel (ratio 0) always sorts last, both when picking the
worst positions to receive collateral and when picking the best-buffered
positions to provide it. Equal ratios fall back to ascending chain id.
"""
from __future__ import annotations

from typing import Iterable

from ..models import Position


def chain_ratios(positions: Iterable[Position]) -> dict[int, int]:
    """Ordering ratio per chain: the worst non-sentinel ratio, else the sentinel."""
    ratios: dict[int, int] = {}
    for position in positions:
        current = ratios.get(position.chain_id)
        if current is None or current == 0:
            ratios[position.chain_id] = position.risk_ratio
        elif position.risk_ratio != 0:
            ratios[position.chain_id] = min(current, position.risk_ratio)
    return ratios


def _worst_first_key(item: tuple[int, int]) -> tuple[int, int, int]:
    chain_id, ratio = item
    return (1 if ratio == 0 else 0, ratio, chain_id)


def _most_buffer_first_key(item: tuple[int, int]) -> tuple[int, int, int]:
    chain_id, ratio = item
    return (1 if ratio == 0 else 0, -ratio, chain_id)


def worst_first(positions: Iterable[Position]) -> tuple[int, ...]:
    """Chain ids by ascending ratio (most at risk first)."""
    ratios = chain_ratios(positions)
    return tuple(cid for cid, _ in sorted(ratios.items(), key=_worst_first_key))


def most_buffer_first(positions: Iterable[Position]) -> tuple[int, ...]:
    """Chain ids by descending ratio; debt-free chains are the last resort."""
    ratios = chain_ratios(positions)
    return tuple(cid for cid, _ in sorted(ratios.items(), key=_most_buffer_first_key))
