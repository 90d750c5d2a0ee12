"""Position source protocol — per-chain position reads."""
from typing import Protocol, Sequence

from ..models import Position


class PositionSource(Protocol):
    """Abstract interface for reading lending positions across chains.

    Chains without a position are omitted from the result.
    """

    def fetch_positions(
        self, chain_ids: Sequence[int] | None, owner: str
    ) -> list[Position]: ...
