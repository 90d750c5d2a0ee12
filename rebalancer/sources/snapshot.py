"""File-backed position source — reads a YAML snapshot of on-chain positions."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Sequence

import yaml

from ..fixed_point import DEFAULT_SCALES, FixedPointScales
from ..models import Position
from . import parser

logger = logging.getLogger(__name__)


class SnapshotPositionSource:
    """Serve positions from a YAML snapshot file.

    Expected layout::

        owner: "0xabc..."
        positions:
          - chain_id: 8453
            total_collateral_base: "1000"
            total_debt_base: "90"
            current_liquidation_threshold: 8000
    """

    def __init__(
        self, snapshot_path: str | Path, scales: FixedPointScales = DEFAULT_SCALES
    ) -> None:
        self._path = Path(snapshot_path)
        self._scales = scales
        self._cache: tuple[tuple[int, int], dict[str, Any]] | None = None

    def _load(self) -> dict[str, Any]:
        """Parsed snapshot, re-read only when the file changes on disk."""
        if not self._path.exists():
            raise FileNotFoundError(f"Snapshot file not found: {self._path}")
        stat = self._path.stat()
        stamp = (stat.st_mtime_ns, stat.st_size)
        if self._cache is not None and self._cache[0] == stamp:
            return self._cache[1]

        with open(self._path) as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Snapshot {self._path} must be a mapping")
        self._cache = (stamp, raw)
        logger.debug("Read snapshot %s", self._path)
        return raw

    @property
    def owner(self) -> str:
        return str(self._load().get("owner", "") or "")

    def fetch_positions(
        self, chain_ids: Sequence[int] | None, owner: str = ""
    ) -> list[Position]:
        """Positions for ``chain_ids`` (all when empty) owned by ``owner``.

        Malformed records are logged and their chain skipped.
        """
        raw = self._load()
        default_owner = str(raw.get("owner", "") or "")
        wanted = set(chain_ids) if chain_ids else None

        positions: list[Position] = []
        for record in raw.get("positions", []) or []:
            try:
                position = parser.parse_position_record(
                    record, self._scales, default_owner
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.error("Skipping malformed snapshot record %s: %s", record, e)
                continue

            if wanted is not None and position.chain_id not in wanted:
                continue
            if not parser.owner_matches(position.owner_address, owner):
                logger.debug(
                    "Skipping chain %s: owner %s", position.chain_id, position.owner_address
                )
                continue
            positions.append(position)

        if wanted is not None:
            missing = wanted - {p.chain_id for p in positions}
            for chain_id in sorted(missing):
                logger.warning("No position found on chain %s", chain_id)

        logger.info("Loaded %d positions from %s", len(positions), self._path)
        return positions
