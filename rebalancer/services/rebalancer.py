"""Rebalance orchestration — fetch positions, plan, hand off to an executor."""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..config import AppConfig
from ..engine import plan_local_repairs, plan_rebalance
from ..engine.transfers import RoutablePredicate
from ..interfaces.executor import PlanExecutor
from ..interfaces.position_source import PositionSource
from ..models import BatchStatus, LocalRepair, Position, RebalanceResult

logger = logging.getLogger(__name__)


class Rebalancer:
    """Runs the allocation engine against a position source.

    Positions are re-fetched on every call; nothing is cached between runs.
    """

    def __init__(
        self,
        config: AppConfig,
        source: PositionSource,
        executor: Optional[PlanExecutor] = None,
        is_routable: Optional[RoutablePredicate] = None,
    ) -> None:
        self._config = config
        self._source = source
        self._executor = executor
        self._is_routable = is_routable

    def _chain_ids(self, chain_ids: Optional[Sequence[int]]) -> Optional[Sequence[int]]:
        if chain_ids:
            return chain_ids
        return self._config.chain_ids or None

    def fetch(self, chain_ids: Optional[Sequence[int]] = None) -> list[Position]:
        positions = self._source.fetch_positions(
            self._chain_ids(chain_ids), self._config.account
        )
        logger.info("Fetched %d positions", len(positions))
        return positions

    def plan(self, chain_ids: Optional[Sequence[int]] = None) -> RebalanceResult:
        """Compute a rebalance plan from fresh positions."""
        result = plan_rebalance(
            self.fetch(chain_ids), self._config.policy, self._is_routable
        )
        logger.info(
            "Plan status %s: %d transfer instructions",
            result.status.value,
            len(result.transfers.instructions),
        )
        return result

    def repairs(self, chain_ids: Optional[Sequence[int]] = None) -> tuple[LocalRepair, ...]:
        """Single-chain repay / top-up amounts for unhealthy positions."""
        return plan_local_repairs(self.fetch(chain_ids), self._config.policy)

    def run(
        self, chain_ids: Optional[Sequence[int]] = None
    ) -> tuple[RebalanceResult, dict[int, BatchStatus]]:
        """Plan and, when there is something to move, submit to the executor."""
        result = self.plan(chain_ids)

        if not result.status.actionable or not result.transfers.instructions:
            logger.info("Nothing to execute (%s)", result.status.value)
            return result, {}
        if self._executor is None:
            logger.warning("No executor configured; plan computed but not submitted")
            return result, {}

        statuses = self._executor.submit(result)
        for chain_id, status in sorted(statuses.items()):
            log = logger.error if status is BatchStatus.REVERTED else logger.info
            log("Batch on chain %s: %s", chain_id, status.value)
        return result, statuses
