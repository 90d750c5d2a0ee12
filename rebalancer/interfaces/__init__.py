"""Protocol interfaces for the collaborators around the allocation engine."""
from .executor import PlanExecutor
from .position_source import PositionSource

__all__ = ["PlanExecutor", "PositionSource"]
