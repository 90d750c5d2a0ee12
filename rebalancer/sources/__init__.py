"""Position sources."""
from .snapshot import SnapshotPositionSource

__all__ = ["SnapshotPositionSource"]
