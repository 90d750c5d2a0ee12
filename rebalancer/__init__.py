"""Cross-chain collateral rebalance planner."""
__version__ = "0.1.0"
