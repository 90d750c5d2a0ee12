"""Chain display names."""
from __future__ import annotations

CHAIN_NAMES: dict[int, str] = {
    1: "Ethereum",
    10: "Optimism",
    42161: "Arbitrum",
    8453: "Base",
    11155111: "Sepolia",
    421614: "Arbitrum Sepolia",
    84532: "Base Sepolia",
    11155420: "Optimism Sepolia",
}


def chain_name(chain_id: int, overrides: dict[int, str] | None = None) -> str:
    """Human name for a chain id, e.g. ``8453`` → ``"Base"``."""
    if overrides and chain_id in overrides:
        return overrides[chain_id]
    return CHAIN_NAMES.get(chain_id, f"Chain {chain_id}")
