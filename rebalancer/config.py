"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .fixed_point import BPS_DENOMINATOR, FixedPointScales, parse_units

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------

ScalesConfig = FixedPointScales


@dataclass(frozen=True)
class PolicyConfig:
    """Rebalance policy. Ratios are fixed-point at ``scales.ratio_decimals``.

    - ``min_ratio``: positions below it are unhealthy; healthy positions
      never drop below it when giving collateral away.
    - ``target_ratio``: ratio unhealthy positions are topped up to.
      ``None`` means the same as ``min_ratio``.
    - ``debt_free_withdraw_bps``: share of a debt-free position's collateral
      that may be withdrawn (5000 = 50%).
    """

    min_ratio: int = 12 * 10**17
    target_ratio: int | None = None
    debt_free_withdraw_bps: int = BPS_DENOMINATOR // 2
    scales: ScalesConfig = field(default_factory=ScalesConfig)

    @property
    def supply_target_ratio(self) -> int:
        return self.min_ratio if self.target_ratio is None else self.target_ratio


@dataclass(frozen=True)
class StatusConfig:
    warning_ratio: int = 15 * 10**17
    healthy_ratio: int = 2 * 10**18


@dataclass(frozen=True)
class AppConfig:
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    status: StatusConfig = field(default_factory=StatusConfig)
    account: str = ""
    chain_ids: tuple[int, ...] = ()
    chains: dict[int, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _ratio(raw: Any, decimals: int) -> int:
    """Ratios come as decimal strings ("1.2"); ints are taken as whole ratios."""
    if isinstance(raw, float):
        raise ValueError(f"Ratio {raw!r} must be quoted to avoid float rounding")
    return parse_units(str(raw), decimals)


def _build_scales(raw: dict[str, Any]) -> ScalesConfig:
    return ScalesConfig(
        base_decimals=int(raw.get("base_decimals", 8)),
        threshold_decimals=int(raw.get("threshold_decimals", 4)),
        ratio_decimals=int(raw.get("ratio_decimals", 18)),
    )


def _build_policy(raw: dict[str, Any]) -> PolicyConfig:
    scales = _build_scales(raw.get("scales", {}))
    target_raw = raw.get("target_ratio")
    return PolicyConfig(
        min_ratio=_ratio(raw.get("min_ratio", "1.2"), scales.ratio_decimals),
        target_ratio=(
            None if target_raw is None else _ratio(target_raw, scales.ratio_decimals)
        ),
        debt_free_withdraw_bps=int(
            raw.get("debt_free_withdraw_bps", BPS_DENOMINATOR // 2)
        ),
        scales=scales,
    )


def _build_status(raw: dict[str, Any], decimals: int) -> StatusConfig:
    return StatusConfig(
        warning_ratio=_ratio(raw.get("warning_ratio", "1.5"), decimals),
        healthy_ratio=_ratio(raw.get("healthy_ratio", "2.0"), decimals),
    )


def _build_chains(raw: dict[Any, Any]) -> dict[int, str]:
    return {int(chain_id): str(name) for chain_id, name in raw.items()}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    policy = _build_policy(raw.get("policy", {}))
    cfg = AppConfig(
        policy=policy,
        status=_build_status(raw.get("status", {}), policy.scales.ratio_decimals),
        account=raw.get("account", "") or "",
        chain_ids=tuple(int(c) for c in raw.get("chain_ids", [])),
        chains=_build_chains(raw.get("chains", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    scales = cfg.policy.scales
    if min(scales.base_decimals, scales.threshold_decimals, scales.ratio_decimals) < 0:
        raise ValueError("Decimal scales must be non-negative")
    if scales.ratio_decimals < scales.threshold_decimals:
        raise ValueError(
            "ratio_decimals must be >= threshold_decimals "
            f"({scales.ratio_decimals} < {scales.threshold_decimals})"
        )

    policy = cfg.policy
    if policy.min_ratio <= 0:
        raise ValueError("policy.min_ratio must be positive")
    if policy.supply_target_ratio < policy.min_ratio:
        raise ValueError("policy.target_ratio must be >= policy.min_ratio")
    if not 0 <= policy.debt_free_withdraw_bps <= BPS_DENOMINATOR:
        raise ValueError(
            f"policy.debt_free_withdraw_bps must be within 0..{BPS_DENOMINATOR}"
        )

    if cfg.status.warning_ratio > cfg.status.healthy_ratio:
        raise ValueError("status.warning_ratio must be <= status.healthy_ratio")
