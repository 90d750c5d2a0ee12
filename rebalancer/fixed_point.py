"""Exact integer arithmetic for ratio-scaled quantities — no floats anywhere."""
from __future__ import annotations

from dataclasses import dataclass


class DivisionByZero(ArithmeticError):
    """Raised when a fixed-point division is attempted with a zero divisor."""


@dataclass(frozen=True)
class FixedPointScales:
    """Decimal exponents of the three fixed-point quantities the engine combines.

    - ``base_decimals``: collateral / debt (USD base, 8 on Aave v3)
    - ``threshold_decimals``: liquidation threshold (basis points, 4)
    - ``ratio_decimals``: risk ratio / health factor (18)
    """

    base_decimals: int = 8
    threshold_decimals: int = 4
    ratio_decimals: int = 18

    @property
    def threshold_factor(self) -> int:
        """Multiplier that rescales a threshold to ratio precision (10^14 by default)."""
        return 10 ** (self.ratio_decimals - self.threshold_decimals)

    @property
    def ratio_one(self) -> int:
        return 10**self.ratio_decimals

    @property
    def threshold_one(self) -> int:
        return 10**self.threshold_decimals


DEFAULT_SCALES = FixedPointScales()

BPS_DENOMINATOR = 10_000


def mul_div(a: int, b: int, divisor: int) -> int:
    """Return ``floor(a * b / divisor)``.

    Raises:
        DivisionByZero: if ``divisor`` is zero.
        ValueError: if any operand is negative.
    """
    if divisor == 0:
        raise DivisionByZero(f"mul_div({a}, {b}, 0)")
    if a < 0 or b < 0 or divisor < 0:
        raise ValueError(f"mul_div operands must be non-negative: {a}, {b}, {divisor}")
    return (a * b) // divisor


def saturating_sub(a: int, b: int) -> int:
    """``a - b`` clamped at zero."""
    return a - b if a > b else 0


def bps_of(amount: int, bps: int) -> int:
    """Floor of ``amount * bps / 10_000``."""
    return mul_div(amount, bps, BPS_DENOMINATOR)


def parse_units(value: str, decimals: int) -> int:
    """Convert a human decimal string to a fixed-point integer.

    Digits past ``decimals`` are truncated (never rounded up).

    Examples:
        parse_units("1.2", 18) → 1200000000000000000
        parse_units("85", 2) → 8500
    """
    text = str(value).strip().replace("_", "")
    if not text:
        raise ValueError("Empty numeric string")
    if text.startswith("-"):
        raise ValueError(f"Negative amounts are not allowed: {value!r}")
    if text.startswith("+"):
        text = text[1:]

    whole, _, frac = text.partition(".")
    if not whole:
        whole = "0"
    if not whole.isdigit() or (frac and not frac.isdigit()):
        raise ValueError(f"Not a decimal number: {value!r}")

    frac = frac[:decimals].ljust(decimals, "0")
    return int(whole) * 10**decimals + (int(frac) if frac else 0)


def format_units(value: int, decimals: int) -> str:
    """Render a fixed-point integer as a decimal string without trailing zeros."""
    if value < 0:
        return "-" + format_units(-value, decimals)
    if decimals == 0:
        return str(value)
    whole, frac = divmod(value, 10**decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{whole}.{frac_str}" if frac_str else str(whole)
