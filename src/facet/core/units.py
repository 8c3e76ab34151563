"""
Length and duration units shared by the token transformer and generators.

One device-independent pixel (dp) equals one CSS pixel. Rem values assume the
16px browser default. Conversions into whole dp round to the nearest integer
with halves rounded up, so 43.5 becomes 44 on every platform.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal

REM_PX = 16

_LENGTH_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*(px|rem|dp)?\s*$")
_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s)?\s*$")


def round_dp(value: float) -> int:
    """Round a pixel value to the nearest whole dp, halves up."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_length(value: str | int | float) -> float:
    """Parse a length into (possibly fractional) pixels.

    Args:
        value: Number (pixels) or string with px, rem or dp suffix.

    Returns:
        Length in pixels.

    Raises:
        ValueError: If the value is not a recognised length.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a length: {value!r}")
    if isinstance(value, int | float):
        return float(value)
    match = _LENGTH_RE.match(value)
    if not match:
        raise ValueError(f"Not a length: {value!r}")
    number = float(match.group(1))
    if match.group(2) == "rem":
        return number * REM_PX
    return number


def parse_duration(value: str | int | float) -> float:
    """Parse a duration into milliseconds."""
    if isinstance(value, bool):
        raise ValueError(f"Not a duration: {value!r}")
    if isinstance(value, int | float):
        return float(value)
    match = _DURATION_RE.match(value)
    if not match:
        raise ValueError(f"Not a duration: {value!r}")
    number = float(match.group(1))
    if match.group(2) == "s":
        return number * 1000
    return number


def _trim(number: float, places: int = 4) -> str:
    text = f"{number:.{places}f}".rstrip("0").rstrip(".")
    return text or "0"


def px_to_rem(px: float) -> str:
    """Format a pixel value as a rem string (``44`` -> ``2.75rem``)."""
    return f"{_trim(px / REM_PX)}rem"


def rem_to_px(rem: str) -> int:
    """Read a rem string back into whole pixels."""
    return round_dp(parse_length(rem))


def format_px(px: float) -> str:
    """Canonical whole-pixel form (``"44px"``)."""
    return f"{round_dp(px)}px"


def format_ms(ms: float) -> str:
    """Canonical millisecond form (``"150ms"``)."""
    return f"{_trim(ms, 2)}ms"
