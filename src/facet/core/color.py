"""
Pure-Python color math for contrast metadata.

Parses hex colors and computes WCAG 2.x contrast ratios. Used once, when a
token revision is loaded, to fill in contrast metadata the document did not
author. Nothing downstream recomputes color math.
"""

from __future__ import annotations

import re

_HEX_RE = re.compile(r"^#(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")

# Minimum contrast ratio per WCAG conformance level.
# Level A has no text contrast criterion; 3:1 is the non-text (1.4.11) floor.
WCAG_CONTRAST: dict[str, float] = {
    "A": 3.0,
    "AA": 4.5,
    "AAA": 7.0,
}


def is_hex_color(value: str) -> bool:
    """Check whether a string is a #rgb, #rgba, #rrggbb or #rrggbbaa color."""
    return bool(_HEX_RE.match(value))


def normalize_hex(value: str) -> str:
    """Expand short hex forms and lowercase (``#FFF`` -> ``#ffffff``).

    Raises:
        ValueError: If the value is not a hex color.
    """
    if not is_hex_color(value):
        raise ValueError(f"Not a hex color: {value!r}")
    digits = value[1:].lower()
    if len(digits) in (3, 4):
        digits = "".join(ch * 2 for ch in digits)
    if digits.endswith("ff") and len(digits) == 8:
        digits = digits[:6]
    return f"#{digits}"


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    """Convert a hex color to an (r, g, b) tuple, ignoring alpha."""
    digits = normalize_hex(value)[1:]
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def _channel(c: int) -> float:
    s = c / 255
    if s <= 0.04045:
        return s / 12.92
    return ((s + 0.055) / 1.055) ** 2.4


def relative_luminance(value: str) -> float:
    """WCAG relative luminance of a hex color (0 = black, 1 = white)."""
    r, g, b = hex_to_rgb(value)
    return 0.2126 * _channel(r) + 0.7152 * _channel(g) + 0.0722 * _channel(b)


def contrast_ratio(foreground: str, background: str) -> float:
    """Contrast ratio between two hex colors, rounded to two decimals.

    Args:
        foreground: Foreground hex color.
        background: Background hex color.

    Returns:
        Ratio between 1.0 and 21.0.
    """
    l1 = relative_luminance(foreground)
    l2 = relative_luminance(background)
    lighter, darker = max(l1, l2), min(l1, l2)
    return round((lighter + 0.05) / (darker + 0.05), 2)


def required_contrast(level: str) -> float:
    """Minimum ratio for a WCAG level."""
    return WCAG_CONTRAST[level]
