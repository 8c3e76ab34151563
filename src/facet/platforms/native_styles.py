"""
Utility identifiers as React Native style objects.

React Native has no class names, so the generator emits a ``STYLES`` map
from each identifier a component can resolve to an inline style object.
The map is merged in resolver order at render time. Identifiers outside the
vocabulary below are left to the application (``registerStyles`` in the
generated styles module).
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from ..core.units import round_dp

NativeStyle = dict[str, str | int | float]

# 1 spacing unit = 4dp
SPACING_UNIT = 4

FIXED: dict[str, NativeStyle] = {
    "flex": {"display": "flex"},
    "inline-flex": {"flexDirection": "row", "alignSelf": "flex-start"},
    "flex-row": {"flexDirection": "row"},
    "flex-col": {"flexDirection": "column"},
    "flex-wrap": {"flexWrap": "wrap"},
    "flex-1": {"flex": 1},
    "hidden": {"display": "none"},
    "items-start": {"alignItems": "flex-start"},
    "items-center": {"alignItems": "center"},
    "items-end": {"alignItems": "flex-end"},
    "items-stretch": {"alignItems": "stretch"},
    "justify-start": {"justifyContent": "flex-start"},
    "justify-center": {"justifyContent": "center"},
    "justify-end": {"justifyContent": "flex-end"},
    "justify-between": {"justifyContent": "space-between"},
    "justify-around": {"justifyContent": "space-around"},
    "absolute": {"position": "absolute"},
    "relative": {"position": "relative"},
    "overflow-hidden": {"overflow": "hidden"},
    "w-full": {"width": "100%"},
    "h-full": {"height": "100%"},
    "underline": {"textDecorationLine": "underline"},
    "line-through": {"textDecorationLine": "line-through"},
    "no-underline": {"textDecorationLine": "none"},
    "italic": {"fontStyle": "italic"},
    "font-normal": {"fontWeight": "400"},
    "font-medium": {"fontWeight": "500"},
    "font-semibold": {"fontWeight": "600"},
    "font-bold": {"fontWeight": "700"},
    "text-left": {"textAlign": "left"},
    "text-center": {"textAlign": "center"},
    "text-right": {"textAlign": "right"},
    "bg-transparent": {"backgroundColor": "transparent"},
    "border": {"borderWidth": 1},
    "rounded": {"borderRadius": 4},
    "rounded-none": {"borderRadius": 0},
    "rounded-sm": {"borderRadius": 2},
    "rounded-md": {"borderRadius": 6},
    "rounded-lg": {"borderRadius": 8},
    "rounded-xl": {"borderRadius": 12},
    "rounded-full": {"borderRadius": 9999},
}

SCALED: dict[str, tuple[str, ...]] = {
    "h": ("height",),
    "w": ("width",),
    "min-h": ("minHeight",),
    "min-w": ("minWidth",),
    "max-h": ("maxHeight",),
    "max-w": ("maxWidth",),
    "p": ("padding",),
    "px": ("paddingHorizontal",),
    "py": ("paddingVertical",),
    "pt": ("paddingTop",),
    "pr": ("paddingRight",),
    "pb": ("paddingBottom",),
    "pl": ("paddingLeft",),
    "m": ("margin",),
    "mx": ("marginHorizontal",),
    "my": ("marginVertical",),
    "mt": ("marginTop",),
    "mr": ("marginRight",),
    "mb": ("marginBottom",),
    "ml": ("marginLeft",),
    "gap": ("gap",),
    "size": ("width", "height"),
}

_SCALED_RE = re.compile(r"^(" + "|".join(sorted(SCALED, key=len, reverse=True)) + r")-(\d+(?:\.\d+)?)$")
_OPACITY_RE = re.compile(r"^opacity-(\d{1,3})$")
_BORDER_RE = re.compile(r"^border-(\d+)$")


def native_style(identifier: str) -> NativeStyle | None:
    """Style object for one identifier, or None outside the vocabulary."""
    if identifier in FIXED:
        return dict(FIXED[identifier])
    match = _SCALED_RE.match(identifier)
    if match:
        dp = round_dp(float(match.group(2)) * SPACING_UNIT)
        return {prop: dp for prop in SCALED[match.group(1)]}
    match = _OPACITY_RE.match(identifier)
    if match and int(match.group(1)) <= 100:
        return {"opacity": int(match.group(1)) / 100}
    match = _BORDER_RE.match(identifier)
    if match:
        return {"borderWidth": int(match.group(1))}
    return None


def native_styles(identifiers: Iterable[str]) -> tuple[dict[str, NativeStyle], list[str]]:
    """
    Translate identifiers for the generated ``STYLES`` map.

    Returns:
        (identifier -> style object, identifiers left to the application)
    """
    styles: dict[str, NativeStyle] = {}
    unmapped: list[str] = []
    for identifier in identifiers:
        style = native_style(identifier)
        if style is None:
            unmapped.append(identifier)
        else:
            styles[identifier] = style
    return styles, unmapped
