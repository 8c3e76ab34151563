"""
Design token IR types.

A TokenSet is one immutable, published revision of the design-token source of
truth. Each token has exactly one canonical value per theme the set declares.
Values are canonicalised on construction (whole-pixel dimensions, millisecond
durations, lowercase hex colors) so every later stage compares like with like.
"""

from __future__ import annotations

import re
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..color import is_hex_color, normalize_hex
from ..units import format_ms, format_px, parse_duration, parse_length

_TOKEN_NAME_RE = re.compile(r"^[a-z][a-z0-9-]*(\.[a-z0-9-]+)+$")
_THEME_RE = re.compile(r"^[a-z][a-z0-9-]*$")

TokenValue = str | int | float


# =============================================================================
# Enums
# =============================================================================


class TokenKind(StrEnum):
    """Semantic type of a design token."""

    COLOR = "color"
    DIMENSION = "dimension"
    DURATION = "duration"
    FONT_FAMILY = "fontFamily"
    FONT_WEIGHT = "fontWeight"
    FONT_SIZE = "fontSize"
    NUMBER = "number"


class TokenRole(StrEnum):
    """Optional role used when deriving contrast metadata."""

    BACKGROUND = "background"
    FOREGROUND = "foreground"


LENGTH_KINDS = frozenset({TokenKind.DIMENSION, TokenKind.FONT_SIZE})


def canonical_value(kind: TokenKind, value: TokenValue) -> TokenValue:
    """Canonicalise a raw token value for its kind.

    Raises:
        ValueError: If the value does not fit the kind.
    """
    if kind == TokenKind.COLOR:
        if not isinstance(value, str):
            raise ValueError(f"color value must be a string, got {value!r}")
        return normalize_hex(value) if is_hex_color(value) else value.strip()
    if kind in LENGTH_KINDS:
        return format_px(parse_length(value))
    if kind == TokenKind.DURATION:
        return format_ms(parse_duration(value))
    if kind == TokenKind.FONT_WEIGHT:
        weight = int(value)
        if not 1 <= weight <= 1000:
            raise ValueError(f"font weight out of range: {value!r}")
        return weight
    if kind == TokenKind.NUMBER:
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise ValueError(f"number token must be numeric, got {value!r}")
        return value
    if not isinstance(value, str):
        raise ValueError(f"font family must be a string, got {value!r}")
    return value


# =============================================================================
# Tokens
# =============================================================================


class DesignToken(BaseModel):
    """
    One named, typed design token.

    Example:
        DesignToken(
            name="color.primary.500",
            kind=TokenKind.COLOR,
            values={"light": "#2563eb", "dark": "#60a5fa"},
            contrast={"light": {"color.surface": 5.17}},
        )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(description="Dotted semantic name (scale.step)")
    kind: TokenKind = Field(description="Token kind")
    values: dict[str, TokenValue] = Field(description="Canonical value per theme")
    role: TokenRole | None = Field(default=None, description="Role for contrast derivation")
    contrast: dict[str, dict[str, float]] = Field(
        default_factory=dict,
        description="Per theme: background token name -> contrast ratio",
    )
    description: str | None = Field(default=None, description="Token description")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not _TOKEN_NAME_RE.match(v):
            raise ValueError(f"Invalid token name '{v}' (expected dotted lowercase, e.g. spacing.12)")
        return v

    @model_validator(mode="before")
    @classmethod
    def _canonicalise(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "kind" not in data:
            return data
        kind = TokenKind(data["kind"])
        values = data.get("values") or {}
        data = dict(data)
        data["values"] = {theme: canonical_value(kind, v) for theme, v in values.items()}
        return data

    def value(self, theme: str) -> TokenValue:
        """Canonical value for a theme."""
        return self.values[theme]

    def contrast_against(self, background: str, theme: str) -> float | None:
        """Recorded contrast ratio against a background token, if known."""
        return self.contrast.get(theme, {}).get(background)


class TokenSet(BaseModel):
    """
    An immutable token revision.

    Changing a value never mutates a TokenSet; see TokenStore.revise(), which
    returns a new set under a new revision id.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    revision: str = Field(description="Revision identifier")
    themes: list[str] = Field(
        default_factory=lambda: ["light"],
        description="Theme names; the first is the default theme",
    )
    tokens: dict[str, DesignToken] = Field(default_factory=dict, description="Tokens by name")
    description: str | None = Field(default=None, description="Revision notes")

    @field_validator("themes")
    @classmethod
    def validate_themes(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("A token set must declare at least one theme")
        if len(set(v)) != len(v):
            raise ValueError(f"Duplicate theme names: {v}")
        for theme in v:
            if not _THEME_RE.match(theme):
                raise ValueError(f"Invalid theme name '{theme}'")
        return v

    @model_validator(mode="after")
    def _check_tokens(self) -> TokenSet:
        expected = set(self.themes)
        for key, token in self.tokens.items():
            if key != token.name:
                raise ValueError(f"Token key '{key}' does not match token name '{token.name}'")
            if set(token.values) != expected:
                missing = sorted(expected - set(token.values))
                extra = sorted(set(token.values) - expected)
                raise ValueError(
                    f"Token '{key}' must have exactly one value per theme "
                    f"(missing: {missing}, unknown: {extra})"
                )
            for theme, pairs in token.contrast.items():
                if theme not in expected:
                    raise ValueError(f"Token '{key}' has contrast for unknown theme '{theme}'")
                for background in pairs:
                    if background not in self.tokens:
                        raise ValueError(
                            f"Token '{key}' has contrast against unknown token '{background}'"
                        )
        return self

    @property
    def default_theme(self) -> str:
        return self.themes[0]

    def get(self, name: str) -> DesignToken | None:
        """Get token by name."""
        return self.tokens.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.tokens

    def names(self) -> list[str]:
        """Token names in stable (sorted) order."""
        return sorted(self.tokens)

    def backgrounds(self) -> list[DesignToken]:
        """Color tokens declared with the background role."""
        return [
            self.tokens[name]
            for name in self.names()
            if self.tokens[name].kind == TokenKind.COLOR
            and self.tokens[name].role == TokenRole.BACKGROUND
        ]
