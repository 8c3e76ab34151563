"""
Token Transformer: one token revision -> a platform's native representation.

Web-style targets get CSS custom properties (``:root`` for the default theme,
``[data-theme="..."]`` for the others) plus a semantic-name -> property-name
lookup. Angular additionally gets an SCSS map. Targets without cascading
styles get a flat object map keyed by the same semantic names, with lengths
as whole dp numbers.

Every binding answers the same lookup interface (value, reference,
semantic_value), so a generator treats all forms alike. Transformation is pure
and cached by (revision, platform, style, prefix).
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from .errors import MissingTokenError
from .ir.artifact import FileKind, GeneratedFile
from .ir.component import ComponentSpec
from .ir.tokens import LENGTH_KINDS, TokenKind, TokenSet, TokenValue
from .units import format_ms, format_px, parse_duration, parse_length, px_to_rem, round_dp

logger = logging.getLogger(__name__)


class TokenStyle(StrEnum):
    """How a platform consumes tokens."""

    CSS_VARIABLES = "css-variables"
    SCSS = "scss"
    NATIVE = "native"


@dataclass(frozen=True)
class TokenEntry:
    """
    One token as a platform sees it.

    Attributes:
        name: Semantic token name
        kind: Token kind
        reference: Expression generated code uses to read the token
        property: CSS custom property name (web styles only)
        values: Platform value per theme
        contrast: Contrast metadata carried through from the token set
    """

    name: str
    kind: TokenKind
    reference: str
    property: str | None
    values: Mapping[str, TokenValue]
    contrast: Mapping[str, Mapping[str, float]] = field(default_factory=dict)


@dataclass(frozen=True)
class PlatformTokenBinding:
    """A token revision transformed for one platform."""

    revision: str
    platform: str
    style: TokenStyle
    themes: tuple[str, ...]
    entries: Mapping[str, TokenEntry]
    files: tuple[GeneratedFile, ...]

    @property
    def default_theme(self) -> str:
        return self.themes[0]

    def has(self, name: str) -> bool:
        return name in self.entries

    def lookup(self, name: str) -> TokenEntry:
        """Get an entry, raising KeyError if absent."""
        return self.entries[name]

    def require(self, name: str, component: str) -> TokenEntry:
        """Get an entry or raise MissingTokenError naming the component."""
        entry = self.entries.get(name)
        if entry is None:
            raise MissingTokenError(name, component, self.revision)
        return entry

    def value(self, name: str, theme: str | None = None) -> TokenValue:
        """Platform-native value for a theme (default theme if omitted)."""
        return self.entries[name].values[theme or self.default_theme]

    def reference(self, name: str) -> str:
        """Expression generated code uses to read the token."""
        return self.entries[name].reference

    def property_map(self) -> dict[str, str]:
        """Semantic name -> CSS custom property (empty for native styles)."""
        return {
            name: entry.property
            for name, entry in sorted(self.entries.items())
            if entry.property is not None
        }

    def semantic_value(self, name: str, theme: str | None = None) -> TokenValue:
        """Convert the platform value back to the canonical semantic value."""
        entry = self.entries[name]
        raw = entry.values[theme or self.default_theme]
        if entry.kind in LENGTH_KINDS:
            return format_px(parse_length(raw))
        if entry.kind == TokenKind.DURATION:
            return format_ms(parse_duration(raw))
        if entry.kind == TokenKind.FONT_WEIGHT:
            return int(raw)
        return raw

    def size_dp(self, name: str, theme: str | None = None) -> int:
        """A length token in whole dp."""
        return round_dp(parse_length(self.value(name, theme)))


# =============================================================================
# Transformation
# =============================================================================


def css_property(name: str, prefix: str = "") -> str:
    """Custom property for a semantic name (``spacing.12`` -> ``--spacing-12``)."""
    slug = name.replace(".", "-")
    return f"--{prefix}-{slug}" if prefix else f"--{slug}"


def _web_value(kind: TokenKind, value: TokenValue) -> TokenValue:
    if kind in LENGTH_KINDS:
        return px_to_rem(parse_length(value))
    if kind == TokenKind.FONT_WEIGHT:
        return str(value)
    return value


def _native_value(kind: TokenKind, value: TokenValue) -> TokenValue:
    if kind in LENGTH_KINDS:
        return round_dp(parse_length(value))
    if kind == TokenKind.DURATION:
        ms = parse_duration(value)
        return int(ms) if ms.is_integer() else ms
    if kind == TokenKind.FONT_WEIGHT:
        return str(value)
    return value


def transform(
    tokens: TokenSet,
    platform: str,
    style: TokenStyle = TokenStyle.CSS_VARIABLES,
    *,
    prefix: str = "",
) -> PlatformTokenBinding:
    """
    Transform a token set for one platform.

    Args:
        tokens: Published token revision
        platform: Target platform id
        style: How the platform consumes tokens
        prefix: Optional custom-property prefix for web styles

    Returns:
        PlatformTokenBinding with entries and token files
    """
    entries: dict[str, TokenEntry] = {}
    for name in tokens.names():
        token = tokens.tokens[name]
        if style == TokenStyle.NATIVE:
            values = {t: _native_value(token.kind, token.values[t]) for t in tokens.themes}
            reference = f'tokens["{name}"]'
            prop = None
        else:
            values = {t: _web_value(token.kind, token.values[t]) for t in tokens.themes}
            prop = css_property(name, prefix)
            reference = f"var({prop})"
        entries[name] = TokenEntry(
            name=name,
            kind=token.kind,
            reference=reference,
            property=prop,
            values=values,
            contrast={theme: dict(pairs) for theme, pairs in sorted(token.contrast.items())},
        )

    themes = tuple(tokens.themes)
    if style == TokenStyle.NATIVE:
        files = (_native_module(tokens.revision, themes, entries),)
    elif style == TokenStyle.SCSS:
        files = (_css_file(tokens.revision, themes, entries), _scss_file(tokens.revision, themes, entries))
    else:
        files = (_css_file(tokens.revision, themes, entries),)

    return PlatformTokenBinding(
        revision=tokens.revision,
        platform=platform,
        style=style,
        themes=themes,
        entries=entries,
        files=files,
    )


def require_tokens(component: ComponentSpec, binding: PlatformTokenBinding) -> None:
    """
    Check every token the component references exists in the binding.

    Raises:
        MissingTokenError: For the first missing token, in reference order
    """
    for name in component.referenced_tokens():
        binding.require(name, component.id)


def _theme_selector(theme: str) -> str:
    return f'[data-theme="{theme}"]'


def _css_file(revision: str, themes: tuple[str, ...], entries: Mapping[str, TokenEntry]) -> GeneratedFile:
    lines: list[str] = [f"/* Facet tokens, revision {revision}. Generated, do not edit. */", ""]
    default = themes[0]
    lines.append(":root {")
    for name, entry in entries.items():
        lines.append(f"  {entry.property}: {entry.values[default]};")
    lines.append("}")
    for theme in themes[1:]:
        changed = [e for e in entries.values() if e.values[theme] != e.values[default]]
        if not changed:
            continue
        lines.append("")
        lines.append(f"{_theme_selector(theme)} {{")
        for entry in changed:
            lines.append(f"  {entry.property}: {entry.values[theme]};")
        lines.append("}")
    lines.append("")
    return GeneratedFile(path="tokens.css", content="\n".join(lines), kind=FileKind.TOKENS)


def _scss_literal(entry: TokenEntry, value: TokenValue) -> str:
    if entry.kind == TokenKind.FONT_FAMILY:
        return f"unquote({json.dumps(str(value))})"
    return str(value)


def _scss_file(revision: str, themes: tuple[str, ...], entries: Mapping[str, TokenEntry]) -> GeneratedFile:
    lines: list[str] = [f"// Facet tokens, revision {revision}. Generated, do not edit.", ""]
    lines.append("$facet-tokens: (")
    for theme in themes:
        lines.append(f'  "{theme}": (')
        for name, entry in entries.items():
            lines.append(f'    "{name}": {_scss_literal(entry, entry.values[theme])},')
        lines.append("  ),")
    lines.append(");")
    lines.append("")
    lines.append("@function facet-token($name, $theme: \"%s\") {" % themes[0])
    lines.append("  @return map-get(map-get($facet-tokens, $theme), $name);")
    lines.append("}")
    lines.append("")
    return GeneratedFile(path="_tokens.scss", content="\n".join(lines), kind=FileKind.TOKENS)


def _native_module(revision: str, themes: tuple[str, ...], entries: Mapping[str, TokenEntry]) -> GeneratedFile:
    table = {theme: {name: entry.values[theme] for name, entry in entries.items()} for theme in themes}
    body = json.dumps(table, indent=2, sort_keys=True)
    content = (
        f"// Facet tokens, revision {revision}. Generated, do not edit.\n\n"
        f"export const themes = {body} as const;\n\n"
        f"export type ThemeName = keyof typeof themes;\n\n"
        f'export const defaultTheme: ThemeName = "{themes[0]}";\n'
    )
    return GeneratedFile(path="tokens.ts", content=content, kind=FileKind.TOKENS)


# =============================================================================
# Cache
# =============================================================================


class TokenTransformer:
    """
    Caching front for transform().

    Safe to share between worker threads: results are immutable and the
    cache is guarded by a lock.
    """

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix
        self._cache: dict[tuple[str, str, TokenStyle], PlatformTokenBinding] = {}
        self._lock = threading.Lock()

    def transform(
        self, tokens: TokenSet, platform: str, style: TokenStyle = TokenStyle.CSS_VARIABLES
    ) -> PlatformTokenBinding:
        key = (tokens.revision, platform, style)
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached
        binding = transform(tokens, platform, style, prefix=self.prefix)
        with self._lock:
            # First writer wins so every caller sees the same object
            binding = self._cache.setdefault(key, binding)
        logger.debug("Transformed tokens %s for %s (%s)", tokens.revision, platform, style)
        return binding

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
