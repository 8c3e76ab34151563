"""
W3C Design Token Community Group (DTCG) tokens.json export.

Writes a token revision in DTCG format. The default theme's value is the
token's ``$value``; every theme's value, the contrast role and recorded
ratios go under ``$extensions.facet`` so the file loads back unchanged.
See: https://design-tokens.github.io/community-group/format/
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .ir import TokenSet

EXTENSION_KEY = "facet"


def generate_dtcg_tokens(tokens: TokenSet) -> dict[str, Any]:
    """Build the DTCG document for a token revision.

    Dotted names nest as groups (``color.primary.500`` -> color > primary > 500).

    Args:
        tokens: Published token revision.

    Returns:
        DTCG-formatted dict suitable for writing as tokens.json.
    """
    dtcg: dict[str, Any] = {
        "$description": tokens.description or f"Facet tokens, revision {tokens.revision}",
        "$extensions": {EXTENSION_KEY: {"revision": tokens.revision, "themes": list(tokens.themes)}},
    }
    for name in tokens.names():
        token = tokens.tokens[name]
        *groups, leaf = name.split(".")
        node = dtcg
        for group in groups:
            node = node.setdefault(group, {})

        extension: dict[str, Any] = {"values": dict(token.values)}
        if token.role is not None:
            extension["role"] = str(token.role)
        if token.contrast:
            extension["contrast"] = {theme: dict(sorted(pairs.items())) for theme, pairs in sorted(token.contrast.items())}

        entry: dict[str, Any] = {
            "$type": str(token.kind),
            "$value": token.value(tokens.default_theme),
        }
        if token.description:
            entry["$description"] = token.description
        entry["$extensions"] = {EXTENSION_KEY: extension}
        node[leaf] = entry
    return dtcg


def export_dtcg_file(tokens: TokenSet, output_path: Path) -> Path:
    """Generate DTCG tokens and write to a JSON file.

    Args:
        tokens: Published token revision.
        output_path: Path to write tokens.json.

    Returns:
        Path to the written file.
    """
    document = generate_dtcg_tokens(tokens)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(document, indent=2) + "\n",
        encoding="utf-8",
    )

    return output_path
