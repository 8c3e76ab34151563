"""
Token Store: published, immutable token revisions.

Revisions are passed around as explicit arguments (TokenSet plus revision
id); there is no process-wide current theme. Publishing a revision id twice
with different content is refused, and revising a set always yields a new
revision.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Mapping

from .color import contrast_ratio, is_hex_color
from .errors import SpecLoadError
from .ir.tokens import DesignToken, TokenKind, TokenSet, TokenValue

logger = logging.getLogger(__name__)


def derive_contrast(token_set: TokenSet) -> TokenSet:
    """Fill in missing contrast metadata against background-role tokens.

    Authored ratios are kept as-is. Pairs are computed only for hex colors.

    Returns:
        A TokenSet with the same revision and complete contrast metadata.
    """
    backgrounds = token_set.backgrounds()
    if not backgrounds:
        return token_set

    updated: dict[str, DesignToken] = {}
    for name in token_set.names():
        token = token_set.tokens[name]
        if token.kind != TokenKind.COLOR:
            updated[name] = token
            continue
        contrast = {theme: dict(pairs) for theme, pairs in token.contrast.items()}
        for theme in token_set.themes:
            fg = token.values[theme]
            for bg_token in backgrounds:
                if bg_token.name == name:
                    continue
                bg = bg_token.values[theme]
                if not (isinstance(fg, str) and isinstance(bg, str)):
                    continue
                if not (is_hex_color(fg) and is_hex_color(bg)):
                    continue
                contrast.setdefault(theme, {}).setdefault(bg_token.name, contrast_ratio(fg, bg))
        updated[name] = token.model_copy(update={"contrast": contrast})

    return token_set.model_copy(update={"tokens": updated})


def version_key(revision: str) -> tuple:
    """Natural sort key so 'r10' sorts after 'r9' and '2024.10' after '2024.9'."""
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in re.split(r"(\d+)", revision)
        if part
    )


class TokenStore:
    """
    Holds published token revisions.

    Thread-safe for concurrent reads and publishes.
    """

    def __init__(self) -> None:
        self._revisions: dict[str, TokenSet] = {}
        self._lock = threading.Lock()

    def publish(self, token_set: TokenSet) -> TokenSet:
        """
        Publish a revision.

        Republishing identical content is a no-op; different content under an
        existing revision id is refused.

        Raises:
            SpecLoadError: If the revision id is taken by different content
        """
        with self._lock:
            existing = self._revisions.get(token_set.revision)
            if existing is not None:
                if existing == token_set:
                    return existing
                raise SpecLoadError(
                    f"Token revision '{token_set.revision}' is already published with "
                    f"different values; publish changes under a new revision"
                )
            self._revisions[token_set.revision] = token_set
        logger.debug("Published token revision %s (%d tokens)", token_set.revision, len(token_set.tokens))
        return token_set

    def get(self, revision: str) -> TokenSet:
        """
        Get a published revision.

        Raises:
            SpecLoadError: If not published
        """
        token_set = self._revisions.get(revision)
        if token_set is None:
            available = self.revisions()
            raise SpecLoadError(f"Token revision '{revision}' not found. Available: {available}")
        return token_set

    def latest(self) -> TokenSet:
        """Most recent revision by natural ordering of revision ids."""
        revisions = self.revisions()
        if not revisions:
            raise SpecLoadError("No token revisions published")
        return self._revisions[revisions[-1]]

    def revisions(self) -> list[str]:
        """Published revision ids in natural order."""
        return sorted(self._revisions, key=version_key)

    def __contains__(self, revision: object) -> bool:
        return revision in self._revisions

    def revise(
        self,
        base_revision: str,
        new_revision: str,
        changes: Mapping[str, Mapping[str, TokenValue]],
    ) -> TokenSet:
        """
        Publish a new revision derived from an existing one.

        Args:
            base_revision: Revision to start from (left untouched)
            new_revision: Id for the new revision
            changes: Token name -> {theme: value} overrides

        Returns:
            The newly published TokenSet
        """
        base = self.get(base_revision)
        tokens = dict(base.tokens)
        for name, theme_values in changes.items():
            token = tokens.get(name)
            if token is None:
                raise SpecLoadError(f"Cannot revise unknown token '{name}'")
            data = token.model_dump()
            data["values"] = {**data["values"], **theme_values}
            # Recorded ratios describe the old value
            data["contrast"] = {}
            tokens[name] = DesignToken(**data)
        # Ratios against a changed background are stale too
        changed = set(changes)
        for name, token in tokens.items():
            if name in changed or not token.contrast:
                continue
            if any(bg in changed for pairs in token.contrast.values() for bg in pairs):
                tokens[name] = token.model_copy(update={"contrast": {}})

        revised = TokenSet(
            revision=new_revision,
            themes=list(base.themes),
            tokens=tokens,
            description=f"Revised from {base_revision}",
        )
        return self.publish(derive_contrast(revised))
