"""
Facet CLI package.

- app.py: main app, generate/lookup/platforms/check/version commands
- tokens.py: token revision commands
- utils.py: shared helpers
"""

from facet.cli.app import app, main
from facet.cli.tokens import tokens_app
from facet.cli.utils import version_callback

__all__ = [
    "app",
    "main",
    "tokens_app",
    "version_callback",
]
