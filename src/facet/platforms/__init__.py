"""
Platform generator plugin system.

Generators are found through a registration list, never a hard-coded
enumeration: built-in modules in this package are discovered on first use,
third-party packages contribute generators through the ``facet.platforms``
entry point group, and tests or applications may register() their own.
"""

from __future__ import annotations

import importlib
import inspect
import logging
from importlib.metadata import entry_points
from pathlib import Path
from typing import Any

from ..core.errors import FacetError, UnknownPlatformError
from .base import Capability, GeneratorCapabilities, PlatformGenerator
from .view import ComponentView

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "facet.platforms"

# Support modules that hold no generators
_SUPPORT_MODULES = frozenset({"base", "common", "view"})


class GeneratorRegistry:
    """
    Registry for platform generators.

    Supports:
    - Manual registration via register()
    - Auto-discovery of generator modules in this package
    - Entry-point plugins
    - Lookup by platform id
    """

    def __init__(self) -> None:
        self._generators: dict[str, type[PlatformGenerator]] = {}

    def register(self, name: str, generator_class: type[PlatformGenerator]) -> None:
        """
        Register a generator class.

        Args:
            name: Platform id (used in CLI: --platform <name>)
            generator_class: Class extending PlatformGenerator

        Raises:
            FacetError: If the id is taken or the class is invalid
        """
        if name in self._generators:
            raise FacetError(
                f"Platform '{name}' is already registered. Cannot register {generator_class.__name__}."
            )
        if not (inspect.isclass(generator_class) and issubclass(generator_class, PlatformGenerator)):
            raise FacetError(f"Generator class {generator_class!r} must extend PlatformGenerator")
        self._generators[name] = generator_class
        logger.debug("Registered platform %s -> %s", name, generator_class.__name__)

    def unregister(self, name: str) -> None:
        self._generators.pop(name, None)

    def get(self, name: str, **options: Any) -> PlatformGenerator:
        """
        Get a generator instance by platform id.

        Args:
            name: Platform id
            **options: Generator options (e.g. include_docs)

        Raises:
            UnknownPlatformError: If no generator is registered under the id
        """
        if name not in self._generators:
            available = self.list_platforms()
            raise UnknownPlatformError(f"Platform '{name}' not found. Available platforms: {available}")
        return self._generators[name](**options)

    def __contains__(self, name: object) -> bool:
        return name in self._generators

    def list_platforms(self) -> list[str]:
        """Registered platform ids, sorted."""
        return sorted(self._generators)

    def capabilities(self) -> dict[str, GeneratorCapabilities]:
        return {name: cls().get_capabilities() for name, cls in sorted(self._generators.items())}

    def discover(self) -> None:
        """
        Register built-in generator modules and entry-point plugins.

        A module contributes every PlatformGenerator subclass it defines,
        registered under the class's ``platform`` id.
        """
        package_dir = Path(__file__).parent
        for py_file in sorted(package_dir.glob("*.py")):
            if py_file.name.startswith("_") or py_file.stem in _SUPPORT_MODULES:
                continue
            module = importlib.import_module(f"{__name__}.{py_file.stem}")
            self._register_module(module)

        for entry_point in entry_points(group=ENTRY_POINT_GROUP):
            try:
                generator_class = entry_point.load()
            except ImportError as e:
                logger.warning("Skipping platform plugin %s: %s", entry_point.name, e)
                continue
            if entry_point.name not in self._generators:
                self.register(entry_point.name, generator_class)

    def _register_module(self, module: Any) -> None:
        for _name, obj in inspect.getmembers(module, inspect.isclass):
            if (
                issubclass(obj, PlatformGenerator)
                and obj.__module__ == module.__name__
                and not inspect.isabstract(obj)
                and obj.platform
                and obj.platform not in self._generators
            ):
                self.register(obj.platform, obj)


# Global registry instance
_registry: GeneratorRegistry | None = None


def get_registry() -> GeneratorRegistry:
    """
    Get the global generator registry.

    Performs auto-discovery on first call.
    """
    global _registry
    if _registry is None:
        _registry = GeneratorRegistry()
        _registry.discover()
    return _registry


def register_generator(name: str, generator_class: type[PlatformGenerator]) -> None:
    """Register a generator in the global registry."""
    get_registry().register(name, generator_class)


def get_generator(name: str, **options: Any) -> PlatformGenerator:
    """Get a generator instance by platform id."""
    return get_registry().get(name, **options)


def list_platforms() -> list[str]:
    """List all available platform ids."""
    return get_registry().list_platforms()


__all__ = [
    "Capability",
    "ComponentView",
    "GeneratorCapabilities",
    "GeneratorRegistry",
    "PlatformGenerator",
    "get_generator",
    "get_registry",
    "list_platforms",
    "register_generator",
]
