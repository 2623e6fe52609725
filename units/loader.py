"""Unit loader for discovering and loading units of one category.

Scans unit directories, validates manifests, and instantiates unit classes.
"""

from __future__ import annotations

import importlib.util
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from units.base import Unit, UnitCategory
from units.manifest import ManifestError, UnitManifest
from units.naming import normalize_key

logger = logging.getLogger(__name__)


class UnitLoadError(Exception):
    """Raised when a unit cannot be loaded."""

    pass


class UnitNotFoundError(UnitLoadError):
    """Raised when a unit key is not discoverable."""

    pass


@dataclass
class DiscoveredUnit:
    """A unit found on disk or registered in code."""

    key: str
    path: Path | None = None
    manifest: UnitManifest | None = None
    unit_class: type[Unit] | None = None


class UnitLoader:
    """Discover and load the units of one category.

    Units are organized as:
    <source dir>/
    └── <unit-dir>/
        ├── manifest.yaml
        └── unit.py

    The loader owns the unit instances it creates: load() returns the same
    instance for a key until refresh() is called.

    Example:
        >>> loader = UnitLoader(UnitCategory.EXTENSION, [Path("units/extensions")])
        >>> for key, unit in loader.list_all(initialize_now=False):
        ...     print(key, unit)
    """

    MANIFEST_FILE = "manifest.yaml"

    def __init__(
        self,
        category: UnitCategory,
        source_dirs: list[Path] | None = None,
        request: Any = None,
    ) -> None:
        """Initialize the loader.

        Args:
            category: Category of the units this loader serves
            source_dirs: Directories to scan for unit directories
            request: Opaque request context handed to every unit
        """
        self.category = category
        self.source_dirs = [Path(p) for p in source_dirs or []]
        self.request = request

        self._registered: dict[str, DiscoveredUnit] = {}
        self._discovered: dict[str, DiscoveredUnit] | None = None
        self._instances: dict[str, Unit] = {}

    @property
    def storage_key(self) -> str:
        """Identifier of this category's persisted activation record."""
        return self.category.storage_key

    def set_request(self, request: Any) -> None:
        """Replace the request context passed to units."""
        self.request = request
        for unit in self._instances.values():
            unit.request = request

    def register(self, key: str, unit_class: type[Unit]) -> None:
        """Register a unit class in code, bypassing directory discovery.

        Args:
            key: Unit key (normalized before use)
            unit_class: Unit subclass to instantiate

        Raises:
            ValueError: If the key is invalid or already registered
        """
        canonical = normalize_key(key)
        if canonical is None:
            raise ValueError(f"Invalid unit key: {key!r}")
        if canonical in self._registered:
            raise ValueError(f"Unit '{canonical}' is already registered")

        self._registered[canonical] = DiscoveredUnit(key=canonical, unit_class=unit_class)
        if self._discovered is not None and canonical not in self._discovered:
            self._discovered[canonical] = self._registered[canonical]
        logger.debug("Registered %s unit: %s", self.category.value, canonical)

    def refresh(self) -> None:
        """Drop cached discovery results and instances."""
        self._discovered = None
        self._instances.clear()

    def discover(self) -> dict[str, DiscoveredUnit]:
        """Scan source directories for units.

        The scan runs once; later calls return the cached result.

        Returns:
            Mapping of unit key to discovery info, in discovery order.
        """
        if self._discovered is not None:
            return self._discovered

        discovered: dict[str, DiscoveredUnit] = dict(self._registered)

        for source_dir in self.source_dirs:
            if not source_dir.exists():
                logger.debug("Unit directory does not exist: %s", source_dir)
                continue

            for unit_dir in sorted(source_dir.iterdir()):
                if not unit_dir.is_dir():
                    continue

                manifest_path = unit_dir / self.MANIFEST_FILE
                if not manifest_path.exists():
                    continue

                try:
                    manifest = UnitManifest.from_yaml(manifest_path)
                except ManifestError as e:
                    logger.warning("Skipping unit %s: %s", unit_dir.name, e)
                    continue

                key = normalize_key(manifest.name)
                if key is None:
                    logger.warning(
                        "Skipping unit %s: invalid name %r", unit_dir.name, manifest.name
                    )
                    continue

                if key in discovered:
                    logger.warning("Duplicate %s unit '%s' in %s", self.category.value, key, unit_dir)
                    continue

                discovered[key] = DiscoveredUnit(key=key, path=unit_dir, manifest=manifest)
                logger.debug("Discovered %s unit: %s", self.category.value, key)

        self._discovered = discovered
        return discovered

    def keys(self) -> list[str]:
        """List discoverable unit keys."""
        return list(self.discover())

    def exists(self, key: str) -> bool:
        """Check whether a unit is discoverable."""
        canonical = normalize_key(key)
        return canonical is not None and canonical in self.discover()

    def load(self, key: str) -> Unit:
        """Load a unit instance by key.

        Args:
            key: Unit key

        Returns:
            The unit instance owned by this loader

        Raises:
            UnitNotFoundError: If the key is not discoverable
            UnitLoadError: If the unit module or class cannot be loaded
        """
        canonical = normalize_key(key)
        if canonical is None or canonical not in self.discover():
            raise UnitNotFoundError(f"{self.category.value} unit '{key}' not found")

        if canonical in self._instances:
            return self._instances[canonical]

        entry = self._discovered[canonical]
        unit_class = entry.unit_class or self._load_unit_class(entry)
        entry.unit_class = unit_class

        try:
            unit = unit_class(
                key=canonical,
                category=self.category,
                manifest=entry.manifest,
                request=self.request,
            )
        except Exception as e:
            raise UnitLoadError(f"Failed to instantiate unit '{canonical}': {e}")

        self._instances[canonical] = unit
        return unit

    def list_all(self, initialize_now: bool = False) -> list[tuple[str, Unit]]:
        """Enumerate every discoverable unit.

        Units that fail to load are skipped with a warning.

        Args:
            initialize_now: Call init() on each unit while enumerating

        Returns:
            (key, unit) pairs in discovery order
        """
        units: list[tuple[str, Unit]] = []

        for key in self.discover():
            try:
                unit = self.load(key)
            except UnitLoadError as e:
                logger.warning("Failed to load %s unit '%s': %s", self.category.value, key, e)
                continue

            if initialize_now:
                unit.init()
            units.append((key, unit))

        return units

    def _load_unit_class(self, entry: DiscoveredUnit) -> type[Unit]:
        """Load the unit class named in the manifest."""
        manifest = entry.manifest
        if manifest is None or entry.path is None:
            raise UnitLoadError(f"Unit '{entry.key}' has no manifest")

        module_file = entry.path / manifest.entry
        if not module_file.exists():
            raise UnitLoadError(f"Unit module not found: {module_file}")

        module = self._load_module(f"unithost_{self.category.value}_{entry.key}", module_file)

        unit_class = getattr(module, manifest.unit_class, None)
        if unit_class is None:
            raise UnitLoadError(f"Class '{manifest.unit_class}' not found in {module_file}")
        if not isinstance(unit_class, type) or not issubclass(unit_class, Unit):
            raise UnitLoadError(f"Class '{manifest.unit_class}' must extend Unit")

        return unit_class

    def _load_module(self, module_name: str, file_path: Path) -> Any:
        """Dynamically load a Python module from file."""
        spec = importlib.util.spec_from_file_location(module_name, file_path)
        if spec is None or spec.loader is None:
            raise UnitLoadError(f"Could not load module spec from {file_path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise UnitLoadError(f"Failed to import {file_path}: {e}")
        return module

    def __len__(self) -> int:
        return len(self.discover())

    def __contains__(self, key: str) -> bool:
        return self.exists(key)
