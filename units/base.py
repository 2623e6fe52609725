"""Base unit class and unit categories."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from units.manifest import UnitManifest


class UnitCategory(str, Enum):
    """Category of optional unit.

    Extensions are always handled before add-ons.
    """

    EXTENSION = "extensions"
    ADDON = "addons"

    @property
    def storage_key(self) -> str:
        """Identifier of the persisted activation record."""
        return f"{self.value}.active"

    @property
    def disable_flag(self) -> str:
        """Name of the flag that turns off persisted activations."""
        return f"database.{self.value}"


class Unit(ABC):
    """Base class for extensions and add-ons.

    Subclasses implement the two lifecycle calls. The host calls init()
    on every active unit first, and after_init() once every unit of both
    categories has been initialized.
    """

    def __init__(
        self,
        key: str,
        category: UnitCategory,
        manifest: UnitManifest | None = None,
        request: Any = None,
    ) -> None:
        """Initialize the unit.

        Args:
            key: Canonical unit key
            category: Category the unit was discovered in
            manifest: Parsed manifest.yaml, if the unit came from disk
            request: Opaque request context forwarded by the loader
        """
        self.key = key
        self.category = category
        self.manifest = manifest
        self.request = request

    @abstractmethod
    def init(self) -> None:
        """First lifecycle phase."""

    @abstractmethod
    def after_init(self) -> None:
        """Second lifecycle phase."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.category.value}:{self.key}>"
