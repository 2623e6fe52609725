"""Unit manifest schema.

Defines the structure and validation for unit manifests (manifest.yaml).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


class ManifestError(Exception):
    """Raised when manifest parsing or validation fails."""

    pass


@dataclass
class UnitManifest:
    """Unit manifest containing metadata and entry point.

    Example manifest.yaml:
        name: audit_log
        version: 1.2.0
        description: Record admin actions
        unit_class: AuditLogUnit

    Attributes:
        name: Unit identifier, normalized into the unit key.
        version: Version string (informational only).
        unit_class: Name of the Unit subclass in the entry file.
        entry: Python file holding unit_class, relative to the unit directory.
        author: Unit author name or organization.
        description: Short description of what the unit does.
        requires: Python package dependencies (informational only).
        keywords: Keywords for listing and search.
    """

    name: str
    version: str
    unit_class: str
    entry: str = "unit.py"
    author: str = ""
    description: str = ""
    requires: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate the manifest after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Validate manifest fields."""
        if not self.name:
            raise ManifestError("Unit name is required")
        if not self.version:
            raise ManifestError("Unit version is required")
        if not self.unit_class or not self.unit_class.isidentifier():
            raise ManifestError(f"Invalid unit_class: {self.unit_class!r}")
        if not self.entry.endswith(".py"):
            raise ManifestError(f"Entry must be a Python file: {self.entry}")

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> UnitManifest:
        """Load manifest from a YAML file.

        Args:
            yaml_path: Path to manifest.yaml file.

        Returns:
            Parsed UnitManifest.

        Raises:
            ManifestError: If file is missing or invalid.
        """
        if not yaml_path.exists():
            raise ManifestError(f"Manifest not found: {yaml_path}")

        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ManifestError(f"Invalid YAML in {yaml_path}: {e}")

        if not isinstance(data, dict):
            raise ManifestError(f"Manifest must be a YAML mapping: {yaml_path}")

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UnitManifest:
        """Create manifest from a dictionary.

        Raises:
            ManifestError: If required fields are missing or invalid.
        """
        try:
            return cls(
                name=str(data.get("name", "")),
                version=str(data.get("version", "")),
                unit_class=str(data.get("unit_class", "")),
                entry=str(data.get("entry", "unit.py")),
                author=data.get("author", ""),
                description=data.get("description", ""),
                requires=list(data.get("requires", [])),
                keywords=list(data.get("keywords", [])),
            )
        except (TypeError, ValueError) as e:
            raise ManifestError(f"Invalid manifest data: {e}")
