"""Unit system for optional extensions and add-ons.

Units are discovered per category from unit directories:

    units/extensions/
    └── audit_log/
        ├── manifest.yaml      # name, version, unit_class, entry
        └── unit.py            # class AuditLogUnit(Unit)

Each unit implements two lifecycle calls, init() and after_init().
"""

from units.base import Unit, UnitCategory
from units.loader import UnitLoader, UnitLoadError, UnitNotFoundError
from units.manifest import ManifestError, UnitManifest
from units.naming import is_canonical_key, normalize_key

__all__ = [
    "ManifestError",
    "Unit",
    "UnitCategory",
    "UnitLoadError",
    "UnitLoader",
    "UnitManifest",
    "UnitNotFoundError",
    "is_canonical_key",
    "normalize_key",
]
