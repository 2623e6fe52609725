"""Activation store.

Reads and writes the per-category activation record through an options
repository. Storage problems never escape this module: reads degrade to an
empty snapshot and writes report failure through StoreResult.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Mapping

from local_storage.options import OptionsRepository
from schemas.activation import (
    DecodedActivations,
    OptionRecord,
    current_timestamp,
    decode_activation_map,
)
from units.base import UnitCategory
from units.naming import normalize_key

logger = logging.getLogger(__name__)


@dataclass
class ActivationSnapshot:
    """Activation record of one category as read from storage."""

    category: UnitCategory
    record: OptionRecord | None = None
    decoded: DecodedActivations = field(default_factory=DecodedActivations)

    @property
    def raw(self) -> Any:
        """Stored value before decoding."""
        return self.record.properties if self.record else None

    @property
    def entries(self) -> dict[Any, Any]:
        return self.decoded.entries


@dataclass
class StoreResult:
    """Outcome of a write."""

    ok: bool
    error: Exception | None = None


class ActivationStore:
    """Per-category activation records backed by an options repository."""

    def __init__(
        self,
        repository: OptionsRepository,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the store.

        Args:
            repository: Option record storage
            now: Clock used for activation timestamps and updated_at
        """
        self.repository = repository
        self.now = now

    def read(self, category: UnitCategory) -> ActivationSnapshot:
        """Read a category's activation record.

        Returns:
            Snapshot of the record; empty when missing or unreadable
        """
        try:
            record = self.repository.find_record(category.storage_key)
        except Exception as e:
            logger.warning("Cannot read %s, treating as empty: %s", category.storage_key, e)
            return ActivationSnapshot(category=category)

        if record is None:
            return ActivationSnapshot(category=category)

        return ActivationSnapshot(
            category=category,
            record=record,
            decoded=decode_activation_map(record.properties),
        )

    def write(self, category: UnitCategory, activations: Mapping[str, str]) -> StoreResult:
        """Replace a category's activation map.

        Args:
            category: Unit category
            activations: Complete map of unit key to activation timestamp

        Returns:
            StoreResult; failures are logged, not raised
        """
        identifier = category.storage_key
        try:
            record = self.repository.find_record(identifier)
            if record is None:
                record = OptionRecord(identifier=identifier)
            record.properties = dict(activations)
            record.updated_at = self.now()
            self.repository.persist(record)
            self.repository.flush()
        except Exception as e:
            logger.warning("Cannot write %s: %s", identifier, e)
            return StoreResult(ok=False, error=e)

        logger.debug("Wrote %s (%d active)", identifier, len(activations))
        return StoreResult(ok=True)

    def activate(self, category: UnitCategory, key: str) -> StoreResult:
        """Add a unit to the persisted activations.

        Raises:
            ValueError: If the key is not a valid unit key
        """
        canonical = self._require_key(key)
        activations = self._valid_entries(category)
        activations[canonical] = current_timestamp(self.now)
        return self.write(category, activations)

    def deactivate(self, category: UnitCategory, key: str) -> StoreResult:
        """Remove a unit from the persisted activations.

        Raises:
            ValueError: If the key is not a valid unit key
        """
        canonical = self._require_key(key)
        activations = self._valid_entries(category)
        activations = {k: v for k, v in activations.items() if k != canonical}
        return self.write(category, activations)

    def _valid_entries(self, category: UnitCategory) -> dict[str, str]:
        """Current activations with unusable pairs dropped."""
        activations: dict[str, str] = {}
        for raw_key, value in self.read(category).entries.items():
            key = normalize_key(raw_key)
            if key is None or not isinstance(value, str) or key in activations:
                continue
            activations[key] = value
        return activations

    @staticmethod
    def _require_key(key: str) -> str:
        canonical = normalize_key(key)
        if canonical is None:
            raise ValueError(f"Invalid unit key: {key!r}")
        return canonical
