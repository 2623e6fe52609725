"""Option record repositories.

The activation store only needs find_record / persist / flush. Two
implementations ship here: a JSON file repository for standalone hosts and
an in-memory one for tests and ephemeral runs.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Protocol, runtime_checkable

from schemas.activation import OptionRecord

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the option storage cannot be read or written."""

    pass


@runtime_checkable
class OptionsRepository(Protocol):
    """Protocol for option record storage."""

    def find_record(self, identifier: str) -> OptionRecord | None:
        """Return the record for an identifier, or None if there is none."""
        ...

    def persist(self, record: OptionRecord) -> None:
        """Stage a record for writing."""
        ...

    def flush(self) -> None:
        """Write all staged records."""
        ...


class InMemoryOptionsRepository:
    """Option records kept in a dict.

    Records are copied on the way in and out so callers never share state
    with the repository.
    """

    def __init__(self, records: dict[str, OptionRecord] | None = None) -> None:
        self._records: dict[str, OptionRecord] = {
            k: r.model_copy(deep=True) for k, r in (records or {}).items()
        }
        self._pending: dict[str, OptionRecord] = {}

    def find_record(self, identifier: str) -> OptionRecord | None:
        record = self._records.get(identifier)
        return record.model_copy(deep=True) if record else None

    def persist(self, record: OptionRecord) -> None:
        self._pending[record.identifier] = record.model_copy(deep=True)

    def flush(self) -> None:
        self._records.update(self._pending)
        self._pending.clear()


class JsonOptionsRepository:
    """Option records stored in a single JSON file.

    File layout:
        {
          "extensions.active": {
            "properties": {"audit_log": "2024-01-01 00:00:00"},
            "updated_at": "2024-01-01T00:00:00"
          }
        }
    """

    def __init__(self, path: Path) -> None:
        """Initialize the repository.

        Args:
            path: JSON file path (created on first flush)
        """
        self.path = Path(path)
        self._pending: dict[str, OptionRecord] = {}

    def _load(self) -> dict[str, dict]:
        """Load the raw file contents."""
        if not self.path.exists():
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}")

        if not isinstance(data, dict):
            raise StorageError(f"Option file must hold a JSON object: {self.path}")
        return data

    def find_record(self, identifier: str) -> OptionRecord | None:
        data = self._load().get(identifier)
        if data is None:
            return None
        if not isinstance(data, dict) or "properties" not in data:
            # Bare values from older or hand-edited files are read as the properties
            data = {"properties": data}
        return OptionRecord.model_validate({**data, "identifier": identifier})

    def persist(self, record: OptionRecord) -> None:
        self._pending[record.identifier] = record.model_copy(deep=True)

    def flush(self) -> None:
        """Write staged records, replacing the file atomically."""
        if not self._pending:
            return

        data = self._load()
        for identifier, record in self._pending.items():
            data[identifier] = record.model_dump(mode="json", exclude={"identifier"})

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}")

        logger.debug("Flushed %d option record(s) to %s", len(self._pending), self.path)
        self._pending.clear()
