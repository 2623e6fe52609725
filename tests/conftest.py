"""Shared fixtures for the unithost test suite."""

from __future__ import annotations

from datetime import datetime

import pytest

from local_storage.activation_store import ActivationStore
from local_storage.options import InMemoryOptionsRepository
from schemas.activation import OptionRecord
from units.base import Unit, UnitCategory
from units.loader import UnitLoader

FIXED_NOW = datetime(2025, 3, 1, 12, 30, 45)
FIXED_STAMP = "2025-03-01 12:30:45"


class CountingRepository(InMemoryOptionsRepository):
    """In-memory repository that counts persisted records."""

    def __init__(self, records: dict | None = None) -> None:
        super().__init__(records)
        self.writes: list[OptionRecord] = []

    def persist(self, record: OptionRecord) -> None:
        self.writes.append(record.model_copy(deep=True))
        super().persist(record)

    def properties(self, identifier: str):
        record = self.find_record(identifier)
        return record.properties if record else None


class FailingRepository(CountingRepository):
    """Repository whose reads and/or writes raise."""

    def __init__(self, records: dict | None = None, fail_read: bool = False, fail_write: bool = True):
        super().__init__(records)
        self.fail_read = fail_read
        self.fail_write = fail_write

    def find_record(self, identifier: str):
        if self.fail_read:
            raise OSError("storage offline")
        return super().find_record(identifier)

    def flush(self) -> None:
        if self.fail_write:
            raise OSError("disk full")
        super().flush()


def seed(category: UnitCategory, properties) -> dict[str, OptionRecord]:
    """Build repository contents holding one activation record."""
    return {
        category.storage_key: OptionRecord(
            identifier=category.storage_key, properties=properties
        )
    }


def recording_unit_class(log: list[tuple[str, str, str]]) -> type[Unit]:
    """Create a Unit subclass that records lifecycle calls into log."""

    class RecordingUnit(Unit):
        def init(self) -> None:
            log.append(("init", self.category.value, self.key))

        def after_init(self) -> None:
            log.append(("after_init", self.category.value, self.key))

    return RecordingUnit


@pytest.fixture
def clock():
    """Clock returning a fixed time."""
    return lambda: FIXED_NOW


@pytest.fixture
def call_log() -> list[tuple[str, str, str]]:
    """Ordered record of lifecycle calls made on recording units."""
    return []


@pytest.fixture
def make_loader(call_log):
    """Factory for loaders with recording units registered in code."""

    def _make(category: UnitCategory, keys: list[str]) -> UnitLoader:
        loader = UnitLoader(category)
        for key in keys:
            loader.register(key, recording_unit_class(call_log))
        return loader

    return _make


@pytest.fixture
def make_store(clock):
    """Factory for an activation store over a counting repository."""

    def _make(records: dict | None = None) -> tuple[ActivationStore, CountingRepository]:
        repository = CountingRepository(records)
        return ActivationStore(repository, now=clock), repository

    return _make
