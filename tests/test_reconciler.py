"""Tests for persisted activation reconciliation."""

import re

from conftest import FIXED_STAMP, FailingRepository, seed
from local_storage.activation_store import ActivationStore
from orchestrator.reconciler import Reconciler
from units.base import UnitCategory

EXT = UnitCategory.EXTENSION
ADDON = UnitCategory.ADDON
STAMP_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")


class TestReconcile:
    def test_valid_record_is_kept_without_write(self, make_store, make_loader, clock):
        store, repository = make_store(seed(EXT, {"foo": "2024-01-01 00:00:00"}))
        loader = make_loader(EXT, ["foo", "bar"])

        result = Reconciler(store, now=clock).reconcile(loader)

        assert result == {"foo": "2024-01-01 00:00:00"}
        assert repository.writes == []

    def test_initializes_active_units_only(self, make_store, make_loader, call_log, clock):
        store, _ = make_store(seed(EXT, {"bar": "2024-01-01 00:00:00"}))
        loader = make_loader(EXT, ["foo", "bar"])

        Reconciler(store, now=clock).reconcile(loader)

        assert call_log == [("init", "extensions", "bar")]

    def test_no_record_means_nothing_active(self, make_store, make_loader, call_log, clock):
        store, repository = make_store()
        loader = make_loader(EXT, ["foo"])

        assert Reconciler(store, now=clock).reconcile(loader) == {}
        assert repository.writes == []
        assert call_log == []

    def test_legacy_entry_is_restamped(self, make_store, make_loader, clock):
        store, repository = make_store(seed(EXT, {"Foo": "not-a-date"}))
        loader = make_loader(EXT, ["foo"])

        result = Reconciler(store, now=clock).reconcile(loader)

        assert result == {"foo": FIXED_STAMP}
        assert len(repository.writes) == 1
        assert repository.properties("extensions.active") == {"foo": FIXED_STAMP}

    def test_key_with_trailing_newline_is_dropped(self, make_store, make_loader, clock):
        store, repository = make_store(seed(EXT, {"Foo\n": "2024-01-01 00:00:00"}))
        loader = make_loader(EXT, ["foo"])

        result = Reconciler(store, now=clock).reconcile(loader)

        assert result == {}
        assert repository.properties("extensions.active") == {}

    def test_idempotent(self, make_store, make_loader, clock):
        store, repository = make_store(seed(EXT, {"Foo": "2024-01-01 00:00:00", "bar": "later"}))
        loader = make_loader(EXT, ["foo", "bar"])
        reconciler = Reconciler(store, now=clock)

        first = reconciler.reconcile(loader)
        record_after_first = repository.properties("extensions.active")
        second = reconciler.reconcile(loader)

        assert first == second == {"foo": "2024-01-01 00:00:00", "bar": FIXED_STAMP}
        assert repository.properties("extensions.active") == record_after_first
        assert len(repository.writes) == 1

    def test_unknown_units_are_pruned(self, make_store, make_loader, clock):
        store, repository = make_store(
            seed(EXT, {"foo": "2024-01-01 00:00:00", "ghost": "2024-01-01 00:00:00"})
        )
        loader = make_loader(EXT, ["foo"])

        result = Reconciler(store, now=clock).reconcile(loader)

        assert result == {"foo": "2024-01-01 00:00:00"}
        assert "ghost" not in repository.properties("extensions.active")
        assert len(repository.writes) == 1

    def test_unusable_entries_are_dropped(self, make_store, make_loader, clock):
        store, repository = make_store(
            seed(
                EXT,
                {
                    "ok": "2024-01-01 00:00:00",
                    "foo": 5,
                    3: "2024-01-01 00:00:00",
                    "bad-key": "2024-01-01 00:00:00",
                    "": "2024-01-01 00:00:00",
                    "none": None,
                },
            )
        )
        loader = make_loader(EXT, ["ok", "foo", "none"])

        result = Reconciler(store, now=clock).reconcile(loader)

        assert result == {"ok": "2024-01-01 00:00:00"}
        assert repository.properties("extensions.active") == {"ok": "2024-01-01 00:00:00"}


class TestCanonicalCollapse:
    """Raw keys that share a canonical key: the first one in record order wins."""

    def test_first_seen_wins(self, make_store, make_loader, clock):
        store, repository = make_store(
            seed(EXT, {"Foo": "2024-01-01 00:00:00", "foo": "2024-06-01 00:00:00"})
        )
        loader = make_loader(EXT, ["foo"])

        result = Reconciler(store, now=clock).reconcile(loader)

        assert result == {"foo": "2024-01-01 00:00:00"}
        assert repository.properties("extensions.active") == {"foo": "2024-01-01 00:00:00"}

    def test_restamped_entries_are_seen_last(self, make_store, make_loader, clock):
        store, _ = make_store(seed(EXT, {"Foo": "not-a-date", "foo": "2024-06-01 00:00:00"}))
        loader = make_loader(EXT, ["foo"])

        result = Reconciler(store, now=clock).reconcile(loader)

        assert result == {"foo": "2024-06-01 00:00:00"}

    def test_canonicalize_helper(self):
        assert Reconciler.canonicalize({"A": "1", "a": "2", "b": "3", "B": "4"}) == {"a": "1", "b": "3"}


class TestRepair:
    def test_malformed_record_is_reset(self, make_store, make_loader, call_log, clock):
        store, repository = make_store(seed(EXT, ["foo", "bar"]))
        loader = make_loader(EXT, ["foo"])

        result = Reconciler(store, now=clock).reconcile(loader)

        assert result == {}
        assert len(repository.writes) == 1
        assert repository.properties("extensions.active") == {}
        assert call_log == []

    def test_failed_repair_is_ignored(self, make_loader, clock):
        repository = FailingRepository(seed(EXT, "garbage"), fail_write=True)
        loader = make_loader(EXT, ["foo"])

        result = Reconciler(ActivationStore(repository), now=clock).reconcile(loader)

        assert result == {}
        assert repository.properties("extensions.active") == "garbage"

    def test_failed_write_keeps_result(self, make_loader, call_log, clock):
        repository = FailingRepository(seed(EXT, {"Foo": "2024-01-01 00:00:00"}), fail_write=True)
        loader = make_loader(EXT, ["foo"])

        result = Reconciler(ActivationStore(repository), now=clock).reconcile(loader)

        assert result == {"foo": "2024-01-01 00:00:00"}
        assert call_log == [("init", "extensions", "foo")]

    def test_read_failure_means_nothing_active(self, make_loader, clock):
        repository = FailingRepository(fail_read=True)
        loader = make_loader(ADDON, ["foo"])

        assert Reconciler(ActivationStore(repository), now=clock).reconcile(loader) == {}


class TestFailurePolicy:
    def test_unexpected_error_yields_empty(self, make_store, make_loader, clock):
        store, _ = make_store(seed(EXT, {"foo": "2024-01-01 00:00:00"}))
        loader = make_loader(EXT, ["foo"])

        def explode(initialize_now=False):
            raise RuntimeError("scan failed")

        loader.list_all = explode
        assert Reconciler(store, now=clock).reconcile(loader) == {}

    def test_clock_failure_falls_back(self, make_store, make_loader):
        store, _ = make_store(seed(EXT, {"foo": "garbage"}))
        loader = make_loader(EXT, ["foo"])

        def broken_clock():
            raise OSError("no clock")

        result = Reconciler(store, now=broken_clock).reconcile(loader)

        assert STAMP_PATTERN.match(result["foo"])
