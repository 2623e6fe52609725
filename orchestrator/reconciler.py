"""Activation reconciler.

Folds a category's persisted activation record into the set of live units:
drops unusable entries, re-stamps entries whose timestamp does not parse,
collapses keys to canonical form, prunes units that are no longer
discoverable, writes the record back only when it changed, and initializes
the units that remain active.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from local_storage.activation_store import ActivationStore
from schemas.activation import current_timestamp, parse_timestamp
from units.loader import UnitLoader
from units.naming import normalize_key

logger = logging.getLogger(__name__)


class Reconciler:
    """Reconcile persisted activations of one category at a time."""

    def __init__(
        self,
        store: ActivationStore,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the reconciler.

        Args:
            store: Activation store to read and write records
            now: Clock used to stamp re-activated entries
        """
        self.store = store
        self.now = now

    def reconcile(self, loader: UnitLoader) -> dict[str, str]:
        """Reconcile the loader's category.

        Any unexpected failure is logged and yields an empty result, so a
        broken record never stops the host.

        Args:
            loader: Loader of the category to reconcile

        Returns:
            Active unit keys mapped to their activation timestamps
        """
        try:
            return self._reconcile(loader)
        except Exception:
            logger.exception("Reconciliation of %s failed", loader.category.value)
            return {}

    def _reconcile(self, loader: UnitLoader) -> dict[str, str]:
        category = loader.category
        snapshot = self.store.read(category)

        if not snapshot.decoded.is_valid:
            logger.warning(
                "Activation record %s is malformed (%s), resetting",
                category.storage_key,
                "; ".join(snapshot.decoded.errors),
            )
            result = self.store.write(category, {})
            if not result.ok:
                # Best effort: the next run retries the repair.
                logger.debug("Repair of %s not persisted: %s", category.storage_key, result.error)

        stored = snapshot.entries
        activations = self.restamp(stored)
        activations = self.canonicalize(activations)

        live = loader.list_all(initialize_now=False)
        live_keys = {key for key, _ in live}
        for key in [k for k in activations if k not in live_keys]:
            logger.info("Pruning unknown %s unit '%s'", category.value, key)
            del activations[key]

        if activations != stored:
            result = self.store.write(category, activations)
            if not result.ok:
                # Best effort: keep the reconciled set for this run.
                logger.debug("Activations for %s not persisted: %s", category.value, result.error)

        for key, unit in live:
            if key in activations:
                unit.init()

        return activations

    def restamp(self, stored: dict[Any, Any]) -> dict[str, str]:
        """Drop unusable pairs and re-stamp entries without a valid date.

        Re-stamped entries move behind the untouched ones, keeping their raw
        key.
        """
        activations: dict[str, str] = {}
        fresh: dict[str, str] = {}

        for raw_key, value in stored.items():
            if normalize_key(raw_key) is None or not isinstance(value, str):
                logger.debug("Dropping activation entry %r: %r", raw_key, value)
                continue

            if parse_timestamp(value) is None:
                fresh[raw_key] = current_timestamp(self.now)
                continue

            activations[raw_key] = value

        activations.update(fresh)
        return activations

    @staticmethod
    def canonicalize(activations: dict[str, str]) -> dict[str, str]:
        """Re-key entries by canonical key.

        When two raw keys share a canonical key the first one wins, unlike
        the later-wins merge used everywhere else.
        """
        canonical: dict[str, str] = {}
        for raw_key, value in activations.items():
            key = normalize_key(raw_key)
            if key is None or key in canonical:
                continue
            canonical[key] = value
        return canonical
