"""Lifecycle orchestration for extensions and add-ons.

One run walks both categories through:
  allow-list init -> persisted reconciliation -> after_init

Extensions always go before add-ons, and every init of both categories
happens before the first after_init.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Protocol

from local_storage.activation_store import ActivationStore
from local_storage.options import JsonOptionsRepository
from orchestrator.reconciler import Reconciler
from units.base import UnitCategory
from units.loader import UnitLoader, UnitLoadError
from units.naming import normalize_key

if TYPE_CHECKING:
    from settings.config import HostConfig

logger = logging.getLogger(__name__)

# Values accepted as "yes" for the disable flags
AFFIRMATIVE_VALUES: tuple[Any, ...] = ("yes", "true", 1, "1")

CATEGORY_ORDER = (UnitCategory.EXTENSION, UnitCategory.ADDON)


class ConfigProvider(Protocol):
    """Configuration lookup used by the orchestrator."""

    def get(self, key: str, default: Any = None) -> Any:
        ...


class LifecycleState(str, Enum):
    """Orchestrator run states."""

    IDLE = "idle"
    ENUMERATING_CONFIG = "enumerating_config"
    INIT_EXTENSIONS = "init_extensions"
    INIT_ADDONS = "init_addons"
    RECONCILE_EXTENSIONS = "reconcile_extensions"
    RECONCILE_ADDONS = "reconcile_addons"
    AFTER_INIT_EXTENSIONS = "after_init_extensions"
    AFTER_INIT_ADDONS = "after_init_addons"
    DONE = "done"


class InvalidTransitionError(Exception):
    """Raised on a state change the run order does not allow."""

    pass


@dataclass
class CategoryReport:
    """What a run did for one category."""

    allowed: list[str] = field(default_factory=list)
    initialized: list[str] = field(default_factory=list)
    reconciled: dict[str, str] = field(default_factory=dict)
    reconciliation_enabled: bool = True
    active: dict[str, str | None] = field(default_factory=dict)
    after_initialized: list[str] = field(default_factory=list)


@dataclass
class LifecycleReport:
    """Result of a lifecycle run."""

    categories: dict[UnitCategory, CategoryReport] = field(
        default_factory=lambda: {c: CategoryReport() for c in CATEGORY_ORDER}
    )

    def __getitem__(self, category: UnitCategory) -> CategoryReport:
        return self.categories[category]


def is_affirmative(value: Any) -> bool:
    """Check a boolean-like config flag."""
    if value is True:
        return True
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        return value in AFFIRMATIVE_VALUES
    return False


class LifecycleOrchestrator:
    """Run the unit lifecycle once per instance.

    Example:
        >>> orchestrator = build_orchestrator(get_config(), request=request)
        >>> report = orchestrator.run()
        >>> report[UnitCategory.EXTENSION].active
    """

    TRANSITIONS: dict[LifecycleState, LifecycleState] = {
        LifecycleState.IDLE: LifecycleState.ENUMERATING_CONFIG,
        LifecycleState.ENUMERATING_CONFIG: LifecycleState.INIT_EXTENSIONS,
        LifecycleState.INIT_EXTENSIONS: LifecycleState.INIT_ADDONS,
        LifecycleState.INIT_ADDONS: LifecycleState.RECONCILE_EXTENSIONS,
        LifecycleState.RECONCILE_EXTENSIONS: LifecycleState.RECONCILE_ADDONS,
        LifecycleState.RECONCILE_ADDONS: LifecycleState.AFTER_INIT_EXTENSIONS,
        LifecycleState.AFTER_INIT_EXTENSIONS: LifecycleState.AFTER_INIT_ADDONS,
        LifecycleState.AFTER_INIT_ADDONS: LifecycleState.DONE,
    }

    _INIT_STATES = {
        UnitCategory.EXTENSION: LifecycleState.INIT_EXTENSIONS,
        UnitCategory.ADDON: LifecycleState.INIT_ADDONS,
    }
    _RECONCILE_STATES = {
        UnitCategory.EXTENSION: LifecycleState.RECONCILE_EXTENSIONS,
        UnitCategory.ADDON: LifecycleState.RECONCILE_ADDONS,
    }
    _AFTER_INIT_STATES = {
        UnitCategory.EXTENSION: LifecycleState.AFTER_INIT_EXTENSIONS,
        UnitCategory.ADDON: LifecycleState.AFTER_INIT_ADDONS,
    }

    def __init__(
        self,
        config: ConfigProvider,
        loaders: Mapping[UnitCategory, UnitLoader],
        reconciler: Reconciler,
        request: Any = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Provides allow-lists and disable flags
            loaders: One loader per category
            reconciler: Reconciler for persisted activations
            request: Request context forwarded to every loader
        """
        missing = [c.value for c in CATEGORY_ORDER if c not in loaders]
        if missing:
            raise ValueError(f"Missing loaders for: {', '.join(missing)}")

        self.config = config
        self.loaders = dict(loaders)
        self.reconciler = reconciler
        self.request = request

        self.state = LifecycleState.IDLE
        self.report: LifecycleReport | None = None

    def reset(self) -> None:
        """Allow the orchestrator to run again."""
        self.state = LifecycleState.IDLE
        self.report = None

    def run(self) -> LifecycleReport:
        """Run the lifecycle.

        A second call without reset() does nothing and returns the first
        run's report. Exceptions raised by units propagate.
        """
        if self.state != LifecycleState.IDLE:
            logger.debug("Lifecycle already ran (state: %s)", self.state.value)
            return self.report or LifecycleReport()

        report = LifecycleReport()
        self.report = report

        self._transition(LifecycleState.ENUMERATING_CONFIG)
        disable = self.config.get("disable") or {}
        if not isinstance(disable, Mapping):
            disable = {}

        for category in CATEGORY_ORDER:
            category_report = report[category]
            category_report.allowed = self._allow_list(category)
            category_report.reconciliation_enabled = not is_affirmative(
                disable.get(category.disable_flag)
            )
            self.loaders[category].set_request(self.request)

        for category in CATEGORY_ORDER:
            self._transition(self._INIT_STATES[category])
            self._init_allowed(category, report[category])

        for category in CATEGORY_ORDER:
            self._transition(self._RECONCILE_STATES[category])
            category_report = report[category]
            active: dict[str, str | None] = dict.fromkeys(category_report.allowed)
            if category_report.reconciliation_enabled:
                category_report.reconciled = self.reconciler.reconcile(self.loaders[category])
                active.update(category_report.reconciled)
            else:
                logger.info("Persisted %s activations disabled", category.value)
            category_report.active = active

        for category in CATEGORY_ORDER:
            self._transition(self._AFTER_INIT_STATES[category])
            self._after_init(category, report[category])

        self._transition(LifecycleState.DONE)
        return report

    def _transition(self, target: LifecycleState) -> None:
        expected = self.TRANSITIONS.get(self.state)
        if expected != target:
            raise InvalidTransitionError(
                f"Cannot go from {self.state.value} to {target.value}"
            )
        logger.debug("Lifecycle: %s -> %s", self.state.value, target.value)
        self.state = target

    def _allow_list(self, category: UnitCategory) -> list[str]:
        """Read and normalize a category's configured allow-list."""
        configured = self.config.get(category.value) or []
        if isinstance(configured, str):
            configured = [configured]

        allowed: list[str] = []
        for raw in configured:
            key = normalize_key(raw)
            if key is None:
                logger.warning("Ignoring invalid %s key in config: %r", category.value, raw)
                continue
            if key not in allowed:
                allowed.append(key)
        return allowed

    def _init_allowed(self, category: UnitCategory, report: CategoryReport) -> None:
        allowed = set(report.allowed)
        for key, unit in self.loaders[category].list_all(initialize_now=False):
            if key in allowed:
                unit.init()
                report.initialized.append(key)

    def _after_init(self, category: UnitCategory, report: CategoryReport) -> None:
        loader = self.loaders[category]
        for key in report.active:
            if not loader.exists(key):
                logger.debug("Skipping missing %s unit '%s'", category.value, key)
                continue
            try:
                unit = loader.load(key)
            except UnitLoadError as e:
                logger.warning("Skipping %s unit '%s': %s", category.value, key, e)
                continue
            unit.after_init()
            report.after_initialized.append(key)


def build_orchestrator(config: HostConfig, request: Any = None) -> LifecycleOrchestrator:
    """Wire an orchestrator from a HostConfig.

    Args:
        config: Loaded host configuration
        request: Request context forwarded to units
    """
    paths = config.paths
    loaders = {
        UnitCategory.EXTENSION: UnitLoader(
            UnitCategory.EXTENSION, [Path(paths.extensions_dir)], request=request
        ),
        UnitCategory.ADDON: UnitLoader(UnitCategory.ADDON, [Path(paths.addons_dir)], request=request),
    }
    store = ActivationStore(JsonOptionsRepository(Path(paths.storage_path)))
    return LifecycleOrchestrator(config, loaders, Reconciler(store), request=request)
