"""Orchestrator module for unit activation.

- Reconciliation of persisted activation records against live units
- Two-phase lifecycle (init, after_init) across extensions and add-ons
"""

from .reconciler import Reconciler
from .lifecycle import (
    CategoryReport,
    InvalidTransitionError,
    LifecycleOrchestrator,
    LifecycleReport,
    LifecycleState,
    build_orchestrator,
    is_affirmative,
)

__all__ = [
    "CategoryReport",
    "InvalidTransitionError",
    "LifecycleOrchestrator",
    "LifecycleReport",
    "LifecycleState",
    "Reconciler",
    "build_orchestrator",
    "is_affirmative",
]
