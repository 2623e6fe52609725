"""Local storage for unit activation records.

Activation records are kept as option records, one per unit category,
in a JSON file by default.
"""

from local_storage.activation_store import ActivationSnapshot, ActivationStore, StoreResult
from local_storage.options import (
    InMemoryOptionsRepository,
    JsonOptionsRepository,
    OptionsRepository,
    StorageError,
)

__all__ = [
    "ActivationSnapshot",
    "ActivationStore",
    "InMemoryOptionsRepository",
    "JsonOptionsRepository",
    "OptionsRepository",
    "StorageError",
    "StoreResult",
]
