"""Schemas module for persisted unit state.

Provides Pydantic models and helpers for:
- Option records
- Activation maps and timestamps
"""

from .activation import (
    TIMESTAMP_FORMAT,
    DecodedActivations,
    OptionRecord,
    current_timestamp,
    decode_activation_map,
    parse_timestamp,
)

__all__ = [
    "TIMESTAMP_FORMAT",
    "DecodedActivations",
    "OptionRecord",
    "current_timestamp",
    "decode_activation_map",
    "parse_timestamp",
]
