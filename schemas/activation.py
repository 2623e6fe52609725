"""Activation record schema.

A persisted option record holds, per unit category, a mapping of unit key
to the date-time the unit was activated.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Accepted activation date formats; %z takes "Z" as well as "+01:00"
_ACCEPTED_TIMESTAMP_FORMATS = (
    TIMESTAMP_FORMAT,
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
)

_RAW_ACTIVATION_MAP = TypeAdapter(dict[Any, Any])


class OptionRecord(BaseModel):
    """Persisted option record, one per identifier."""

    identifier: str = Field(..., description="Record identifier, e.g. 'extensions.active'")
    properties: Any = Field(default_factory=dict, description="Stored value")
    updated_at: datetime | None = Field(None, description="Last write time")


@dataclass
class DecodedActivations:
    """Result of decoding a stored activation map.

    entries holds the raw pairs exactly as stored; individual keys and
    values are still unvalidated. errors is non-empty when the stored value
    is not a mapping at all, in which case entries is empty.
    """

    entries: dict[Any, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def decode_activation_map(raw: Any) -> DecodedActivations:
    """Decode a stored activation value.

    None (nothing stored yet) decodes to a valid empty map.
    """
    if raw is None:
        return DecodedActivations()

    try:
        entries = _RAW_ACTIVATION_MAP.validate_python(raw, strict=True)
    except ValidationError as e:
        return DecodedActivations(errors=[err["msg"] for err in e.errors()])

    return DecodedActivations(entries=dict(entries))


def parse_timestamp(value: str) -> datetime | None:
    """Parse an activation timestamp, returning None if it is not a date-time."""
    value = value.strip()
    if not value:
        return None

    for fmt in _ACCEPTED_TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def current_timestamp(now: Callable[[], datetime] = datetime.now) -> str:
    """Format the current time as an activation timestamp.

    Falls back to the coarse system clock when now() fails; never raises.
    """
    try:
        return now().strftime(TIMESTAMP_FORMAT)
    except Exception:
        return time.strftime(TIMESTAMP_FORMAT)
