"""Unit identifier normalization.

Persisted activation records may hold legacy or hand-edited keys, so every
caller goes through normalize_key() and drops anything it rejects.
"""

import re

CANONICAL_KEY_PATTERN = re.compile(r"^[a-z_][a-z0-9_]*$")


def normalize_key(raw: object) -> str | None:
    """Normalize a raw unit key.

    Args:
        raw: Key as found in config, on disk or in a persisted record.

    Returns:
        The canonical (lowercase) key, or None if the key is unusable.
    """
    if not isinstance(raw, str) or not raw:
        return None

    key = raw.lower()
    if not CANONICAL_KEY_PATTERN.fullmatch(key):
        return None
    return key


def is_canonical_key(value: object) -> bool:
    """Check whether a value is already a canonical key."""
    return isinstance(value, str) and CANONICAL_KEY_PATTERN.fullmatch(value) is not None
