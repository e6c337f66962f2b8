"""Shared field validators for request schemas."""

import re

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_hhmm(value: str | None) -> str | None:
    """Accept ``HH:MM`` (and ``HH:MM:SS``, trimmed to minutes)."""
    if value is None:
        return value
    value = value.strip()
    if len(value) == 8 and value[5] == ":":
        value = value[:5]
    if not _HHMM.match(value):
        raise ValueError("Time must be in HH:MM format")
    return value
