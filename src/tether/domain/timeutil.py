"""Timezone helpers shared by the engine and its adapters."""

from datetime import datetime, timezone


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC; aware ones are returned unchanged."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
