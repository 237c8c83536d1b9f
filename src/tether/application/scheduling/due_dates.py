"""Due-date computation for friends."""

from collections.abc import Iterable
from datetime import datetime, timedelta

from tether.domain.models import Interaction


def compute_next_due(cadence_days: int, reference: datetime) -> datetime:
    """
    Return the instant a friend becomes due for contact.

    Args:
        cadence_days: The tier's cadence. Validated positive by Tier.
        reference: Last contact time, or creation time if never contacted.
    """
    return reference + timedelta(days=cadence_days)


def latest_contact(interactions: Iterable[Interaction]) -> datetime | None:
    """Most recent interaction timestamp, or None for an empty history."""
    return max((i.occurred_at for i in interactions), default=None)
