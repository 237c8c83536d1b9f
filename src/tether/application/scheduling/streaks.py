"""
Streak computation.

A streak counts consecutive cadence-respecting contacts reaching back from
the present. The walk starts at "now", so a history whose newest contact is
already too old yields 0 even if older contacts were regular.
"""

from collections.abc import Iterable
from datetime import datetime

from tether.domain.constants import STREAK_TOLERANCE
from tether.domain.models import Interaction

SECONDS_PER_DAY = 86400.0


def compute_streak(
    interactions: Iterable[Interaction],
    cadence_days: int,
    now: datetime,
    tolerance: float = STREAK_TOLERANCE,
) -> int:
    """
    Count contacts, newest first, until a gap exceeds tolerance * cadence.

    Args:
        interactions: A friend's full history, in any order.
        cadence_days: The friend's tier cadence.
        now: The instant the walk starts from.
        tolerance: Multiple of cadence allowed between neighbouring contacts.
    """
    max_gap_days = tolerance * cadence_days
    anchor = now
    streak = 0

    for interaction in sorted(interactions, key=lambda i: i.occurred_at, reverse=True):
        gap_days = (anchor - interaction.occurred_at).total_seconds() / SECONDS_PER_DAY
        if gap_days > max_gap_days:
            break
        streak += 1
        anchor = interaction.occurred_at

    return streak
