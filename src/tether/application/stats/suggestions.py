"""Weekday-pattern hint derived from a friend's recent contacts."""

import calendar
from collections import Counter
from collections.abc import Iterable

from tether.domain.constants import (
    SUGGESTION_MIN_DAY_COUNT,
    SUGGESTION_MIN_INTERACTIONS,
    SUGGESTION_SAMPLE_SIZE,
)
from tether.domain.models import Interaction

SUGGESTION_TEMPLATE = "You usually connect on {day}s"


def suggest_contact_day(
    interactions: Iterable[Interaction],
    sample_size: int = SUGGESTION_SAMPLE_SIZE,
    min_interactions: int = SUGGESTION_MIN_INTERACTIONS,
) -> str | None:
    """
    Name the weekday a friend is most often contacted on, if any repeats.

    Only the sample_size most recent interactions are considered. Ties go to
    the weekday seen first in that newest-first sample.
    """
    history = list(interactions)
    if len(history) < min_interactions:
        return None

    recent = sorted(history, key=lambda i: i.occurred_at, reverse=True)[:sample_size]

    # Counter preserves insertion order, and most_common is stable for ties.
    tally = Counter(i.occurred_at.weekday() for i in recent)
    weekday, count = tally.most_common(1)[0]
    if count < SUGGESTION_MIN_DAY_COUNT:
        return None

    return SUGGESTION_TEMPLATE.format(day=calendar.day_name[weekday])
