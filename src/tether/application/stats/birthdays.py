"""
Birthday lookahead.

Birthdays are stored as free-form strings carrying a month and day; the year,
when present, is ignored. Unparseable values are skipped rather than raised.
"""

import calendar
import logging
import math
import re
from collections.abc import Iterable
from datetime import date, datetime, time

from tether.domain.constants import BIRTHDAY_WINDOW_DAYS
from tether.domain.models import Friend, UpcomingBirthday

logger = logging.getLogger(__name__)

_ISO_RE = re.compile(r"^(?:\d{4}|-)-(\d{1,2})-(\d{1,2})$")  # YYYY-MM-DD or --MM-DD
_SHORT_RE = re.compile(r"^(\d{1,2})-(\d{1,2})$")  # MM-DD
_SLASH_RE = re.compile(r"^(\d{1,2})/(\d{1,2})(?:/\d{2,4})?$")  # MM/DD[/YYYY]


def parse_birthday(value: str | None) -> tuple[int, int] | None:
    """
    Extract (month, day) from a birthday string.

    Returns None for empty or malformed input, including impossible dates
    such as 02-30. Feb 29 is accepted.
    """
    if not value:
        return None

    text = value.strip()
    for pattern in (_ISO_RE, _SHORT_RE, _SLASH_RE):
        match = pattern.match(text)
        if match:
            month, day = int(match.group(1)), int(match.group(2))
            try:
                date(2000, month, day)  # leap year, so Feb 29 validates
            except ValueError:
                return None
            return month, day

    return None


def _occurrence_in(year: int, month: int, day: int) -> date:
    if month == 2 and day == 29 and not calendar.isleap(year):
        return date(year, 2, 28)
    return date(year, month, day)


def next_occurrence(month: int, day: int, today: date) -> date:
    """The first month/day on or after today."""
    candidate = _occurrence_in(today.year, month, day)
    if candidate < today:
        candidate = _occurrence_in(today.year + 1, month, day)
    return candidate


def days_until(occurrence: date, now: datetime) -> int:
    """
    Whole days from now until the start of the occurrence day, rounded up.

    A birthday falling today yields 0.
    """
    start = datetime.combine(occurrence, time.min, tzinfo=now.tzinfo)
    delta_days = (start - now).total_seconds() / 86400.0
    return max(0, math.ceil(delta_days))


def upcoming_birthdays(
    friends: Iterable[Friend],
    now: datetime,
    window_days: int = BIRTHDAY_WINDOW_DAYS,
) -> list[UpcomingBirthday]:
    """
    Birthdays within window_days of now, soonest first.

    Friends without a birthday, or with one that cannot be parsed, are excluded.
    """
    today = now.date()
    results: list[UpcomingBirthday] = []

    for friend in friends:
        if not friend.birthday:
            continue

        parsed = parse_birthday(friend.birthday)
        if parsed is None:
            logger.debug(f"Skipping malformed birthday {friend.birthday!r} for {friend.id}")
            continue

        month, day = parsed
        occurrence = next_occurrence(month, day, today)
        remaining = days_until(occurrence, now)
        if remaining > window_days:
            continue

        results.append(
            UpcomingBirthday(
                friend_id=friend.id,
                friend_name=friend.name,
                month=month,
                day=day,
                next_occurrence=occurrence,
                days_until=remaining,
            )
        )

    results.sort(key=lambda b: b.days_until)
    return results
