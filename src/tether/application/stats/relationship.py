"""
Per-friend relationship health.

Scores a single friendship from contact recency relative to its tier cadence,
and derives a trend from how the spacing between contacts is changing.
"""

from collections.abc import Iterable
from datetime import datetime

from tether.domain.constants import BIRTHDAY_SOON_DAYS, TREND_MIN_GAPS, TREND_THRESHOLD
from tether.domain.models import Friend, Interaction, RelationshipHealth, Tier

from .birthdays import days_until, next_occurrence, parse_birthday

SECONDS_PER_DAY = 86400.0


def recency_score(days_since: float | None, cadence_days: int) -> int:
    """
    100 while within cadence, then losing 50 points per elapsed cadence.
    """
    if days_since is None:
        return 0
    ratio = days_since / cadence_days
    if ratio <= 1:
        return 100
    return max(0, round(100 - 50 * (ratio - 1)))


def contact_gaps(interactions: Iterable[Interaction]) -> list[float]:
    """Days between consecutive contacts, oldest first."""
    stamps = sorted(i.occurred_at for i in interactions)
    return [
        (later - earlier).total_seconds() / SECONDS_PER_DAY
        for earlier, later in zip(stamps, stamps[1:])
    ]


def contact_trend(gaps: list[float]) -> str:
    if len(gaps) < TREND_MIN_GAPS:
        return "stable"

    half = len(gaps) // 2
    older = gaps[:half]
    recent = gaps[half:]
    older_mean = sum(older) / len(older)
    recent_mean = sum(recent) / len(recent)

    if older_mean == 0:
        return "stable"
    if recent_mean < older_mean * (1 - TREND_THRESHOLD):
        return "improving"
    if recent_mean > older_mean * (1 + TREND_THRESHOLD):
        return "declining"
    return "stable"


def assess_relationship(
    friend: Friend,
    tier: Tier,
    interactions: list[Interaction],
    now: datetime,
) -> RelationshipHealth:
    """
    Build the RelationshipHealth summary for one friend.

    Args:
        friend: The friend being assessed.
        tier: The friend's current tier.
        interactions: That friend's interactions, in any order.
        now: Reference instant.
    """
    stamps = [i.occurred_at for i in interactions]
    if friend.last_contact_at is not None:
        stamps.append(friend.last_contact_at)
    last = max(stamps, default=None)

    days_since: float | None = None
    if last is not None:
        days_since = max(0.0, (now - last).total_seconds() / SECONDS_PER_DAY)

    gaps = contact_gaps(interactions)
    average_gap = round(sum(gaps) / len(gaps), 1) if gaps else None

    suggestions: list[str] = []
    if days_since is None:
        suggestions.append(f"You haven't connected with {friend.name} yet. Say hello!")
    elif days_since > tier.cadence_days:
        overdue_by = int(days_since - tier.cadence_days)
        suggestions.append(
            f"It's been {int(days_since)} days. You're {overdue_by} days past your "
            f"{tier.name} rhythm."
        )

    parsed = parse_birthday(friend.birthday)
    if parsed is not None:
        occurrence = next_occurrence(parsed[0], parsed[1], now.date())
        remaining = days_until(occurrence, now)
        if remaining == 0:
            suggestions.append(f"It's {friend.name}'s birthday today!")
        elif remaining <= BIRTHDAY_SOON_DAYS:
            suggestions.append(f"{friend.name}'s birthday is in {remaining} days.")

    return RelationshipHealth(
        friend_id=friend.id,
        score=recency_score(days_since, tier.cadence_days),
        trend=contact_trend(gaps),
        days_since_contact=int(days_since) if days_since is not None else None,
        average_gap_days=average_gap,
        suggestions=suggestions,
    )
