"""
Health aggregator for the friend roster.

This is a pure computation module with no I/O.
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timedelta

from tether.domain.constants import (
    BIRTHDAY_WINDOW_DAYS,
    DEFAULT_HEALTH_WINDOWS,
    EMPTY_TIER_SCORE,
    MONTH_DAYS,
    WEEK_DAYS,
)
from tether.domain.models import Friend, HealthStats, Interaction, Tier

from .birthdays import upcoming_birthdays


def is_overdue(friend: Friend, now: datetime) -> bool:
    """A friend with no due date, or a due date in the past, is overdue."""
    if friend.next_due_at is None:
        return True
    return friend.next_due_at < now


class HealthAggregator:
    """
    Computes roster-wide HealthStats.

    Stateless and side-effect free. Tier health uses fixed recency windows
    rather than each tier's cadence; a tier without a configured window
    falls back to its cadence.
    """

    def __init__(
        self,
        health_windows: dict[str, int] | None = None,
        birthday_window_days: int = BIRTHDAY_WINDOW_DAYS,
    ):
        self._windows = dict(DEFAULT_HEALTH_WINDOWS if health_windows is None else health_windows)
        self._birthday_window = birthday_window_days

    def window_for(self, tier: Tier) -> int:
        return self._windows.get(tier.id, tier.cadence_days)

    def compute(
        self,
        friends: list[Friend],
        tiers: list[Tier],
        interactions: list[Interaction],
        now: datetime,
    ) -> HealthStats:
        last_contacts = self._last_contacts(friends, interactions)
        tier_scores, tier_sizes = self._tier_scores(friends, tiers, last_contacts, now)

        week_start = now - timedelta(days=WEEK_DAYS)
        month_start = now - timedelta(days=MONTH_DAYS)

        streaks = [f.streak_count for f in friends]

        return HealthStats(
            overall_score=self._overall_score(tier_scores, tier_sizes),
            tier_scores=tier_scores,
            total_connections=len(interactions),
            connections_this_week=sum(1 for i in interactions if i.occurred_at >= week_start),
            connections_this_month=sum(1 for i in interactions if i.occurred_at >= month_start),
            longest_streak=max(streaks, default=0),
            current_streak=sum(streaks),
            overdue_count=sum(1 for f in friends if is_overdue(f, now)),
            upcoming_birthdays=len(upcoming_birthdays(friends, now, self._birthday_window)),
        )

    def _last_contacts(
        self, friends: Iterable[Friend], interactions: Iterable[Interaction]
    ) -> dict[str, datetime]:
        """
        Most recent contact per friend, from the log or the friend record.
        """
        latest: dict[str, datetime] = {}
        for interaction in interactions:
            seen = latest.get(interaction.friend_id)
            if seen is None or interaction.occurred_at > seen:
                latest[interaction.friend_id] = interaction.occurred_at

        for friend in friends:
            if friend.last_contact_at is None:
                continue
            seen = latest.get(friend.id)
            if seen is None or friend.last_contact_at > seen:
                latest[friend.id] = friend.last_contact_at

        return latest

    def _tier_scores(
        self,
        friends: list[Friend],
        tiers: list[Tier],
        last_contacts: dict[str, datetime],
        now: datetime,
    ) -> tuple[dict[str, int], dict[str, int]]:
        members: dict[str, list[Friend]] = defaultdict(list)
        for friend in friends:
            members[friend.tier_id].append(friend)

        scores: dict[str, int] = {}
        sizes: dict[str, int] = {}

        for tier in tiers:
            tier_friends = members.get(tier.id, [])
            sizes[tier.id] = len(tier_friends)
            if not tier_friends:
                scores[tier.id] = EMPTY_TIER_SCORE
                continue

            cutoff = now - timedelta(days=self.window_for(tier))
            healthy = 0
            for friend in tier_friends:
                last = last_contacts.get(friend.id)
                if last is not None and last >= cutoff:
                    healthy += 1

            scores[tier.id] = round(healthy / len(tier_friends) * 100)

        return scores, sizes

    def _overall_score(self, scores: dict[str, int], sizes: dict[str, int]) -> int:
        """
        Member-count-weighted mean of tier scores. Empty tiers carry no weight.
        """
        total = sum(sizes.values())
        if total == 0:
            return EMPTY_TIER_SCORE
        weighted = sum(scores[tier_id] * size for tier_id, size in sizes.items())
        return round(weighted / total)
