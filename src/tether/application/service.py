"""
Engagement Service: Application layer orchestrator.

Handles roster events (friend added, interaction logged, tier changed, friend
removed), recomputes derived friend state, and serves the read-side views.
"""

import logging
from collections.abc import Awaitable
from datetime import datetime, timedelta

from tether.domain.constants import DEFAULT_TIERS
from tether.domain.models import (
    Friend,
    HealthStats,
    Interaction,
    InteractionType,
    RelationshipHealth,
    Tier,
    UpcomingBirthday,
)
from tether.domain.ports import Clock, EntitlementProvider, FriendRepository
from tether.domain.timeutil import as_utc

from .config import AppConfig
from .id_service import generate_friend_id, generate_interaction_id
from .roster import RosterStore
from .scheduling import compute_next_due, compute_streak, latest_contact
from .stats import (
    HealthAggregator,
    assess_relationship,
    is_overdue,
    suggest_contact_day,
    upcoming_birthdays,
)

logger = logging.getLogger(__name__)


def default_tiers() -> list[Tier]:
    return [
        Tier(id=tier_id, name=name, cadence_days=cadence, description=description)
        for tier_id, name, cadence, description in DEFAULT_TIERS
    ]


class EngagementService:
    """
    Owns the in-memory roster and keeps each friend's derived state current.

    Writes are optimistic: the roster is updated first, then persisted.
    Persistence failures are logged and the in-memory state is kept.

    Follows Dependency Inversion: depends on the FriendRepository, Clock and
    EntitlementProvider abstractions, not concrete adapters.
    """

    def __init__(
        self,
        repository: FriendRepository,
        clock: Clock,
        entitlement: EntitlementProvider,
        config: AppConfig | None = None,
        store: RosterStore | None = None,
    ):
        """
        Args:
            repository: The persistence port.
            clock: Source of "now".
            entitlement: Gates suggestions and full interaction history.
            config: Engine tuning; defaults are used if not provided.
            store: Optional pre-populated roster.
        """
        self._repo = repository
        self._clock = clock
        self._entitlement = entitlement
        self._config = config or AppConfig()
        self.store = store or RosterStore()
        self._health = HealthAggregator(
            health_windows=self._config.health_windows,
            birthday_window_days=self._config.birthday_window_days,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """
        Populate the roster from persistence.

        Seeds and saves the default tier catalog when none is stored.
        """
        tiers = await self._repo.load_tier_catalog()
        if not tiers:
            tiers = default_tiers()
            await self._persist("save default tier catalog", self._repo.save_tier_catalog(tiers))

        friends = await self._repo.load_friends()
        interactions = await self._repo.load_interactions()
        self.store.replace(friends, interactions, tiers)
        logger.info(
            f"Loaded {len(self.store.friends)} friends, "
            f"{len(self.store.interactions)} interactions, {len(tiers)} tiers"
        )

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def add_friend(
        self,
        name: str,
        tier_id: str,
        birthday: str | None = None,
        last_spoken_at: datetime | None = None,
        is_favorite: bool = False,
    ) -> Friend:
        """
        Add a friend, scheduling the first due date from the tier cadence.

        Args:
            last_spoken_at: Optional estimate of the last contact before tracking began.
        """
        tier = self.store.tier(tier_id)
        now = self._clock.now()
        last_spoken_at = as_utc(last_spoken_at)
        reference = last_spoken_at or now

        friend = Friend(
            id=generate_friend_id(),
            name=name,
            tier_id=tier.id,
            next_due_at=compute_next_due(tier.cadence_days, reference),
            created_at=now,
            last_contact_at=last_spoken_at,
            last_spoken_estimate=last_spoken_at,
            birthday=birthday,
            is_favorite=is_favorite,
        )
        self.store.add_friend(friend)
        logger.info(f"Added friend {friend.id} to tier '{tier.id}'")

        await self._persist(f"save friend {friend.id}", self._repo.save_friend(friend))
        return friend

    async def log_interaction(
        self,
        friend_id: str,
        type: InteractionType | str,
        occurred_at: datetime | None = None,
        note: str | None = None,
        duration_minutes: int | None = None,
    ) -> Interaction:
        """
        Append an interaction and recompute the friend's due date and streak.

        The recomputation sees a roster that already contains the new interaction.
        The friend and its tier are resolved first, so a failed lookup leaves
        the roster untouched.
        """
        friend = self.store.friend(friend_id)
        self.store.tier(friend.tier_id)
        interaction = Interaction(
            id=generate_interaction_id(),
            friend_id=friend.id,
            type=InteractionType(type),
            occurred_at=as_utc(occurred_at) or self._clock.now(),
            note=note,
            duration_minutes=duration_minutes,
        )
        self.store.append_interaction(interaction)
        self._recompute(friend)
        logger.info(f"Logged {interaction.type.value} with {friend.id}")

        await self._persist(
            f"append interaction {interaction.id}", self._repo.append_interaction(interaction)
        )
        await self._persist(f"save friend {friend.id}", self._repo.save_friend(friend))
        return interaction

    async def change_tier(self, friend_id: str, tier_id: str) -> Friend:
        """
        Move a friend to another tier and reschedule its due date.

        Reassigning to the current tier is a no-op.
        """
        friend = self.store.friend(friend_id)
        if friend.tier_id == tier_id:
            return friend

        tier = self.store.tier(tier_id)
        friend.tier_id = tier.id
        friend.next_due_at = compute_next_due(
            tier.cadence_days, friend.last_contact_at or friend.created_at
        )
        logger.info(f"Moved {friend.id} to tier '{tier.id}'")

        await self._persist(f"save friend {friend.id}", self._repo.save_friend(friend))
        return friend

    async def delete_friend(self, friend_id: str) -> None:
        friend = self.store.remove_friend(friend_id)
        logger.info(f"Removed friend {friend.id}")
        await self._persist(f"delete friend {friend.id}", self._repo.delete_friend(friend.id))

    async def remove_interaction(self, interaction_id: str) -> Friend:
        """
        Remove an interaction and recompute the friend it belonged to.
        """
        interaction = self.store.remove_interaction(interaction_id)
        friend = self.store.friend(interaction.friend_id)
        self._recompute(friend)

        await self._persist(
            f"delete interaction {interaction.id}", self._repo.delete_interaction(interaction.id)
        )
        await self._persist(f"save friend {friend.id}", self._repo.save_friend(friend))
        return friend

    async def recompute(self, friend_id: str) -> Friend:
        """Explicitly recompute and persist one friend's derived state."""
        friend = self.store.friend(friend_id)
        self._recompute(friend)
        await self._persist(f"save friend {friend.id}", self._repo.save_friend(friend))
        return friend

    async def update_tier_catalog(self, tiers: list[Tier]) -> None:
        """
        Replace the tier catalog.

        Existing due dates are left as they are until the next recompute trigger.
        """
        new_ids = {t.id for t in tiers}
        orphaned = {f.tier_id for f in self.store.friends.values()} - new_ids
        if orphaned:
            logger.warning(f"Tier catalog no longer contains tiers in use: {sorted(orphaned)}")

        self.store.set_tiers(tiers)
        await self._persist("save tier catalog", self._repo.save_tier_catalog(tiers))

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def health_stats(self) -> HealthStats:
        return self._health.compute(
            list(self.store.friends.values()),
            list(self.store.tiers.values()),
            self.store.interactions,
            self._clock.now(),
        )

    def upcoming_birthdays(self) -> list[UpcomingBirthday]:
        return upcoming_birthdays(
            self.store.friends.values(),
            self._clock.now(),
            self._config.birthday_window_days,
        )

    def overdue_friends(self) -> list[Friend]:
        """Overdue friends, longest overdue first."""
        now = self._clock.now()
        overdue = [f for f in self.store.friends.values() if is_overdue(f, now)]
        return sorted(overdue, key=lambda f: f.next_due_at)

    def suggestion(self, friend_id: str) -> str | None:
        """Weekday hint for a friend. Premium only."""
        self.store.friend(friend_id)
        if not self._entitlement.is_premium():
            return None
        return suggest_contact_day(
            self.store.interactions_for(friend_id),
            sample_size=self._config.suggestion_sample_size,
            min_interactions=self._config.suggestion_min_interactions,
        )

    def relationship_health(self, friend_id: str) -> RelationshipHealth:
        friend = self.store.friend(friend_id)
        return assess_relationship(
            friend,
            self.store.tier(friend.tier_id),
            self.store.interactions_for(friend_id),
            self._clock.now(),
        )

    def visible_interactions(self, friend_id: str) -> list[Interaction]:
        """
        A friend's interactions, newest first.

        Without premium, only the trailing free_history_days are returned.
        """
        self.store.friend(friend_id)
        history = sorted(
            self.store.interactions_for(friend_id),
            key=lambda i: i.occurred_at,
            reverse=True,
        )
        if self._entitlement.is_premium():
            return history

        cutoff = self._clock.now() - timedelta(days=self._config.free_history_days)
        return [i for i in history if i.occurred_at >= cutoff]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _recompute(self, friend: Friend) -> None:
        """
        Refresh last contact, due date and streak from the friend's history.
        """
        tier = self.store.tier(friend.tier_id)
        history = self.store.interactions_for(friend.id)

        contacts = [c for c in (latest_contact(history), friend.last_spoken_estimate) if c]
        friend.last_contact_at = max(contacts, default=None)

        friend.next_due_at = compute_next_due(
            tier.cadence_days, friend.last_contact_at or friend.created_at
        )
        friend.streak_count = compute_streak(
            history,
            tier.cadence_days,
            self._clock.now(),
            tolerance=self._config.streak_tolerance,
        )
        logger.debug(
            f"Recomputed {friend.id}: due={friend.next_due_at.isoformat()} "
            f"streak={friend.streak_count}"
        )

    async def _persist(self, action: str, write: Awaitable[None]) -> None:
        try:
            await write
        except Exception as e:
            logger.warning(f"Failed to {action}: {e}")
