"""
In-memory roster owned by the engagement service.

Holds the current friends, interaction log and tier catalog. There is a
single writer, so no locking is performed.
"""

from dataclasses import dataclass, field

from tether.domain.errors import FriendNotFoundError, InteractionNotFoundError, TierNotFoundError
from tether.domain.models import Friend, Interaction, Tier


@dataclass
class RosterStore:
    friends: dict[str, Friend] = field(default_factory=dict)
    interactions: list[Interaction] = field(default_factory=list)
    tiers: dict[str, Tier] = field(default_factory=dict)

    def replace(
        self,
        friends: list[Friend],
        interactions: list[Interaction],
        tiers: list[Tier],
    ) -> None:
        """Swap in a freshly loaded snapshot, dropping interactions for unknown friends."""
        self.friends = {f.id: f for f in friends}
        self.interactions = [i for i in interactions if i.friend_id in self.friends]
        self.set_tiers(tiers)

    def set_tiers(self, tiers: list[Tier]) -> None:
        self.tiers = {t.id: t for t in tiers}

    def tier(self, tier_id: str) -> Tier:
        try:
            return self.tiers[tier_id]
        except KeyError:
            raise TierNotFoundError(tier_id) from None

    def friend(self, friend_id: str) -> Friend:
        try:
            return self.friends[friend_id]
        except KeyError:
            raise FriendNotFoundError(friend_id) from None

    def interaction(self, interaction_id: str) -> Interaction:
        for interaction in self.interactions:
            if interaction.id == interaction_id:
                return interaction
        raise InteractionNotFoundError(interaction_id)

    def interactions_for(self, friend_id: str) -> list[Interaction]:
        return [i for i in self.interactions if i.friend_id == friend_id]

    def add_friend(self, friend: Friend) -> None:
        self.friends[friend.id] = friend

    def append_interaction(self, interaction: Interaction) -> None:
        self.friend(interaction.friend_id)
        self.interactions.append(interaction)

    def remove_friend(self, friend_id: str) -> Friend:
        """Remove a friend and cascade to its interactions."""
        friend = self.friend(friend_id)
        del self.friends[friend_id]
        self.interactions = [i for i in self.interactions if i.friend_id != friend_id]
        return friend

    def remove_interaction(self, interaction_id: str) -> Interaction:
        interaction = self.interaction(interaction_id)
        self.interactions = [i for i in self.interactions if i.id != interaction_id]
        return interaction
