"""
In-Memory Repository: process-local implementation of FriendRepository.

Stores copies of records so callers mutating their own Friend objects do not
silently change what is "persisted".
"""

from dataclasses import replace

from tether.domain.models import Friend, Interaction, Tier
from tether.domain.ports import FriendRepository


class InMemoryRepository(FriendRepository):
    def __init__(
        self,
        friends: list[Friend] | None = None,
        interactions: list[Interaction] | None = None,
        tiers: list[Tier] | None = None,
    ):
        self.friends: dict[str, Friend] = {f.id: replace(f) for f in friends or []}
        self.interactions: list[Interaction] = list(interactions or [])
        self.tiers: list[Tier] = list(tiers or [])

    async def load_friends(self) -> list[Friend]:
        return [replace(f) for f in self.friends.values()]

    async def load_interactions(self) -> list[Interaction]:
        return list(self.interactions)

    async def save_friend(self, friend: Friend) -> None:
        self.friends[friend.id] = replace(friend)

    async def append_interaction(self, interaction: Interaction) -> None:
        self.interactions.append(interaction)

    async def delete_friend(self, friend_id: str) -> None:
        self.friends.pop(friend_id, None)
        self.interactions = [i for i in self.interactions if i.friend_id != friend_id]

    async def delete_interaction(self, interaction_id: str) -> None:
        self.interactions = [i for i in self.interactions if i.id != interaction_id]

    async def load_tier_catalog(self) -> list[Tier]:
        return list(self.tiers)

    async def save_tier_catalog(self, tiers: list[Tier]) -> None:
        self.tiers = list(tiers)
