"""
Ports (interfaces) for the engine's collaborators.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import Friend, Interaction, Tier


class FriendRepository(ABC):
    """
    Port for persisting friends, interactions and the tier catalog.

    Implementations:
        - InMemoryRepository: Process-local dictionaries, used in tests.
        - JsonFileRepository: A single JSON document on disk.
    """

    @abstractmethod
    async def load_friends(self) -> list[Friend]:
        pass

    @abstractmethod
    async def load_interactions(self) -> list[Interaction]:
        pass

    @abstractmethod
    async def save_friend(self, friend: Friend) -> None:
        """
        Insert or replace a friend record, keyed by friend.id.
        """
        pass

    @abstractmethod
    async def append_interaction(self, interaction: Interaction) -> None:
        pass

    @abstractmethod
    async def delete_friend(self, friend_id: str) -> None:
        """
        Remove a friend and every interaction that references it.
        """
        pass

    @abstractmethod
    async def delete_interaction(self, interaction_id: str) -> None:
        pass

    @abstractmethod
    async def load_tier_catalog(self) -> list[Tier]:
        """
        Returns:
            The stored catalog, or an empty list if none has been saved yet.
        """
        pass

    @abstractmethod
    async def save_tier_catalog(self, tiers: list[Tier]) -> None:
        pass


class Clock(ABC):
    """Source of "now". Always returns a timezone-aware datetime."""

    @abstractmethod
    def now(self) -> datetime:
        pass


class EntitlementProvider(ABC):
    """Gates premium-only read views (suggestions, full history)."""

    @abstractmethod
    def is_premium(self) -> bool:
        pass
