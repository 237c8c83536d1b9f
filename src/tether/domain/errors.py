"""Exception hierarchy for the Tether engine."""


class TetherError(Exception):
    """Base class for all engine errors."""


class InvalidCadenceError(TetherError, ValueError):
    """Raised when a tier cadence is not a positive integer."""


class FriendNotFoundError(TetherError, KeyError):
    def __init__(self, friend_id: str):
        super().__init__(friend_id)
        self.friend_id = friend_id

    def __str__(self) -> str:
        return f"Unknown friend: {self.friend_id}"


class TierNotFoundError(TetherError, KeyError):
    def __init__(self, tier_id: str):
        super().__init__(tier_id)
        self.tier_id = tier_id

    def __str__(self) -> str:
        return f"Unknown tier: {self.tier_id}"


class InteractionNotFoundError(TetherError, KeyError):
    def __init__(self, interaction_id: str):
        super().__init__(interaction_id)
        self.interaction_id = interaction_id

    def __str__(self) -> str:
        return f"Unknown interaction: {self.interaction_id}"


class StorageError(TetherError):
    """Raised when persisted data cannot be read back."""
