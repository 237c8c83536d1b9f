# Domain Package
from .errors import (
    FriendNotFoundError,
    InteractionNotFoundError,
    InvalidCadenceError,
    StorageError,
    TetherError,
    TierNotFoundError,
)
from .models import (
    Friend,
    HealthStats,
    Interaction,
    InteractionType,
    RelationshipHealth,
    Tier,
    UpcomingBirthday,
)
from .ports import Clock, EntitlementProvider, FriendRepository

__all__ = [
    "Tier",
    "Friend",
    "Interaction",
    "InteractionType",
    "HealthStats",
    "UpcomingBirthday",
    "RelationshipHealth",
    "FriendRepository",
    "Clock",
    "EntitlementProvider",
    "TetherError",
    "InvalidCadenceError",
    "FriendNotFoundError",
    "InteractionNotFoundError",
    "TierNotFoundError",
    "StorageError",
]
