"""
Domain models for relationship tracking.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from .errors import InvalidCadenceError


class InteractionType(str, Enum):
    """Closed set of ways a contact can happen."""

    CALL = "call"
    TEXT = "text"
    VIDEO_CALL = "video_call"
    IN_PERSON = "in_person"
    SOCIAL_MEDIA = "social_media"
    EMAIL = "email"
    OTHER = "other"


@dataclass(frozen=True)
class Tier:
    """
    A contact-frequency bucket ("orbit") from the tier catalog.

    Attributes:
        id: Stable identifier (e.g. "inner").
        name: Display name.
        cadence_days: Expected days between contacts. Must be a positive integer.
        description: Optional display blurb.
    """

    id: str
    name: str
    cadence_days: int
    description: str = ""

    def __post_init__(self):
        cadence = self.cadence_days
        if isinstance(cadence, bool) or not isinstance(cadence, int) or cadence <= 0:
            raise InvalidCadenceError(
                f"Tier '{self.id}' cadence must be a positive integer, got {cadence!r}"
            )


@dataclass
class Friend:
    """
    A tracked person.

    next_due_at is written on recomputation only; it is not derived lazily
    and may lag behind edits to the tier catalog.

    last_contact_at is the later of the newest interaction and
    last_spoken_estimate, so backdated interactions never move it backwards.
    """

    id: str
    name: str
    tier_id: str
    next_due_at: datetime
    created_at: datetime
    last_contact_at: datetime | None = None  # None means never contacted
    last_spoken_estimate: datetime | None = None  # Set once at creation, never recomputed
    streak_count: int = 0
    birthday: str | None = None  # Month/day, year ignored (e.g. "03-14")
    is_favorite: bool = False


@dataclass(frozen=True)
class Interaction:
    """
    A single logged contact event.

    Attributes:
        id: Interaction identifier.
        friend_id: The friend this contact was with.
        type: How the contact happened.
        occurred_at: When it happened.
        note: Optional free text.
        duration_minutes: Optional length of the contact.
    """

    id: str
    friend_id: str
    type: InteractionType
    occurred_at: datetime
    note: str | None = None
    duration_minutes: int | None = None


@dataclass
class HealthStats:
    """
    Roster-wide health snapshot. Recomputed on every read, never persisted.
    """

    overall_score: int
    tier_scores: dict[str, int] = field(default_factory=dict)

    total_connections: int = 0
    connections_this_week: int = 0
    connections_this_month: int = 0

    longest_streak: int = 0  # Best single-friend streak
    current_streak: int = 0  # Sum of all friends' streaks

    overdue_count: int = 0
    upcoming_birthdays: int = 0


@dataclass(frozen=True)
class UpcomingBirthday:
    friend_id: str
    friend_name: str
    month: int
    day: int
    next_occurrence: date
    days_until: int


@dataclass
class RelationshipHealth:
    """Per-friend health summary shown on a profile."""

    friend_id: str
    score: int
    trend: str  # "improving" | "stable" | "declining"
    days_since_contact: int | None = None
    average_gap_days: float | None = None
    suggestions: list[str] = field(default_factory=list)
