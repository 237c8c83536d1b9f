from datetime import datetime, timedelta, timezone

import pytest

from tether.application.service import default_tiers
from tether.domain.models import Friend, Interaction, InteractionType
from tether.infrastructure.clock import FixedClock

NOW = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float, now: datetime = NOW) -> datetime:
    return now - timedelta(days=days)


def make_friend(
    friend_id: str = "f1",
    tier_id: str = "inner",
    last_contact_at: datetime | None = None,
    next_due_at: datetime | None = None,
    streak_count: int = 0,
    birthday: str | None = None,
    name: str | None = None,
) -> Friend:
    return Friend(
        id=friend_id,
        name=name or friend_id.upper(),
        tier_id=tier_id,
        next_due_at=next_due_at or NOW + timedelta(days=1),
        created_at=days_ago(365),
        last_contact_at=last_contact_at,
        streak_count=streak_count,
        birthday=birthday,
    )


def make_interaction(
    occurred_at: datetime,
    friend_id: str = "f1",
    interaction_id: str | None = None,
    type: InteractionType = InteractionType.CALL,
) -> Interaction:
    return Interaction(
        id=interaction_id or f"ix-{friend_id}-{occurred_at.isoformat()}",
        friend_id=friend_id,
        type=type,
        occurred_at=occurred_at,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def tiers():
    return default_tiers()


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/logs
    monkeypatch.setenv("HOME", str(home))
    for key in ("TETHER_PREMIUM", "TETHER_DATA_FILE", "TETHER_FREE_HISTORY_DAYS"):
        monkeypatch.delenv(key, raising=False)
    return home
