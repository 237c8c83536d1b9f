"""Tests for the EngagementService event handlers and read views."""

import calendar
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from conftest import NOW, days_ago, make_friend, make_interaction

from tether.application.config import AppConfig
from tether.application.service import EngagementService
from tether.domain.errors import (
    FriendNotFoundError,
    InteractionNotFoundError,
    TierNotFoundError,
)
from tether.domain.models import InteractionType, Tier
from tether.infrastructure.adapters.memory_store import InMemoryRepository
from tether.infrastructure.clock import StaticEntitlement


@pytest.fixture(autouse=True)
def isolated_home(mock_home):
    return mock_home


@pytest.fixture
def repo(tiers):
    return InMemoryRepository(tiers=tiers)


def build_service(repo, clock, premium=False, **config):
    return EngagementService(
        repository=repo,
        clock=clock,
        entitlement=StaticEntitlement(premium),
        config=AppConfig(**config),
    )


@pytest_asyncio.fixture
async def service(repo, clock):
    svc = build_service(repo, clock)
    await svc.load()
    return svc


# --- Lifecycle ---


@pytest.mark.asyncio
async def test_load_seeds_default_tiers(clock):
    repo = InMemoryRepository()
    svc = build_service(repo, clock)

    await svc.load()

    assert set(svc.store.tiers) == {"inner", "close", "catchup"}
    assert [t.id for t in repo.tiers] == ["inner", "close", "catchup"]


@pytest.mark.asyncio
async def test_load_drops_orphan_interactions(clock, tiers):
    repo = InMemoryRepository(
        friends=[make_friend("a")],
        interactions=[
            make_interaction(days_ago(1), friend_id="a"),
            make_interaction(days_ago(1), friend_id="ghost"),
        ],
        tiers=tiers,
    )
    svc = build_service(repo, clock)
    await svc.load()

    assert len(svc.store.interactions) == 1


# --- Add friend ---


@pytest.mark.asyncio
async def test_add_friend_schedules_from_now(service, repo):
    friend = await service.add_friend("Ana", "inner", birthday="03-14")

    assert friend.id.startswith("friend_")
    assert friend.created_at == NOW
    assert friend.last_contact_at is None
    assert friend.next_due_at == NOW + timedelta(days=7)
    assert friend.streak_count == 0
    assert repo.friends[friend.id].name == "Ana"


@pytest.mark.asyncio
async def test_add_friend_uses_last_spoken_estimate(service):
    spoken = days_ago(20)
    friend = await service.add_friend("Ben", "close", last_spoken_at=spoken)

    assert friend.last_contact_at == spoken
    assert friend.next_due_at == spoken + timedelta(days=30)


@pytest.mark.asyncio
async def test_add_friend_unknown_tier(service):
    with pytest.raises(TierNotFoundError):
        await service.add_friend("Cy", "weekly")


# --- Log interaction ---


@pytest.mark.asyncio
async def test_log_interaction_recomputes_due_and_streak(service, repo):
    friend = await service.add_friend("Ana", "inner")

    interaction = await service.log_interaction(friend.id, InteractionType.CALL)

    assert interaction.occurred_at == NOW
    assert friend.last_contact_at == NOW
    assert friend.next_due_at == NOW + timedelta(days=7)
    assert friend.streak_count == 1
    assert repo.interactions == [interaction]
    assert repo.friends[friend.id].streak_count == 1


@pytest.mark.asyncio
async def test_log_interaction_accepts_string_type(service):
    friend = await service.add_friend("Ana", "inner")
    interaction = await service.log_interaction(friend.id, "in_person", occurred_at=days_ago(1))
    assert interaction.type is InteractionType.IN_PERSON


@pytest.mark.asyncio
async def test_streak_builds_over_regular_contacts(service):
    friend = await service.add_friend("Ana", "inner")

    for d in (13, 6, 0):
        await service.log_interaction(friend.id, "text", occurred_at=days_ago(d))

    assert friend.streak_count == 3
    assert friend.next_due_at == NOW + timedelta(days=7)

    await service.log_interaction(friend.id, "text", occurred_at=days_ago(40))
    assert friend.streak_count == 3


@pytest.mark.asyncio
async def test_backdated_interaction_keeps_latest_contact(service):
    friend = await service.add_friend("Ana", "close")
    await service.log_interaction(friend.id, "call", occurred_at=days_ago(2))
    await service.log_interaction(friend.id, "call", occurred_at=days_ago(9))

    assert friend.last_contact_at == days_ago(2)
    assert friend.next_due_at == days_ago(2) + timedelta(days=30)


@pytest.mark.asyncio
async def test_backdated_interaction_keeps_last_spoken_estimate(service):
    friend = await service.add_friend("Ana", "inner", last_spoken_at=days_ago(2))

    await service.log_interaction(friend.id, "call", occurred_at=days_ago(10))

    assert friend.last_contact_at == days_ago(2)
    assert friend.next_due_at == days_ago(2) + timedelta(days=7)
    assert friend not in service.overdue_friends()
    assert service.health_stats().tier_scores["inner"] == 100


@pytest.mark.asyncio
async def test_removing_interaction_falls_back_to_last_spoken_estimate(service):
    friend = await service.add_friend("Ana", "close", last_spoken_at=days_ago(20))
    newer = await service.log_interaction(friend.id, "call", occurred_at=days_ago(1))
    assert friend.last_contact_at == days_ago(1)

    await service.remove_interaction(newer.id)

    assert friend.last_contact_at == days_ago(20)
    assert friend.next_due_at == days_ago(20) + timedelta(days=30)


@pytest.mark.asyncio
async def test_naive_datetimes_are_treated_as_utc(service):
    naive = days_ago(3).replace(tzinfo=None)
    friend = await service.add_friend("Ana", "inner", last_spoken_at=naive)
    interaction = await service.log_interaction(friend.id, "call", occurred_at=naive)

    assert friend.last_contact_at == days_ago(3)
    assert interaction.occurred_at.tzinfo is not None
    assert service.overdue_friends() == []
    assert service.health_stats().connections_this_week == 1


@pytest.mark.asyncio
async def test_log_interaction_unknown_friend(service):
    with pytest.raises(FriendNotFoundError):
        await service.log_interaction("nobody", "call")


@pytest.mark.asyncio
async def test_log_interaction_is_visible_to_stats_immediately(service):
    friend = await service.add_friend("Ana", "inner")
    assert service.health_stats().tier_scores["inner"] == 0

    await service.log_interaction(friend.id, "call")

    stats = service.health_stats()
    assert stats.tier_scores["inner"] == 100
    assert stats.connections_this_week == 1
    assert stats.longest_streak == 1


# --- Persistence failures ---


@pytest.mark.asyncio
async def test_persistence_failure_keeps_optimistic_state(service, repo, caplog):
    friend = await service.add_friend("Ana", "inner")
    repo.append_interaction = AsyncMock(side_effect=OSError("disk full"))

    await service.log_interaction(friend.id, "call")

    assert friend.streak_count == 1
    assert len(service.store.interactions_for(friend.id)) == 1
    assert "disk full" in caplog.text


# --- Tier changes ---


@pytest.mark.asyncio
async def test_change_tier_reschedules_from_last_contact(service):
    friend = await service.add_friend("Ana", "inner")
    await service.log_interaction(friend.id, "call", occurred_at=days_ago(3))

    await service.change_tier(friend.id, "catchup")

    assert friend.tier_id == "catchup"
    assert friend.next_due_at == days_ago(3) + timedelta(days=90)


@pytest.mark.asyncio
async def test_change_tier_without_contact_uses_creation_time(service, clock):
    friend = await service.add_friend("Ana", "inner")
    clock.advance(days=5)

    await service.change_tier(friend.id, "close")

    assert friend.next_due_at == NOW + timedelta(days=30)


@pytest.mark.asyncio
async def test_same_tier_is_a_no_op(service, repo, clock):
    friend = await service.add_friend("Ana", "inner")
    await service.log_interaction(friend.id, "call", occurred_at=days_ago(1))
    before = friend.next_due_at
    clock.advance(days=3)
    repo.save_friend = AsyncMock()

    await service.change_tier(friend.id, "inner")

    assert friend.next_due_at == before
    repo.save_friend.assert_not_called()


@pytest.mark.asyncio
async def test_change_to_unknown_tier(service):
    friend = await service.add_friend("Ana", "inner")
    with pytest.raises(TierNotFoundError):
        await service.change_tier(friend.id, "weekly")
    assert friend.tier_id == "inner"


# --- Tier catalog ---


@pytest.mark.asyncio
async def test_catalog_edit_does_not_recompute_due_dates(service, repo):
    friend = await service.add_friend("Ana", "inner")
    before = friend.next_due_at

    await service.update_tier_catalog(
        [
            Tier(id="inner", name="Favorites", cadence_days=3),
            Tier(id="close", name="Friends", cadence_days=30),
            Tier(id="catchup", name="Acquaintances", cadence_days=90),
        ]
    )

    assert friend.next_due_at == before
    assert repo.tiers[0].cadence_days == 3

    await service.recompute(friend.id)
    assert friend.next_due_at == NOW + timedelta(days=3)


@pytest.mark.asyncio
async def test_catalog_edit_warns_about_orphaned_tiers(service, caplog):
    await service.add_friend("Ana", "inner")
    await service.update_tier_catalog([Tier(id="close", name="Friends", cadence_days=30)])
    assert "inner" in caplog.text


@pytest.mark.asyncio
async def test_log_interaction_for_orphaned_tier_leaves_roster_untouched(service, repo):
    friend = await service.add_friend("Ana", "inner")
    await service.update_tier_catalog([Tier(id="close", name="Friends", cadence_days=30)])

    with pytest.raises(TierNotFoundError):
        await service.log_interaction(friend.id, "call")

    assert service.store.interactions == []
    assert repo.interactions == []
    assert service.health_stats().total_connections == 0


# --- Deletion ---


@pytest.mark.asyncio
async def test_delete_friend_cascades(service, repo):
    friend = await service.add_friend("Ana", "inner")
    other = await service.add_friend("Ben", "inner")
    await service.log_interaction(friend.id, "call")
    await service.log_interaction(other.id, "call")

    await service.delete_friend(friend.id)

    assert friend.id not in service.store.friends
    assert [i.friend_id for i in service.store.interactions] == [other.id]
    assert friend.id not in repo.friends
    assert [i.friend_id for i in repo.interactions] == [other.id]


@pytest.mark.asyncio
async def test_remove_interaction_recomputes(service, repo):
    friend = await service.add_friend("Ana", "inner")
    older = await service.log_interaction(friend.id, "call", occurred_at=days_ago(5))
    newer = await service.log_interaction(friend.id, "call", occurred_at=days_ago(1))
    assert friend.streak_count == 2

    await service.remove_interaction(newer.id)

    assert friend.last_contact_at == older.occurred_at
    assert friend.next_due_at == older.occurred_at + timedelta(days=7)
    assert friend.streak_count == 1
    assert repo.interactions == [older]

    await service.remove_interaction(older.id)

    assert friend.last_contact_at is None
    assert friend.next_due_at == friend.created_at + timedelta(days=7)
    assert friend.streak_count == 0


@pytest.mark.asyncio
async def test_remove_unknown_interaction(service):
    with pytest.raises(InteractionNotFoundError):
        await service.remove_interaction("ix_missing")


# --- Read views ---


@pytest.mark.asyncio
async def test_overdue_friends_sorted(service, clock):
    a = await service.add_friend("Ana", "inner")
    b = await service.add_friend("Ben", "close", last_spoken_at=days_ago(60))
    await service.add_friend("Cy", "catchup")
    clock.advance(days=8)

    assert [f.id for f in service.overdue_friends()] == [b.id, a.id]


@pytest.mark.asyncio
async def test_upcoming_birthdays_uses_config_window(repo, clock):
    svc = build_service(repo, clock, birthday_window_days=5)
    await svc.load()
    await svc.add_friend("Ana", "inner", birthday="10-17")
    await svc.add_friend("Ben", "inner", birthday="10-25")

    assert [b.friend_name for b in svc.upcoming_birthdays()] == ["Ana"]


@pytest.mark.asyncio
async def test_suggestion_requires_premium(repo, clock):
    free = build_service(repo, clock)
    await free.load()
    friend = await free.add_friend("Ana", "inner")
    for d in (0, 7, 14):
        await free.log_interaction(friend.id, "call", occurred_at=days_ago(d))

    assert free.suggestion(friend.id) is None

    premium = build_service(repo, clock, premium=True)
    await premium.load()
    day = calendar.day_name[NOW.weekday()]
    assert premium.suggestion(friend.id) == f"You usually connect on {day}s"


@pytest.mark.asyncio
async def test_suggestion_none_with_two_interactions(repo, clock):
    svc = build_service(repo, clock, premium=True)
    await svc.load()
    friend = await svc.add_friend("Ana", "inner")
    for d in (0, 7):
        await svc.log_interaction(friend.id, "call", occurred_at=days_ago(d))

    assert svc.suggestion(friend.id) is None


@pytest.mark.asyncio
async def test_visible_interactions_limited_without_premium(repo, clock):
    free = build_service(repo, clock)
    await free.load()
    friend = await free.add_friend("Ana", "close")
    for d in (45, 2, 20):
        await free.log_interaction(friend.id, "text", occurred_at=days_ago(d))

    assert [i.occurred_at for i in free.visible_interactions(friend.id)] == [
        days_ago(2),
        days_ago(20),
    ]

    premium = build_service(repo, clock, premium=True)
    await premium.load()
    assert len(premium.visible_interactions(friend.id)) == 3


@pytest.mark.asyncio
async def test_relationship_health_view(service):
    friend = await service.add_friend("Ana", "inner")
    await service.log_interaction(friend.id, "call", occurred_at=days_ago(14))

    health = service.relationship_health(friend.id)

    assert health.friend_id == friend.id
    assert health.score == 50
