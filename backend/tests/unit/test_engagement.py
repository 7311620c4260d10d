import pytest

from app.domain.engagement.models import COMMUNITY_MEMBERS, EVENT_PARTICIPANTS
from app.domain.engagement.repo import EngagementRepository, _MemoryStore
from app.domain.engagement.service import EngagementService
from app.domain.notifications import list_notifications
from app.domain.notifications.repo import NotificationRepository


@pytest.fixture
def repo():
    return EngagementRepository(memory=_MemoryStore())


@pytest.fixture
def service(repo):
    return EngagementService(repo)


@pytest.mark.asyncio
async def test_join_community_notifies_and_counts(repo, service):
    result = await service.join_community("alice", "c1")
    assert result.success is True
    assert result.message == "Successfully joined community"
    assert await service.is_community_member("alice", "c1") is True
    assert await repo.memory.counter(COMMUNITY_MEMBERS, "c1") == 1

    listing = await list_notifications("alice")
    assert listing.unread_count == 1
    [notification] = listing.items
    assert notification.type == "community_join"
    assert notification.content == "You have successfully joined a new community"
    assert notification.link == "/communities/c1"


@pytest.mark.asyncio
async def test_join_twice_is_rejected_without_second_notification(service):
    await service.join_community("alice", "c1")
    again = await service.join_community("alice", "c1")
    assert again.success is False
    assert again.reason == "conflict"
    assert again.message == "You are already a member of this community"
    assert (await list_notifications("alice")).unread_count == 1


@pytest.mark.asyncio
async def test_leave_community(repo, service):
    missing = await service.leave_community("alice", "c1")
    assert missing.success is False
    assert missing.message == "You are not a member of this community"

    await service.join_community("alice", "c1")
    left = await service.leave_community("alice", "c1")
    assert left.success is True
    assert left.message == "Successfully left community"
    assert await service.is_community_member("alice", "c1") is False
    assert await repo.memory.counter(COMMUNITY_MEMBERS, "c1") == 0


@pytest.mark.asyncio
async def test_event_registration_cycle(repo, service):
    registered = await service.register_for_event("bob", "e1")
    assert registered.success is True
    assert registered.message == "Successfully registered for event"
    assert await service.is_event_participant("bob", "e1") is True
    assert await repo.memory.counter(EVENT_PARTICIPANTS, "e1") == 1

    duplicate = await service.register_for_event("bob", "e1")
    assert duplicate.message == "You are already registered for this event"

    [notification] = (await list_notifications("bob")).items
    assert notification.type == "event_registration"
    assert notification.link == "/events/e1"

    left = await service.unregister_from_event("bob", "e1")
    assert left.message == "Successfully unregistered from event"
    missing = await service.unregister_from_event("bob", "e1")
    assert missing.message == "You are not registered for this event"


@pytest.mark.asyncio
async def test_notification_failure_does_not_fail_join(service, monkeypatch):
    async def boom(*_args, **_kwargs):
        raise RuntimeError("insert failed")

    monkeypatch.setattr(NotificationRepository, "create", boom)
    result = await service.join_community("alice", "c1")
    assert result.success is True
    assert await service.is_community_member("alice", "c1") is True
    assert (await list_notifications("alice")).items == []


@pytest.mark.asyncio
async def test_storage_failure_reports_failed_action(repo, service, monkeypatch):
    async def boom(*_args, **_kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(repo, "add", boom)
    result = await service.register_for_event("bob", "e1")
    assert result.success is False
    assert result.message == "Failed to register for event"
    assert (await list_notifications("bob")).items == []

    monkeypatch.setattr(repo, "exists", boom)
    assert await service.is_event_participant("bob", "e1") is False
