from datetime import datetime, timedelta, timezone

import pytest

from app.domain.messaging.models import Profile
from app.domain.messaging.repo import MessagingRepository, _MemoryStore
from app.domain.messaging.service import MessagingService


@pytest.fixture
def memory():
    return _MemoryStore()


@pytest.fixture
def repo(memory):
    return MessagingRepository(memory=memory)


@pytest.fixture
def service(repo):
    return MessagingService(repo)


@pytest.mark.asyncio
async def test_user_without_conversations_gets_empty_list(service):
    assert await service.list_conversations("nobody") == []


@pytest.mark.asyncio
async def test_direct_conversation_shows_other_party(memory, service):
    await memory.put_profile(Profile("alice", "Alice Smith", "https://img/alice.png"))
    await memory.put_profile(Profile("bob", "Bob Jones", "https://img/bob.png"))
    created = await service.create_conversation("alice", None, False, ["bob"])

    [for_alice] = await service.list_conversations("alice")
    assert for_alice.name == "Bob Jones"
    assert for_alice.avatar == "https://img/bob.png"

    [for_bob] = await service.list_conversations("bob")
    assert for_bob.name == "Alice Smith"

    detail = await service.get_conversation(created.conversation.id, "bob")
    assert detail.name == "Alice Smith"
    assert detail.avatar == "https://img/alice.png"


@pytest.mark.asyncio
async def test_direct_conversation_without_profiles_keeps_stored_name(service):
    await service.create_conversation("alice", None, False, ["bob"])
    [summary] = await service.list_conversations("alice")
    assert summary.name is None
    assert summary.avatar is None
    assert {p.user_id for p in summary.participants} == {"alice", "bob"}


@pytest.mark.asyncio
async def test_group_keeps_its_own_name(memory, service):
    await memory.put_profile(Profile("bob", "Bob Jones"))
    await service.create_conversation("alice", "Hackathon team", True, ["bob"])
    [summary] = await service.list_conversations("alice")
    assert summary.name == "Hackathon team"
    assert summary.is_group is True


@pytest.mark.asyncio
async def test_unread_counts_and_last_message(service):
    created = await service.create_conversation("alice", None, False, ["bob"])
    conversation_id = created.conversation.id
    await service.send_message(conversation_id, "alice", "one")
    await service.send_message(conversation_id, "alice", "two")
    await service.send_message(conversation_id, "bob", "mine")
    await service.send_message(conversation_id, "alice", "three")

    [for_bob] = await service.list_conversations("bob")
    assert for_bob.unread == 3
    assert for_bob.last_message.content == "three"
    assert for_bob.last_message.sender_id == "alice"
    assert for_bob.last_message.is_read is False

    await service.get_messages(conversation_id, "bob")

    [after] = await service.list_conversations("bob")
    assert after.unread == 0
    assert after.last_message.is_read is True

    [for_alice] = await service.list_conversations("alice")
    assert for_alice.unread == 1

    await service.get_messages(conversation_id, "alice")
    [for_alice] = await service.list_conversations("alice")
    assert for_alice.unread == 0


@pytest.mark.asyncio
async def test_conversation_without_messages_has_no_last_message(service):
    await service.create_conversation("alice", "Quiet", True, ["bob"])
    [summary] = await service.list_conversations("alice")
    assert summary.last_message is None
    assert summary.unread == 0


@pytest.mark.asyncio
async def test_recently_active_conversations_sort_first(repo, service):
    older = await service.create_conversation("alice", None, False, ["bob"])
    newer = await service.create_conversation("alice", None, False, ["carol"])
    now = datetime.now(timezone.utc)
    await repo.touch_conversation(older.conversation.id, now + timedelta(minutes=5))
    await repo.touch_conversation(newer.conversation.id, now + timedelta(minutes=1))

    ids = [c.id for c in await service.list_conversations("alice")]
    assert ids == [older.conversation.id, newer.conversation.id]

    await service.send_message(newer.conversation.id, "alice", "bump")
    await repo.touch_conversation(newer.conversation.id, now + timedelta(minutes=10))
    ids = [c.id for c in await service.list_conversations("alice")]
    assert ids == [newer.conversation.id, older.conversation.id]


@pytest.mark.asyncio
async def test_sending_bumps_updated_at(service):
    created = await service.create_conversation("alice", None, False, ["bob"])
    before = created.conversation.updated_at
    await service.send_message(created.conversation.id, "alice", "hi")
    [summary] = await service.list_conversations("alice")
    assert summary.updated_at >= before


@pytest.mark.asyncio
async def test_get_conversation_hides_existence(service):
    created = await service.create_conversation("alice", None, False, ["bob"])
    assert await service.get_conversation(created.conversation.id, "mallory") is None
    assert await service.get_conversation("missing", "alice") is None


@pytest.mark.asyncio
async def test_each_field_degrades_independently(memory, repo, service, monkeypatch):
    await memory.put_profile(Profile("bob", "Bob Jones"))
    created = await service.create_conversation("alice", None, False, ["bob"])
    await service.send_message(created.conversation.id, "bob", "hello")

    async def boom(*_args, **_kwargs):
        raise RuntimeError("fetch failed")

    monkeypatch.setattr(repo, "unread_counts", boom)
    [summary] = await service.list_conversations("alice")
    assert summary.unread == 0
    assert summary.last_message.content == "hello"
    assert summary.name == "Bob Jones"

    monkeypatch.setattr(repo, "latest_messages", boom)
    [summary] = await service.list_conversations("alice")
    assert summary.last_message is None
    assert summary.name == "Bob Jones"

    monkeypatch.setattr(repo, "get_profiles", boom)
    [summary] = await service.list_conversations("alice")
    assert summary.name is None
    assert {p.user_id for p in summary.participants} == {"alice", "bob"}

    monkeypatch.setattr(repo, "participants_for", boom)
    [summary] = await service.list_conversations("alice")
    assert summary.participants == []
    assert summary.id == created.conversation.id


@pytest.mark.asyncio
async def test_listing_failure_returns_empty(repo, service, monkeypatch):
    await service.create_conversation("alice", None, False, ["bob"])

    async def boom(*_args, **_kwargs):
        raise RuntimeError("fetch failed")

    monkeypatch.setattr(repo, "conversation_ids_for", boom)
    assert await service.list_conversations("alice") == []

    monkeypatch.setattr(repo, "is_participant", boom)
    assert await service.get_conversation("anything", "alice") is None
    assert await service.get_messages("anything", "alice") == []
