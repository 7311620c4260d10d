import pytest

from app.domain.messaging.repo import MessagingRepository, _MemoryStore
from app.domain.messaging.service import MessagingService


@pytest.fixture
def service():
    return MessagingService(MessagingRepository(memory=_MemoryStore()))


@pytest.mark.asyncio
async def test_direct_conversation_requires_exactly_one_other(service):
    result = await service.create_conversation("alice", None, False, [])
    assert result.success is False
    assert result.reason == "validation"
    assert result.error == "Non-group conversations must have exactly one other participant"

    result = await service.create_conversation("alice", None, False, ["bob", "carol"])
    assert result.success is False
    assert result.reason == "validation"


@pytest.mark.asyncio
@pytest.mark.parametrize("participant_ids", [["bob", "bob"], ["alice", "bob"], ["alice"], [" "]])
async def test_direct_conversation_counts_raw_participant_list(service, participant_ids):
    result = await service.create_conversation("alice", None, False, participant_ids)
    assert result.success is False
    assert result.reason == "validation"
    assert await service.list_conversations("alice") == []


@pytest.mark.asyncio
async def test_direct_conversation_is_deduplicated_in_both_directions(service):
    first = await service.create_conversation("alice", None, False, ["bob"])
    assert first.success is True
    assert first.existing is False

    again = await service.create_conversation("alice", None, False, ["bob"])
    assert again.success is True
    assert again.existing is True
    assert again.conversation.id == first.conversation.id

    reverse = await service.create_conversation("bob", None, False, ["alice"])
    assert reverse.existing is True
    assert reverse.conversation.id == first.conversation.id

    conversations = await service.list_conversations("alice")
    assert [c.id for c in conversations] == [first.conversation.id]


@pytest.mark.asyncio
async def test_group_with_same_members_does_not_count_as_direct(service):
    group = await service.create_conversation("alice", "Study group", True, ["bob"])
    assert group.success is True
    assert group.conversation.name == "Study group"

    direct = await service.create_conversation("alice", "ignored", False, ["bob"])
    assert direct.existing is False
    assert direct.conversation.id != group.conversation.id
    assert direct.conversation.name is None


@pytest.mark.asyncio
async def test_creator_and_duplicates_are_dropped_from_participants(service):
    result = await service.create_conversation("alice", "Team", True, ["bob", "alice", "bob", " ", "carol"])
    assert result.success is True
    detail = await service.get_conversation(result.conversation.id, "alice")
    assert sorted(p.user_id for p in detail.participants) == ["alice", "bob", "carol"]


@pytest.mark.asyncio
async def test_add_participant_is_idempotent_guarded(service):
    created = await service.create_conversation("alice", "Team", True, ["bob"])
    conversation_id = created.conversation.id

    first = await service.add_participant(conversation_id, "alice", "carol")
    assert first.success is True

    second = await service.add_participant(conversation_id, "alice", "carol")
    assert second.success is False
    assert second.reason == "conflict"
    assert second.error == "User is already a participant in this conversation"

    detail = await service.get_conversation(conversation_id, "carol")
    assert len(detail.participants) == 3


@pytest.mark.asyncio
async def test_add_participant_rejects_direct_conversations(service):
    created = await service.create_conversation("alice", None, False, ["bob"])
    result = await service.add_participant(created.conversation.id, "alice", "carol")
    assert result.success is False
    assert result.reason == "validation"
    assert result.error == "Cannot add participants to non-group conversations"


@pytest.mark.asyncio
async def test_add_participant_requires_membership_and_existing_conversation(service):
    created = await service.create_conversation("alice", "Team", True, ["bob"])
    outsider = await service.add_participant(created.conversation.id, "mallory", "eve")
    assert outsider.success is False
    assert outsider.reason == "forbidden"

    missing = await service.add_participant("does-not-exist", "alice", "carol")
    assert missing.success is False
    assert missing.reason == "not_found"


@pytest.mark.asyncio
async def test_leave_conversation_locks_user_out_immediately(service):
    created = await service.create_conversation("alice", "Team", True, ["bob"])
    conversation_id = created.conversation.id

    left = await service.leave_conversation(conversation_id, "bob")
    assert left.success is True

    assert await service.get_conversation(conversation_id, "bob") is None
    assert await service.get_messages(conversation_id, "bob") == []
    send = await service.send_message(conversation_id, "bob", "still here?")
    assert send.success is False
    assert send.reason == "forbidden"


@pytest.mark.asyncio
async def test_last_participant_leaving_orphans_conversation(service):
    created = await service.create_conversation("alice", None, False, ["bob"])
    conversation_id = created.conversation.id
    assert (await service.leave_conversation(conversation_id, "alice")).success
    assert (await service.leave_conversation(conversation_id, "bob")).success
    assert (await service.leave_conversation(conversation_id, "bob")).success
    assert await service.list_conversations("alice") == []
