import pytest

from app.domain.messaging import (
    create_conversation,
    get_messages,
    list_conversations,
    send_message,
)
from app.domain.messaging.repo import MessagingRepository


@pytest.mark.asyncio
async def test_direct_message_round_trip():
    created = await create_conversation("A", None, False, ["B"])
    assert created.success is True
    assert created.existing is False
    conversation_id = created.conversation.id

    sent = await send_message(conversation_id, "A", "hello")
    assert sent.success is True
    assert sent.message.read_by == ["A"]

    fetched = await get_messages(conversation_id, "B")
    assert len(fetched) == 1
    assert fetched[0].content == "hello"
    assert fetched[0].is_mine is False
    assert fetched[0].is_read is False

    stored = await MessagingRepository().list_messages(conversation_id, limit=1)
    assert "B" in stored[0].read_by

    [summary] = await list_conversations("A")
    assert summary.unread == 0
    assert summary.last_message.content == "hello"

    [for_b] = await list_conversations("B")
    assert for_b.unread == 0
