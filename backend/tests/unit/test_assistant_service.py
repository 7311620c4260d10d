from typing import List

import pytest
from openai import OpenAIError

from app.domain.assistant.completion import OpenAICompletionClient
from app.domain.assistant.exceptions import CompletionError
from app.domain.assistant.repo import AssistantRepository, _MemoryStore
from app.domain.assistant.service import AssistantService
from app.settings import settings


class FakeCompletion:
    def __init__(self, replies: List[object]) -> None:
        self.replies = list(replies)
        self.calls: list = []

    async def complete(self, prompt: str, *, max_tokens: int) -> str:
        self.calls.append((prompt, max_tokens))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def repo():
    return AssistantRepository(memory=_MemoryStore())


def _service(repo, replies):
    completion = FakeCompletion(replies)
    return AssistantService(repository=repo, completion=completion), completion


@pytest.mark.asyncio
async def test_full_exchange_persists_both_turns(repo):
    service, completion = _service(repo, ["Join from the communities page.", "How to leave?, Are there fees?"])
    session = (await service.create_chat_session("alice")).session

    result = await service.send_chat_message(session.id, "alice", "How do I join a community?")
    assert result.success is True
    assert result.user_message.role == "user"
    assert result.assistant_message.role == "assistant"
    assert result.assistant_message.content == "Join from the communities page."
    assert result.assistant_message.suggestions == ["How to leave?", "Are there fees?"]

    reply_prompt, reply_tokens = completion.calls[0]
    assert reply_tokens == settings.assistant_max_tokens
    assert reply_prompt.endswith("User: How do I join a community?\n\nAssistant:")
    assert completion.calls[1][1] == settings.assistant_suggestion_max_tokens

    turns = await service.get_chat_session_messages(session.id, "alice")
    assert [(t.role, t.content) for t in turns] == [
        ("user", "How do I join a community?"),
        ("assistant", "Join from the communities page."),
    ]


@pytest.mark.asyncio
async def test_history_excludes_new_turn_and_is_bounded(repo, monkeypatch):
    monkeypatch.setattr(settings, "assistant_history_window", 2)
    replies = []
    for index in range(3):
        replies.extend([f"answer {index}", ""])
    replies.extend(["final", ""])
    service, completion = _service(repo, replies)
    session = (await service.create_chat_session("alice")).session
    for index in range(3):
        await service.send_chat_message(session.id, "alice", f"question {index}")

    await service.send_chat_message(session.id, "alice", "last question")
    prompt = completion.calls[-2][0]
    history = prompt.split("Conversation history:\n", 1)[1].split("\n\nUser: last question", 1)[0]
    assert history == "User: question 2\n\nAssistant: answer 2"


@pytest.mark.asyncio
async def test_completion_failure_keeps_user_turn(repo):
    service, _ = _service(repo, [CompletionError("service down")])
    session = (await service.create_chat_session("alice")).session

    result = await service.send_chat_message(session.id, "alice", "Hello?")
    assert result.success is False
    assert result.reason == "unavailable"
    assert result.error == "service down"
    assert result.user_message.content == "Hello?"
    assert result.assistant_message is None

    turns = await service.get_chat_session_messages(session.id, "alice")
    assert [(t.role, t.content) for t in turns] == [("user", "Hello?")]


@pytest.mark.asyncio
async def test_suggestion_failure_degrades_to_empty(repo):
    service, _ = _service(repo, ["Sure.", RuntimeError("rate limited")])
    session = (await service.create_chat_session("alice")).session
    result = await service.send_chat_message(session.id, "alice", "Thanks")
    assert result.success is True
    assert result.assistant_message.suggestions == []


@pytest.mark.asyncio
async def test_foreign_session_and_empty_message_are_rejected(repo):
    service, completion = _service(repo, [])
    session = (await service.create_chat_session("alice")).session

    foreign = await service.send_chat_message(session.id, "mallory", "hi")
    assert foreign.success is False
    assert foreign.reason == "not_found"
    assert foreign.user_message is None

    empty = await service.send_chat_message(session.id, "alice", "   ")
    assert empty.success is False
    assert empty.reason == "validation"

    assert completion.calls == []
    assert await service.get_chat_session_messages(session.id, "mallory") == []
    assert await service.get_chat_session_messages(session.id, "alice") == []


@pytest.mark.asyncio
async def test_sessions_listed_most_recent_first(repo):
    service, _ = _service(repo, ["reply", ""])
    first = (await service.create_chat_session("alice")).session
    second = (await service.create_chat_session("alice")).session
    await service.create_chat_session("bob")

    await service.send_chat_message(first.id, "alice", "bump")
    sessions = await service.list_chat_sessions("alice")
    assert [s.id for s in sessions] == [first.id, second.id]


class _FailingCompletions:
    async def create(self, **_kwargs):
        raise OpenAIError("no api key")


class _FakeOpenAI:
    def __init__(self) -> None:
        self.chat = type("Chat", (), {"completions": _FailingCompletions()})()


@pytest.mark.asyncio
async def test_openai_client_wraps_sdk_errors():
    client = OpenAICompletionClient(client=_FakeOpenAI(), model="gpt-4o")
    with pytest.raises(CompletionError):
        await client.complete("prompt", max_tokens=10)
