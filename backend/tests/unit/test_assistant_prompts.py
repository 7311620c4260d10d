from datetime import datetime, timezone

from app.domain.assistant import prompts
from app.domain.assistant.models import ChatTurn


def _turn(index: int, is_user: bool, content: str) -> ChatTurn:
    return ChatTurn(
        id=f"t{index}",
        session_id="s1",
        is_user=is_user,
        content=content,
        created_at=datetime(2024, 1, 1, 0, index, tzinfo=timezone.utc),
    )


def test_prompt_layout():
    history = [_turn(0, True, "What is this?"), _turn(1, False, "A student platform.")]
    prompt = prompts.build_prompt(history, "How do I join a community?")

    assert prompt.startswith(prompts.PLATFORM_CONTEXT)
    assert "Conversation history:\nUser: What is this?\n\nAssistant: A student platform.\n\n" in prompt
    assert prompt.endswith("User: How do I join a community?\n\nAssistant:")


def test_prompt_with_no_history():
    prompt = prompts.build_prompt([], "Hi")
    assert "Conversation history:\n\n\nUser: Hi\n\nAssistant:" in prompt


def test_suggestion_prompt_mentions_both_sides():
    prompt = prompts.build_suggestion_prompt("How do events work?", "You register on the event page.")
    assert prompt.startswith("Based on this conversation:")
    assert "User: How do events work?" in prompt
    assert "Assistant: You register on the event page." in prompt
    assert "comma-separated list" in prompt


def test_parse_suggestions_trims_and_truncates():
    text = " How do I find teammates? ,, What events are coming up?, Can I host a hackathon? , Extra one"
    assert prompts.parse_suggestions(text) == [
        "How do I find teammates?",
        "What events are coming up?",
        "Can I host a hackathon?",
    ]
    assert prompts.parse_suggestions("") == []
    assert prompts.parse_suggestions(" , ,") == []
