"""Prompt construction for the assistant and its follow-up suggestions."""

from __future__ import annotations

from typing import List, Sequence

from .models import ChatTurn

PLATFORM_CONTEXT = """Student Connect is a platform for students to connect, collaborate, and grow together.
Features include:
- Skill-based communities where students can join based on interests
- Project collaboration opportunities
- Events and hackathons
- Messaging system
- Resource sharing

The platform helps students network, find team members for projects, and develop professional skills."""

_SUGGESTION_INSTRUCTIONS = (
	"Generate 3 short follow-up questions the user might want to ask. "
	"Each question should be 5-10 words. "
	"Return only the questions as a comma-separated list with no numbering or additional text."
)


def render_history(turns: Sequence[ChatTurn]) -> str:
	return "\n\n".join(f"{turn.speaker}: {turn.content}" for turn in turns)


def build_prompt(history: Sequence[ChatTurn], message: str) -> str:
	"""Preamble, prior turns oldest-first, then the new turn and the reply cue."""
	return (
		f"{PLATFORM_CONTEXT}\n\n"
		f"Conversation history:\n{render_history(history)}\n\n"
		f"User: {message}\n\n"
		"Assistant:"
	)


def build_suggestion_prompt(user_message: str, assistant_reply: str) -> str:
	return (
		"Based on this conversation:\n\n"
		f"User: {user_message}\n\n"
		f"Assistant: {assistant_reply}\n\n"
		f"{_SUGGESTION_INSTRUCTIONS}"
	)


def parse_suggestions(text: str, limit: int = 3) -> List[str]:
	parts = [part.strip() for part in (text or "").split(",")]
	return [part for part in parts if part][:limit]
