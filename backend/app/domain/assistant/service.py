"""AI chat assistant: sessions, turn persistence and completion orchestration."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

import ulid

from app.obs import metrics as obs_metrics
from app.settings import settings

from . import prompts
from .completion import OpenAICompletionClient, TextCompletionClient
from .exceptions import EmptyPrompt, SessionNotFound
from .models import ChatSession, ChatTurn
from .repo import AssistantRepository
from .schemas import ChatExchangeResult, CreateSessionResult, SessionView, TurnView

logger = logging.getLogger(__name__)


class AssistantService:
	def __init__(
		self,
		repository: AssistantRepository | None = None,
		completion: TextCompletionClient | None = None,
	) -> None:
		self._repo = repository or AssistantRepository()
		self._completion = completion or OpenAICompletionClient()

	async def create_chat_session(self, user_id: str) -> CreateSessionResult:
		now = datetime.now(timezone.utc)
		session = ChatSession(id=str(ulid.new()), user_id=user_id, created_at=now, updated_at=now)
		try:
			await self._repo.create_session(session)
		except Exception as exc:
			logger.warning("chat session create failed", exc_info=True)
			return CreateSessionResult.failed(exc)
		return CreateSessionResult.ok(session=SessionView.from_model(session))

	async def list_chat_sessions(self, user_id: str) -> List[SessionView]:
		try:
			sessions = await self._repo.list_sessions(user_id)
		except Exception:
			logger.warning("chat session listing failed", exc_info=True)
			obs_metrics.inc_degraded_read("chat_sessions")
			return []
		return [SessionView.from_model(session) for session in sessions]

	async def get_chat_session_messages(self, session_id: str, user_id: str) -> List[TurnView]:
		try:
			if await self._repo.get_session(session_id, user_id) is None:
				return []
			turns = await self._repo.list_turns(session_id)
		except Exception:
			logger.warning("chat turn listing failed", extra={"session_id": session_id}, exc_info=True)
			obs_metrics.inc_degraded_read("chat_turns")
			return []
		return [TurnView.from_model(turn) for turn in turns]

	async def send_chat_message(self, session_id: str, user_id: str, message: str) -> ChatExchangeResult:
		"""Persist the user turn, generate and persist the reply.

		The user turn is stored before generation, so a completion failure
		yields a failed result that still carries ``user_message``.
		"""
		user_view: Optional[TurnView] = None
		try:
			if not message or not message.strip():
				raise EmptyPrompt()
			if await self._repo.get_session(session_id, user_id) is None:
				raise SessionNotFound()
			user_turn = await self._append(session_id, is_user=True, content=message)
			user_view = TurnView.from_model(user_turn)

			history = await self._repo.recent_turns(
				session_id,
				limit=settings.assistant_history_window,
				exclude_id=user_turn.id,
			)
			prompt = prompts.build_prompt(history, message)
			try:
				reply = await self._completion.complete(prompt, max_tokens=settings.assistant_max_tokens)
			except Exception:
				obs_metrics.assistant_completion("reply", "error")
				raise
			obs_metrics.assistant_completion("reply", "ok")
			assistant_turn = await self._append(session_id, is_user=False, content=reply)
		except Exception as exc:
			logger.warning(
				"chat exchange failed",
				extra={"session_id": session_id, "reason": getattr(exc, "reason", "unavailable")},
				exc_info=True,
			)
			return ChatExchangeResult.failed(exc, user_message=user_view)

		suggestions = await self.generate_suggestions(message, reply)
		return ChatExchangeResult.ok(
			user_message=user_view,
			assistant_message=TurnView.from_model(assistant_turn, suggestions=suggestions),
		)

	async def generate_suggestions(self, user_message: str, assistant_reply: str) -> List[str]:
		"""Ask for follow-up questions; any failure degrades to an empty list."""
		prompt = prompts.build_suggestion_prompt(user_message, assistant_reply)
		try:
			text = await self._completion.complete(prompt, max_tokens=settings.assistant_suggestion_max_tokens)
		except Exception:
			obs_metrics.assistant_completion("suggestions", "error")
			logger.warning("suggestion generation failed", exc_info=True)
			return []
		obs_metrics.assistant_completion("suggestions", "ok")
		return prompts.parse_suggestions(text, settings.assistant_max_suggestions)

	async def _append(self, session_id: str, *, is_user: bool, content: str) -> ChatTurn:
		now = datetime.now(timezone.utc)
		turn = ChatTurn(id=str(ulid.new()), session_id=session_id, is_user=is_user, content=content, created_at=now)
		await self._repo.add_turn(turn)
		try:
			await self._repo.touch_session(session_id, now)
		except Exception:
			logger.warning("chat session touch failed", extra={"session_id": session_id}, exc_info=True)
		return turn


_SERVICE = AssistantService()


async def create_chat_session(user_id: str) -> CreateSessionResult:
	return await _SERVICE.create_chat_session(user_id)


async def list_chat_sessions(user_id: str) -> List[SessionView]:
	return await _SERVICE.list_chat_sessions(user_id)


async def get_chat_session_messages(session_id: str, user_id: str) -> List[TurnView]:
	return await _SERVICE.get_chat_session_messages(session_id, user_id)


async def send_chat_message(session_id: str, user_id: str, message: str) -> ChatExchangeResult:
	return await _SERVICE.send_chat_message(session_id, user_id, message)


async def generate_suggestions(user_message: str, assistant_reply: str) -> List[str]:
	return await _SERVICE.generate_suggestions(user_message, assistant_reply)
