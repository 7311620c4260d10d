"""Pydantic schemas for the assistant API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.domain.common.results import ActionResult

from .models import ChatSession, ChatTurn


class SessionView(BaseModel):
	id: str
	created_at: datetime
	updated_at: datetime

	@classmethod
	def from_model(cls, session: ChatSession) -> "SessionView":
		return cls(id=session.id, created_at=session.created_at, updated_at=session.updated_at)


class TurnView(BaseModel):
	id: str
	role: str
	content: str
	timestamp: datetime
	suggestions: Optional[List[str]] = None

	@classmethod
	def from_model(cls, turn: ChatTurn, suggestions: Optional[List[str]] = None) -> "TurnView":
		return cls(
			id=turn.id,
			role=turn.role,
			content=turn.content,
			timestamp=turn.created_at,
			suggestions=suggestions,
		)


class ChatMessageRequest(BaseModel):
	message: str = Field(..., max_length=4000)


class CreateSessionResult(ActionResult):
	session: Optional[SessionView] = None


class ChatExchangeResult(ActionResult):
	user_message: Optional[TurnView] = None
	assistant_message: Optional[TurnView] = None
