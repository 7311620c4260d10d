"""Pydantic schemas for the messaging API and service results."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.domain.common.results import ActionResult

from .models import Conversation, Message


class ConversationRecord(BaseModel):
	id: str
	is_group: bool
	name: Optional[str] = None
	created_at: datetime
	updated_at: datetime

	@classmethod
	def from_model(cls, conversation: Conversation) -> "ConversationRecord":
		return cls(
			id=conversation.id,
			is_group=conversation.is_group,
			name=conversation.name,
			created_at=conversation.created_at,
			updated_at=conversation.updated_at,
		)


class MessageRecord(BaseModel):
	id: str
	conversation_id: str
	sender_id: str
	content: str
	created_at: datetime
	read_by: List[str]

	@classmethod
	def from_model(cls, message: Message) -> "MessageRecord":
		return cls(
			id=message.id,
			conversation_id=message.conversation_id,
			sender_id=message.sender_id,
			content=message.content,
			created_at=message.created_at,
			read_by=list(message.read_by),
		)


class ParticipantView(BaseModel):
	user_id: str
	joined_at: Optional[datetime] = None
	name: Optional[str] = None
	avatar: Optional[str] = None


class LastMessage(BaseModel):
	content: str
	time: datetime
	sender_id: str
	is_read: bool


class ConversationSummary(BaseModel):
	id: str
	name: Optional[str] = None
	avatar: Optional[str] = None
	is_group: bool
	created_at: datetime
	updated_at: datetime
	participants: List[ParticipantView] = Field(default_factory=list)
	last_message: Optional[LastMessage] = None
	unread: int = 0


class ConversationDetail(BaseModel):
	id: str
	name: Optional[str] = None
	avatar: Optional[str] = None
	is_group: bool
	created_at: datetime
	updated_at: datetime
	participants: List[ParticipantView] = Field(default_factory=list)


class SenderView(BaseModel):
	id: str
	name: str = "Unknown User"
	avatar: Optional[str] = None


class MessageView(BaseModel):
	id: str
	content: str
	timestamp: datetime
	sender: SenderView
	is_read: bool
	is_mine: bool


class SendMessageRequest(BaseModel):
	content: str = Field(..., max_length=4000)


class CreateConversationRequest(BaseModel):
	name: Optional[str] = Field(default=None, max_length=120)
	is_group: bool = False
	participant_ids: List[str] = Field(default_factory=list)


class AddParticipantRequest(BaseModel):
	user_id: str = Field(..., min_length=1)


class SendMessageResult(ActionResult):
	message: Optional[MessageRecord] = None


class CreateConversationResult(ActionResult):
	conversation: Optional[ConversationRecord] = None
	existing: bool = False
