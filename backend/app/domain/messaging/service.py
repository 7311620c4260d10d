"""Messaging service facade combining directory, store and membership."""

from __future__ import annotations

from typing import List, Optional, Sequence

from app.domain.common.results import ActionResult

from .directory import ConversationDirectory
from .membership import MembershipManager
from .repo import MessagingRepository
from .schemas import (
	ConversationDetail,
	ConversationSummary,
	CreateConversationResult,
	MessageView,
	SendMessageResult,
)
from .store import MessageStore


class MessagingService:
	def __init__(self, repository: MessagingRepository | None = None) -> None:
		self._repo = repository or MessagingRepository()
		self.directory = ConversationDirectory(self._repo)
		self.store = MessageStore(self._repo)
		self.membership = MembershipManager(self._repo)

	async def list_conversations(self, user_id: str) -> List[ConversationSummary]:
		return await self.directory.list_conversations(user_id)

	async def get_conversation(self, conversation_id: str, user_id: str) -> Optional[ConversationDetail]:
		return await self.directory.get_conversation(conversation_id, user_id)

	async def get_messages(self, conversation_id: str, user_id: str, limit: Optional[int] = None) -> List[MessageView]:
		return await self.store.get_messages(conversation_id, user_id, limit)

	async def send_message(self, conversation_id: str, sender_id: str, content: str) -> SendMessageResult:
		return await self.store.send_message(conversation_id, sender_id, content)

	async def create_conversation(
		self,
		creator_id: str,
		name: Optional[str] = None,
		is_group: bool = False,
		participant_ids: Sequence[str] = (),
	) -> CreateConversationResult:
		return await self.membership.create_conversation(creator_id, name, is_group, participant_ids)

	async def add_participant(self, conversation_id: str, user_id: str, new_participant_id: str) -> ActionResult:
		return await self.membership.add_participant(conversation_id, user_id, new_participant_id)

	async def leave_conversation(self, conversation_id: str, user_id: str) -> ActionResult:
		return await self.membership.leave_conversation(conversation_id, user_id)


_SERVICE = MessagingService()


async def list_conversations(user_id: str) -> List[ConversationSummary]:
	return await _SERVICE.list_conversations(user_id)


async def get_conversation(conversation_id: str, user_id: str) -> Optional[ConversationDetail]:
	return await _SERVICE.get_conversation(conversation_id, user_id)


async def get_messages(conversation_id: str, user_id: str, limit: Optional[int] = None) -> List[MessageView]:
	return await _SERVICE.get_messages(conversation_id, user_id, limit)


async def send_message(conversation_id: str, sender_id: str, content: str) -> SendMessageResult:
	return await _SERVICE.send_message(conversation_id, sender_id, content)


async def create_conversation(
	creator_id: str,
	name: Optional[str] = None,
	is_group: bool = False,
	participant_ids: Sequence[str] = (),
) -> CreateConversationResult:
	return await _SERVICE.create_conversation(creator_id, name, is_group, participant_ids)


async def add_participant(conversation_id: str, user_id: str, new_participant_id: str) -> ActionResult:
	return await _SERVICE.add_participant(conversation_id, user_id, new_participant_id)


async def leave_conversation(conversation_id: str, user_id: str) -> ActionResult:
	return await _SERVICE.leave_conversation(conversation_id, user_id)
