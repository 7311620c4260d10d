"""Message Store: chronological retrieval with read receipts, and sending."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

import ulid

from app.obs import metrics as obs_metrics
from app.settings import settings

from . import sockets
from .exceptions import EmptyContent, NotParticipant
from .models import Message
from .repo import MessagingRepository
from .schemas import MessageRecord, MessageView, SendMessageResult, SenderView

logger = logging.getLogger(__name__)


def clamp_limit(limit: Optional[int]) -> int:
	if limit is None:
		return settings.messages_default_limit
	return max(1, min(int(limit), settings.messages_max_limit))


class MessageStore:
	def __init__(self, repository: MessagingRepository | None = None) -> None:
		self._repo = repository or MessagingRepository()

	async def get_messages(
		self,
		conversation_id: str,
		user_id: str,
		limit: Optional[int] = None,
	) -> List[MessageView]:
		"""Return the latest ``limit`` messages oldest-first and mark them read.

		``is_read`` on each view is the state observed before marking.
		"""
		try:
			if not await self._repo.is_participant(conversation_id, user_id):
				return []
			newest_first = await self._repo.list_messages(conversation_id, limit=clamp_limit(limit))
		except Exception:
			logger.warning("message fetch failed", extra={"conversation_id": conversation_id}, exc_info=True)
			obs_metrics.inc_degraded_read("messages")
			return []

		try:
			profiles = await self._repo.get_profiles(msg.sender_id for msg in newest_first)
		except Exception:
			logger.warning("sender profile fetch failed", exc_info=True)
			obs_metrics.inc_degraded_read("senders")
			profiles = {}

		pending = [msg.id for msg in newest_first if msg.needs_receipt(user_id)]
		if pending:
			try:
				applied = await self._repo.mark_read(pending, user_id)
				obs_metrics.inc_read_receipts(applied)
			except Exception:
				logger.warning(
					"read marking failed",
					extra={"conversation_id": conversation_id, "pending": len(pending)},
					exc_info=True,
				)

		views: List[MessageView] = []
		for message in reversed(newest_first):
			profile = profiles.get(message.sender_id)
			sender = SenderView(id=message.sender_id)
			if profile is not None:
				sender = SenderView(
					id=message.sender_id,
					name=profile.full_name or "Unknown User",
					avatar=profile.profile_image_url,
				)
			views.append(
				MessageView(
					id=message.id,
					content=message.content,
					timestamp=message.created_at,
					sender=sender,
					is_read=message.is_read_by(user_id),
					is_mine=message.sender_id == user_id,
				)
			)
		return views

	async def send_message(self, conversation_id: str, sender_id: str, content: str) -> SendMessageResult:
		try:
			message = await self._send(conversation_id, sender_id, content)
		except Exception as exc:
			logger.warning(
				"send message failed",
				extra={"conversation_id": conversation_id, "reason": getattr(exc, "reason", "unavailable")},
				exc_info=True,
			)
			return SendMessageResult.failed(exc)
		await self._announce(message)
		return SendMessageResult.ok(message=MessageRecord.from_model(message))

	async def _send(self, conversation_id: str, sender_id: str, content: str) -> Message:
		if not content or not content.strip():
			raise EmptyContent()
		if not await self._repo.is_participant(conversation_id, sender_id):
			raise NotParticipant()
		now = datetime.now(timezone.utc)
		message = Message(
			id=str(ulid.new()),
			conversation_id=conversation_id,
			sender_id=sender_id,
			content=content,
			created_at=now,
			read_by=(sender_id,),
		)
		await self._repo.insert_message(message)
		obs_metrics.inc_message_sent()
		try:
			await self._repo.touch_conversation(conversation_id, now)
		except Exception:
			# The message is durable; only the conversation's recency ordering is stale.
			logger.warning("conversation touch failed", extra={"conversation_id": conversation_id}, exc_info=True)
		return message

	async def _announce(self, message: Message) -> None:
		try:
			grouped = await self._repo.participants_for([message.conversation_id])
			payload = MessageRecord.from_model(message).model_dump(mode="json")
			for participant in grouped.get(message.conversation_id, []):
				if participant.user_id != message.sender_id:
					await sockets.emit_message(participant.user_id, payload)
		except Exception:
			logger.warning("message broadcast failed", extra={"message_id": message.id}, exc_info=True)
