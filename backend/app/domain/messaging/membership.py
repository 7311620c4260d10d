"""Conversation Membership Manager: creation, joining and leaving."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

import ulid

from app.domain.common.results import ActionResult
from app.obs import metrics as obs_metrics

from .exceptions import ConversationNotFound, InvalidParticipantCount, NotGroupConversation, NotParticipant
from .models import Conversation, Participant
from .repo import MessagingRepository
from .schemas import ConversationRecord, CreateConversationResult

logger = logging.getLogger(__name__)


def normalise_participants(creator_id: str, participant_ids: Sequence[str]) -> List[str]:
	"""Drop blanks, duplicates and the creator while keeping the given order."""
	result: List[str] = []
	for raw in participant_ids:
		user_id = str(raw).strip()
		if user_id and user_id != creator_id and user_id not in result:
			result.append(user_id)
	return result


class MembershipManager:
	def __init__(self, repository: MessagingRepository | None = None) -> None:
		self._repo = repository or MessagingRepository()

	async def create_conversation(
		self,
		creator_id: str,
		name: Optional[str] = None,
		is_group: bool = False,
		participant_ids: Sequence[str] = (),
	) -> CreateConversationResult:
		try:
			conversation, existing = await self._create(creator_id, name, is_group, participant_ids)
		except Exception as exc:
			logger.warning(
				"create conversation failed",
				extra={"reason": getattr(exc, "reason", "unavailable")},
				exc_info=True,
			)
			return CreateConversationResult.failed(exc)
		return CreateConversationResult.ok(
			conversation=ConversationRecord.from_model(conversation),
			existing=existing,
		)

	async def _create(
		self,
		creator_id: str,
		name: Optional[str],
		is_group: bool,
		participant_ids: Sequence[str],
	) -> tuple[Conversation, bool]:
		if is_group:
			others = normalise_participants(creator_id, participant_ids)
		else:
			# Counted on the raw input: repeats or the creator's own id do not make a pair.
			if len(participant_ids) != 1:
				raise InvalidParticipantCount()
			other = str(participant_ids[0]).strip()
			if not other or other == creator_id:
				raise InvalidParticipantCount()
			others = [other]
			found = await self._repo.find_direct_conversation(creator_id, other)
			if found is not None:
				obs_metrics.inc_conversation_reused()
				return found, True

		now = datetime.now(timezone.utc)
		conversation = Conversation(
			id=str(ulid.new()),
			is_group=is_group,
			name=(name or None) if is_group else None,
			created_at=now,
			updated_at=now,
		)
		members = [Participant(conversation.id, user_id, now) for user_id in (creator_id, *others)]
		await self._repo.create_conversation(conversation, members)
		obs_metrics.inc_conversation_created("group" if is_group else "direct")
		return conversation, False

	async def add_participant(self, conversation_id: str, user_id: str, new_participant_id: str) -> ActionResult:
		try:
			conversation = await self._repo.get_conversation(conversation_id)
			if conversation is None:
				raise ConversationNotFound()
			if not conversation.is_group:
				raise NotGroupConversation()
			if not await self._repo.is_participant(conversation_id, user_id):
				raise NotParticipant()
			await self._repo.add_participant(
				Participant(conversation_id, new_participant_id, datetime.now(timezone.utc))
			)
		except Exception as exc:
			logger.warning(
				"add participant failed",
				extra={"conversation_id": conversation_id, "reason": getattr(exc, "reason", "unavailable")},
				exc_info=True,
			)
			return ActionResult.failed(exc)
		return ActionResult.ok()

	async def leave_conversation(self, conversation_id: str, user_id: str) -> ActionResult:
		"""Remove the caller's participant row; the conversation itself is left in place."""
		try:
			await self._repo.remove_participant(conversation_id, user_id)
		except Exception as exc:
			logger.warning("leave conversation failed", extra={"conversation_id": conversation_id}, exc_info=True)
			return ActionResult.failed(exc)
		return ActionResult.ok()
