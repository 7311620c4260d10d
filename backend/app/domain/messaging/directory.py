"""Conversation Directory: conversation listing and per-conversation metadata."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from app.obs import metrics as obs_metrics

from .models import Conversation, Message, Participant, Profile
from .repo import MessagingRepository
from .schemas import ConversationDetail, ConversationSummary, LastMessage, ParticipantView

logger = logging.getLogger(__name__)


def _participant_views(
	participants: Sequence[Participant], profiles: Dict[str, Profile]
) -> List[ParticipantView]:
	views: List[ParticipantView] = []
	for participant in participants:
		profile = profiles.get(participant.user_id)
		views.append(
			ParticipantView(
				user_id=participant.user_id,
				joined_at=participant.joined_at,
				name=profile.full_name if profile else None,
				avatar=profile.profile_image_url if profile else None,
			)
		)
	return views


def resolve_display(
	conversation: Conversation,
	viewer_id: str,
	participants: Sequence[ParticipantView],
) -> Tuple[Optional[str], Optional[str]]:
	"""Return ``(name, avatar)`` as shown to ``viewer_id``.

	Direct conversations take the counterpart's profile. When no counterpart
	resolves the stored values are kept.
	"""
	name, avatar = conversation.name, None
	if conversation.is_group:
		return name, avatar
	other = next((p for p in participants if p.user_id != viewer_id), None)
	if other is not None and other.name is not None:
		name = other.name
		avatar = other.avatar
	return name, avatar


def _last_message(message: Optional[Message], viewer_id: str) -> Optional[LastMessage]:
	if message is None:
		return None
	return LastMessage(
		content=message.content,
		time=message.created_at,
		sender_id=message.sender_id,
		is_read=message.is_read_by(viewer_id),
	)


class ConversationDirectory:
	def __init__(self, repository: MessagingRepository | None = None) -> None:
		self._repo = repository or MessagingRepository()

	async def list_conversations(self, user_id: str) -> List[ConversationSummary]:
		try:
			conversation_ids = await self._repo.conversation_ids_for(user_id)
			if not conversation_ids:
				return []
			conversations = await self._repo.get_conversations(conversation_ids)
		except Exception:
			logger.warning("conversation listing failed", extra={"user_id": user_id}, exc_info=True)
			obs_metrics.inc_degraded_read("conversations")
			return []
		if not conversations:
			return []

		ids = [conversation.id for conversation in conversations]
		participants, latest, unread = await asyncio.gather(
			self._load_participants(ids),
			self._load_latest(ids),
			self._load_unread(ids, user_id),
		)

		summaries: List[ConversationSummary] = []
		for conversation in conversations:
			views = participants.get(conversation.id, [])
			name, avatar = resolve_display(conversation, user_id, views)
			summaries.append(
				ConversationSummary(
					id=conversation.id,
					name=name,
					avatar=avatar,
					is_group=conversation.is_group,
					created_at=conversation.created_at,
					updated_at=conversation.updated_at,
					participants=views,
					last_message=_last_message(latest.get(conversation.id), user_id),
					unread=unread.get(conversation.id, 0),
				)
			)
		return summaries

	async def get_conversation(self, conversation_id: str, user_id: str) -> Optional[ConversationDetail]:
		"""Return the conversation as seen by ``user_id`` or ``None``.

		Non-participants, unknown ids and fetch failures are indistinguishable.
		"""
		try:
			if not await self._repo.is_participant(conversation_id, user_id):
				return None
			conversation = await self._repo.get_conversation(conversation_id)
		except Exception:
			logger.warning("conversation fetch failed", extra={"conversation_id": conversation_id}, exc_info=True)
			obs_metrics.inc_degraded_read("conversation")
			return None
		if conversation is None:
			return None
		views = (await self._load_participants([conversation.id])).get(conversation.id, [])
		name, avatar = resolve_display(conversation, user_id, views)
		return ConversationDetail(
			id=conversation.id,
			name=name,
			avatar=avatar,
			is_group=conversation.is_group,
			created_at=conversation.created_at,
			updated_at=conversation.updated_at,
			participants=views,
		)

	async def _load_participants(self, conversation_ids: Sequence[str]) -> Dict[str, List[ParticipantView]]:
		try:
			grouped = await self._repo.participants_for(conversation_ids)
		except Exception:
			logger.warning("participant fetch failed", exc_info=True)
			obs_metrics.inc_degraded_read("participants")
			return {}
		try:
			profiles = await self._repo.get_profiles(
				p.user_id for members in grouped.values() for p in members
			)
		except Exception:
			logger.warning("profile fetch failed", exc_info=True)
			obs_metrics.inc_degraded_read("profiles")
			profiles = {}
		return {cid: _participant_views(members, profiles) for cid, members in grouped.items()}

	async def _load_latest(self, conversation_ids: Sequence[str]) -> Dict[str, Message]:
		try:
			return await self._repo.latest_messages(conversation_ids)
		except Exception:
			logger.warning("latest message fetch failed", exc_info=True)
			obs_metrics.inc_degraded_read("last_message")
			return {}

	async def _load_unread(self, conversation_ids: Sequence[str], user_id: str) -> Dict[str, int]:
		try:
			return await self._repo.unread_counts(conversation_ids, user_id)
		except Exception:
			logger.warning("unread count fetch failed", exc_info=True)
			obs_metrics.inc_degraded_read("unread")
			return {}
