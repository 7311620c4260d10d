"""Persistence for conversations, participants and messages.

Each read used by the directory is a batched loader keyed by conversation id
so listing N conversations costs a fixed number of statements. When no
Postgres pool is available the repository runs on a process-local store.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

import asyncpg

from app.infra.postgres import get_pool_or_none
from app.settings import settings

from .exceptions import AlreadyParticipant
from .models import Conversation, Message, Participant, Profile, read_set


def _updated_count(status: str) -> int:
	"""Parse asyncpg's command tag (``UPDATE 3``) into a row count."""
	try:
		return int(status.rsplit(" ", 1)[-1])
	except (AttributeError, ValueError):
		return 0


class _MemoryStore:
	"""Fallback store used in tests and local tooling when Postgres is unavailable."""

	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.conversations: Dict[str, Conversation] = {}
		self.participants: Dict[str, Dict[str, Participant]] = {}
		self.messages: Dict[str, List[Message]] = {}
		self.profiles: Dict[str, Profile] = {}

	async def reset(self) -> None:
		async with self._lock:
			self.conversations.clear()
			self.participants.clear()
			self.messages.clear()
			self.profiles.clear()

	async def put_profile(self, profile: Profile) -> None:
		async with self._lock:
			self.profiles[profile.id] = profile

	async def conversation_ids_for(self, user_id: str) -> List[str]:
		async with self._lock:
			return [cid for cid, members in self.participants.items() if user_id in members]

	async def get_conversations(self, conversation_ids: Sequence[str]) -> List[Conversation]:
		async with self._lock:
			found = [self.conversations[cid] for cid in conversation_ids if cid in self.conversations]
		return sorted(found, key=lambda conv: conv.updated_at, reverse=True)

	async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
		async with self._lock:
			return self.conversations.get(conversation_id)

	async def participants_for(self, conversation_ids: Sequence[str]) -> Dict[str, List[Participant]]:
		async with self._lock:
			return {
				cid: sorted(self.participants.get(cid, {}).values(), key=lambda p: p.joined_at)
				for cid in conversation_ids
			}

	async def get_profiles(self, user_ids: Iterable[str]) -> Dict[str, Profile]:
		async with self._lock:
			return {uid: self.profiles[uid] for uid in user_ids if uid in self.profiles}

	async def latest_messages(self, conversation_ids: Sequence[str]) -> Dict[str, Message]:
		async with self._lock:
			latest: Dict[str, Message] = {}
			for cid in conversation_ids:
				ordered = self._newest_first(cid)
				if ordered:
					latest[cid] = ordered[0]
			return latest

	async def unread_counts(self, conversation_ids: Sequence[str], user_id: str) -> Dict[str, int]:
		async with self._lock:
			counts: Dict[str, int] = {}
			for cid in conversation_ids:
				total = sum(1 for msg in self.messages.get(cid, []) if not msg.is_read_by(user_id))
				if total:
					counts[cid] = total
			return counts

	async def is_participant(self, conversation_id: str, user_id: str) -> bool:
		async with self._lock:
			return user_id in self.participants.get(conversation_id, {})

	async def list_messages(self, conversation_id: str, limit: int) -> List[Message]:
		async with self._lock:
			return self._newest_first(conversation_id)[:limit]

	async def mark_read(self, message_ids: Sequence[str], user_id: str) -> int:
		targets = set(message_ids)
		updated = 0
		async with self._lock:
			for cid, messages in self.messages.items():
				for index, msg in enumerate(messages):
					if msg.id in targets and not msg.is_read_by(user_id):
						messages[index] = replace(msg, read_by=read_set((*msg.read_by, user_id)))
						updated += 1
		return updated

	async def insert_message(self, message: Message) -> Message:
		async with self._lock:
			self.messages.setdefault(message.conversation_id, []).append(message)
			return message

	async def touch_conversation(self, conversation_id: str, at: datetime) -> None:
		async with self._lock:
			conversation = self.conversations.get(conversation_id)
			if conversation is not None:
				self.conversations[conversation_id] = replace(conversation, updated_at=at)

	async def find_direct_conversation(self, user_a: str, user_b: str) -> Optional[Conversation]:
		async with self._lock:
			mine = {cid for cid, members in self.participants.items() if user_a in members}
			theirs = {cid for cid, members in self.participants.items() if user_b in members}
			shared = sorted(
				(self.conversations[cid] for cid in mine & theirs if cid in self.conversations),
				key=lambda conv: conv.created_at,
			)
			for conversation in shared:
				if not conversation.is_group:
					return conversation
			return None

	async def create_conversation(
		self, conversation: Conversation, participants: Sequence[Participant]
	) -> Conversation:
		async with self._lock:
			self.conversations[conversation.id] = conversation
			self.participants[conversation.id] = {p.user_id: p for p in participants}
			return conversation

	async def add_participant(self, participant: Participant) -> None:
		async with self._lock:
			members = self.participants.setdefault(participant.conversation_id, {})
			if participant.user_id in members:
				raise AlreadyParticipant()
			members[participant.user_id] = participant

	async def remove_participant(self, conversation_id: str, user_id: str) -> bool:
		async with self._lock:
			return self.participants.get(conversation_id, {}).pop(user_id, None) is not None

	def _newest_first(self, conversation_id: str) -> List[Message]:
		# sorted() is stable, so same-timestamp messages keep send order once reversed back.
		ordered = sorted(self.messages.get(conversation_id, []), key=lambda msg: msg.created_at)
		ordered.reverse()
		return ordered


_MEMORY = _MemoryStore()


async def reset_memory_state() -> None:
	await _MEMORY.reset()


class MessagingRepository:
	def __init__(self, memory: _MemoryStore | None = None) -> None:
		self._memory = memory or _MEMORY
		self._pool_instance: Optional[asyncpg.Pool] = None
		self._pool_retry_at = 0.0

	@property
	def memory(self) -> _MemoryStore:
		return self._memory

	async def _get_pool(self) -> Optional[asyncpg.Pool]:
		# A found pool is kept; a miss is retried after postgres_retry_seconds.
		if self._pool_instance is None and time.monotonic() >= self._pool_retry_at:
			self._pool_instance = await get_pool_or_none()
			if self._pool_instance is None:
				self._pool_retry_at = time.monotonic() + settings.postgres_retry_seconds
		return self._pool_instance

	async def conversation_ids_for(self, user_id: str) -> List[str]:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.conversation_ids_for(user_id)
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"SELECT conversation_id FROM conversation_participants WHERE user_id = $1",
				user_id,
			)
		return [str(row["conversation_id"]) for row in rows]

	async def get_conversations(self, conversation_ids: Sequence[str]) -> List[Conversation]:
		if not conversation_ids:
			return []
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.get_conversations(conversation_ids)
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT id, is_group, name, created_at, updated_at
				FROM conversations
				WHERE id = ANY($1::text[])
				ORDER BY updated_at DESC
				""",
				list(conversation_ids),
			)
		return [Conversation.from_record(row) for row in rows]

	async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.get_conversation(conversation_id)
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				"SELECT id, is_group, name, created_at, updated_at FROM conversations WHERE id = $1",
				conversation_id,
			)
		return Conversation.from_record(row) if row else None

	async def participants_for(self, conversation_ids: Sequence[str]) -> Dict[str, List[Participant]]:
		if not conversation_ids:
			return {}
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.participants_for(conversation_ids)
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT conversation_id, user_id, joined_at
				FROM conversation_participants
				WHERE conversation_id = ANY($1::text[])
				ORDER BY joined_at ASC
				""",
				list(conversation_ids),
			)
		grouped: Dict[str, List[Participant]] = {cid: [] for cid in conversation_ids}
		for row in rows:
			participant = Participant.from_record(row)
			grouped.setdefault(participant.conversation_id, []).append(participant)
		return grouped

	async def get_profiles(self, user_ids: Iterable[str]) -> Dict[str, Profile]:
		ids = sorted(set(user_ids))
		if not ids:
			return {}
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.get_profiles(ids)
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"SELECT id, full_name, profile_image_url FROM user_profiles WHERE id = ANY($1::text[])",
				ids,
			)
		return {str(row["id"]): Profile.from_record(row) for row in rows}

	async def latest_messages(self, conversation_ids: Sequence[str]) -> Dict[str, Message]:
		if not conversation_ids:
			return {}
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.latest_messages(conversation_ids)
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT DISTINCT ON (conversation_id)
					id, conversation_id, sender_id, content, created_at, read_by
				FROM messages
				WHERE conversation_id = ANY($1::text[])
				ORDER BY conversation_id, created_at DESC, id DESC
				""",
				list(conversation_ids),
			)
		return {str(row["conversation_id"]): Message.from_record(row) for row in rows}

	async def unread_counts(self, conversation_ids: Sequence[str], user_id: str) -> Dict[str, int]:
		if not conversation_ids:
			return {}
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.unread_counts(conversation_ids, user_id)
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT conversation_id, COUNT(*) AS unread
				FROM messages
				WHERE conversation_id = ANY($1::text[])
				  AND NOT ($2 = ANY(read_by))
				GROUP BY conversation_id
				""",
				list(conversation_ids),
				user_id,
			)
		return {str(row["conversation_id"]): int(row["unread"]) for row in rows}

	async def is_participant(self, conversation_id: str, user_id: str) -> bool:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.is_participant(conversation_id, user_id)
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				"SELECT 1 FROM conversation_participants WHERE conversation_id = $1 AND user_id = $2",
				conversation_id,
				user_id,
			)
		return row is not None

	async def list_messages(self, conversation_id: str, *, limit: int) -> List[Message]:
		"""Return up to ``limit`` messages, newest first."""
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.list_messages(conversation_id, limit)
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT id, conversation_id, sender_id, content, created_at, read_by
				FROM messages
				WHERE conversation_id = $1
				ORDER BY created_at DESC, id DESC
				LIMIT $2
				""",
				conversation_id,
				limit,
			)
		return [Message.from_record(row) for row in rows]

	async def mark_read(self, message_ids: Sequence[str], user_id: str) -> int:
		"""Add ``user_id`` to ``read_by`` of each message in one atomic set-add.

		Rows already containing the reader are skipped by the predicate, so
		concurrent readers never overwrite each other's receipts.
		"""
		if not message_ids:
			return 0
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.mark_read(message_ids, user_id)
		async with pool.acquire() as conn:
			status = await conn.execute(
				"""
				UPDATE messages
				SET read_by = array_append(read_by, $2)
				WHERE id = ANY($1::text[])
				  AND NOT ($2 = ANY(read_by))
				""",
				list(message_ids),
				user_id,
			)
		return _updated_count(status)

	async def insert_message(self, message: Message) -> Message:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.insert_message(message)
		async with pool.acquire() as conn:
			await conn.execute(
				"""
				INSERT INTO messages (id, conversation_id, sender_id, content, created_at, read_by)
				VALUES ($1, $2, $3, $4, $5, $6::text[])
				""",
				message.id,
				message.conversation_id,
				message.sender_id,
				message.content,
				message.created_at,
				list(message.read_by),
			)
		return message

	async def touch_conversation(self, conversation_id: str, at: datetime) -> None:
		pool = await self._get_pool()
		if pool is None:
			await self._memory.touch_conversation(conversation_id, at)
			return
		async with pool.acquire() as conn:
			await conn.execute(
				"UPDATE conversations SET updated_at = $2 WHERE id = $1",
				conversation_id,
				at,
			)

	async def find_direct_conversation(self, user_a: str, user_b: str) -> Optional[Conversation]:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.find_direct_conversation(user_a, user_b)
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				"""
				SELECT c.id, c.is_group, c.name, c.created_at, c.updated_at
				FROM conversations c
				JOIN conversation_participants mine
				  ON mine.conversation_id = c.id AND mine.user_id = $1
				JOIN conversation_participants theirs
				  ON theirs.conversation_id = c.id AND theirs.user_id = $2
				WHERE c.is_group = FALSE
				ORDER BY c.created_at ASC
				LIMIT 1
				""",
				user_a,
				user_b,
			)
		return Conversation.from_record(row) if row else None

	async def create_conversation(
		self, conversation: Conversation, participants: Sequence[Participant]
	) -> Conversation:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.create_conversation(conversation, participants)
		async with pool.acquire() as conn:
			await conn.execute(
				"""
				INSERT INTO conversations (id, is_group, name, created_at, updated_at)
				VALUES ($1, $2, $3, $4, $5)
				""",
				conversation.id,
				conversation.is_group,
				conversation.name,
				conversation.created_at,
				conversation.updated_at,
			)
			await conn.executemany(
				"""
				INSERT INTO conversation_participants (conversation_id, user_id, joined_at)
				VALUES ($1, $2, $3)
				""",
				[(p.conversation_id, p.user_id, p.joined_at) for p in participants],
			)
		return conversation

	async def add_participant(self, participant: Participant) -> None:
		pool = await self._get_pool()
		if pool is None:
			await self._memory.add_participant(participant)
			return
		async with pool.acquire() as conn:
			try:
				await conn.execute(
					"""
					INSERT INTO conversation_participants (conversation_id, user_id, joined_at)
					VALUES ($1, $2, $3)
					""",
					participant.conversation_id,
					participant.user_id,
					participant.joined_at,
				)
			except asyncpg.UniqueViolationError as exc:
				raise AlreadyParticipant() from exc

	async def remove_participant(self, conversation_id: str, user_id: str) -> bool:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.remove_participant(conversation_id, user_id)
		async with pool.acquire() as conn:
			status = await conn.execute(
				"DELETE FROM conversation_participants WHERE conversation_id = $1 AND user_id = $2",
				conversation_id,
				user_id,
			)
		return _updated_count(status) > 0
