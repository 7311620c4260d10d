"""Persistence for assistant sessions and their turns."""

from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

import asyncpg

from app.infra.postgres import get_pool_or_none
from app.settings import settings

from .models import ChatSession, ChatTurn


class _MemoryStore:
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.sessions: Dict[str, ChatSession] = {}
		self.turns: Dict[str, List[ChatTurn]] = {}

	async def reset(self) -> None:
		async with self._lock:
			self.sessions.clear()
			self.turns.clear()

	async def create_session(self, session: ChatSession) -> ChatSession:
		async with self._lock:
			self.sessions[session.id] = session
			self.turns.setdefault(session.id, [])
			return session

	async def list_sessions(self, user_id: str) -> List[ChatSession]:
		async with self._lock:
			owned = [s for s in self.sessions.values() if s.user_id == user_id]
		return sorted(owned, key=lambda s: s.updated_at, reverse=True)

	async def get_session(self, session_id: str, user_id: str) -> Optional[ChatSession]:
		async with self._lock:
			session = self.sessions.get(session_id)
			if session is None or session.user_id != user_id:
				return None
			return session

	async def touch_session(self, session_id: str, at: datetime) -> None:
		async with self._lock:
			session = self.sessions.get(session_id)
			if session is not None:
				self.sessions[session_id] = replace(session, updated_at=at)

	async def add_turn(self, turn: ChatTurn) -> ChatTurn:
		async with self._lock:
			self.turns.setdefault(turn.session_id, []).append(turn)
			return turn

	async def list_turns(self, session_id: str) -> List[ChatTurn]:
		async with self._lock:
			return sorted(self.turns.get(session_id, []), key=lambda t: t.created_at)

	async def recent_turns(self, session_id: str, *, limit: int, exclude_id: Optional[str]) -> List[ChatTurn]:
		ordered = [t for t in await self.list_turns(session_id) if t.id != exclude_id]
		return ordered[-limit:] if limit > 0 else []


_MEMORY = _MemoryStore()


async def reset_memory_state() -> None:
	await _MEMORY.reset()


class AssistantRepository:
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

	async def create_session(self, session: ChatSession) -> ChatSession:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.create_session(session)
		async with pool.acquire() as conn:
			await conn.execute(
				"INSERT INTO chat_sessions (id, user_id, created_at, updated_at) VALUES ($1, $2, $3, $4)",
				session.id,
				session.user_id,
				session.created_at,
				session.updated_at,
			)
		return session

	async def list_sessions(self, user_id: str) -> List[ChatSession]:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.list_sessions(user_id)
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT id, user_id, created_at, updated_at
				FROM chat_sessions
				WHERE user_id = $1
				ORDER BY updated_at DESC
				""",
				user_id,
			)
		return [ChatSession.from_record(row) for row in rows]

	async def get_session(self, session_id: str, user_id: str) -> Optional[ChatSession]:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.get_session(session_id, user_id)
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				"SELECT id, user_id, created_at, updated_at FROM chat_sessions WHERE id = $1 AND user_id = $2",
				session_id,
				user_id,
			)
		return ChatSession.from_record(row) if row else None

	async def touch_session(self, session_id: str, at: datetime) -> None:
		pool = await self._get_pool()
		if pool is None:
			await self._memory.touch_session(session_id, at)
			return
		async with pool.acquire() as conn:
			await conn.execute("UPDATE chat_sessions SET updated_at = $2 WHERE id = $1", session_id, at)

	async def add_turn(self, turn: ChatTurn) -> ChatTurn:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.add_turn(turn)
		async with pool.acquire() as conn:
			await conn.execute(
				"""
				INSERT INTO chat_messages (id, session_id, is_user, content, created_at)
				VALUES ($1, $2, $3, $4, $5)
				""",
				turn.id,
				turn.session_id,
				turn.is_user,
				turn.content,
				turn.created_at,
			)
		return turn

	async def list_turns(self, session_id: str) -> List[ChatTurn]:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.list_turns(session_id)
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT id, session_id, is_user, content, created_at
				FROM chat_messages
				WHERE session_id = $1
				ORDER BY created_at ASC, id ASC
				""",
				session_id,
			)
		return [ChatTurn.from_record(row) for row in rows]

	async def recent_turns(self, session_id: str, *, limit: int, exclude_id: Optional[str] = None) -> List[ChatTurn]:
		"""Return the ``limit`` latest turns, oldest first, skipping ``exclude_id``."""
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.recent_turns(session_id, limit=limit, exclude_id=exclude_id)
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT id, session_id, is_user, content, created_at
				FROM chat_messages
				WHERE session_id = $1 AND ($2::text IS NULL OR id <> $2)
				ORDER BY created_at DESC, id DESC
				LIMIT $3
				""",
				session_id,
				exclude_id,
				limit,
			)
		return [ChatTurn.from_record(row) for row in reversed(rows)]
