"""Persistence for community members and event participants."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Dict, Optional, Set, Tuple

import asyncpg
import ulid

from app.infra.postgres import get_pool_or_none
from app.settings import settings

from .models import Roster


class _MemoryStore:
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.rows: Set[Tuple[str, str, str]] = set()
		self.counters: Dict[Tuple[str, str], int] = {}

	async def reset(self) -> None:
		async with self._lock:
			self.rows.clear()
			self.counters.clear()

	async def exists(self, roster: Roster, target_id: str, user_id: str) -> bool:
		async with self._lock:
			return (roster.name, target_id, user_id) in self.rows

	async def add(self, roster: Roster, target_id: str, user_id: str) -> bool:
		async with self._lock:
			key = (roster.name, target_id, user_id)
			if key in self.rows:
				return False
			self.rows.add(key)
			return True

	async def remove(self, roster: Roster, target_id: str, user_id: str) -> bool:
		async with self._lock:
			key = (roster.name, target_id, user_id)
			if key not in self.rows:
				return False
			self.rows.discard(key)
			return True

	async def adjust_counter(self, roster: Roster, target_id: str, delta: int) -> None:
		async with self._lock:
			key = (roster.name, target_id)
			self.counters[key] = max(0, self.counters.get(key, 0) + delta)

	async def counter(self, roster: Roster, target_id: str) -> int:
		async with self._lock:
			return self.counters.get((roster.name, target_id), 0)


_MEMORY = _MemoryStore()


async def reset_memory_state() -> None:
	await _MEMORY.reset()


class EngagementRepository:
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

	async def exists(self, roster: Roster, target_id: str, user_id: str) -> bool:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.exists(roster, target_id, user_id)
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				f"SELECT 1 FROM {roster.table} WHERE {roster.key_column} = $1 AND user_id = $2",
				target_id,
				user_id,
			)
		return row is not None

	async def add(self, roster: Roster, target_id: str, user_id: str) -> bool:
		"""Insert the roster row; ``False`` when it already existed."""
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.add(roster, target_id, user_id)
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				f"""
				INSERT INTO {roster.table} (id, {roster.key_column}, user_id, {roster.joined_column})
				VALUES ($1, $2, $3, $4)
				ON CONFLICT ({roster.key_column}, user_id) DO NOTHING
				RETURNING id
				""",
				str(ulid.new()),
				target_id,
				user_id,
				datetime.now(timezone.utc),
			)
		return row is not None

	async def remove(self, roster: Roster, target_id: str, user_id: str) -> bool:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.remove(roster, target_id, user_id)
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				f"DELETE FROM {roster.table} WHERE {roster.key_column} = $1 AND user_id = $2 RETURNING id",
				target_id,
				user_id,
			)
		return row is not None

	async def adjust_counter(self, roster: Roster, target_id: str, delta: int) -> None:
		pool = await self._get_pool()
		if pool is None:
			await self._memory.adjust_counter(roster, target_id, delta)
			return
		async with pool.acquire() as conn:
			await conn.execute(
				f"""
				UPDATE {roster.counter_table}
				SET {roster.counter_column} = GREATEST({roster.counter_column} + $2, 0)
				WHERE id = $1
				""",
				target_id,
				delta,
			)
