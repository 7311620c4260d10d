"""Persistence for notifications."""

from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from typing import Dict, List, Optional

import asyncpg

from app.infra.postgres import get_pool_or_none
from app.settings import settings

from .models import Notification

_COLUMNS = "id, user_id, type, content, reference_id, reference_type, created_at, is_read"


def _updated_count(status: str) -> int:
	try:
		return int(status.rsplit(" ", 1)[-1])
	except (AttributeError, ValueError):
		return 0


class _MemoryStore:
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.notifications: Dict[str, Notification] = {}

	async def reset(self) -> None:
		async with self._lock:
			self.notifications.clear()

	async def create(self, notification: Notification) -> Notification:
		async with self._lock:
			self.notifications[notification.id] = notification
			return notification

	async def list_for_user(self, user_id: str, *, limit: int, unread_only: bool) -> List[Notification]:
		async with self._lock:
			items = [
				n for n in self.notifications.values()
				if n.user_id == user_id and (not unread_only or not n.is_read)
			]
		items.sort(key=lambda n: n.created_at, reverse=True)
		return items[:limit]

	async def count_unread(self, user_id: str) -> int:
		async with self._lock:
			return sum(1 for n in self.notifications.values() if n.user_id == user_id and not n.is_read)

	async def mark_read(self, notification_id: str, user_id: str) -> bool:
		async with self._lock:
			current = self.notifications.get(notification_id)
			if current is None or current.user_id != user_id:
				return False
			if not current.is_read:
				self.notifications[notification_id] = replace(current, is_read=True)
			return True

	async def mark_all_read(self, user_id: str) -> int:
		async with self._lock:
			updated = 0
			for key, current in self.notifications.items():
				if current.user_id == user_id and not current.is_read:
					self.notifications[key] = replace(current, is_read=True)
					updated += 1
			return updated


_MEMORY = _MemoryStore()


async def reset_memory_state() -> None:
	await _MEMORY.reset()


class NotificationRepository:
	def __init__(self, memory: _MemoryStore | None = None) -> None:
		self._memory = memory or _MEMORY
		self._pool_instance: Optional[asyncpg.Pool] = None
		self._pool_retry_at = 0.0

	async def _get_pool(self) -> Optional[asyncpg.Pool]:
		# A found pool is kept; a miss is retried after postgres_retry_seconds.
		if self._pool_instance is None and time.monotonic() >= self._pool_retry_at:
			self._pool_instance = await get_pool_or_none()
			if self._pool_instance is None:
				self._pool_retry_at = time.monotonic() + settings.postgres_retry_seconds
		return self._pool_instance

	async def create(self, notification: Notification) -> Notification:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.create(notification)
		async with pool.acquire() as conn:
			await conn.execute(
				"""
				INSERT INTO notifications (id, user_id, type, content, reference_id, reference_type, created_at, is_read)
				VALUES ($1, $2, $3, $4, $5, $6, $7, FALSE)
				""",
				notification.id,
				notification.user_id,
				notification.type,
				notification.content,
				notification.reference_id,
				notification.reference_type,
				notification.created_at,
			)
		return notification

	async def list_for_user(self, user_id: str, *, limit: int, unread_only: bool = False) -> List[Notification]:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.list_for_user(user_id, limit=limit, unread_only=unread_only)
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				SELECT {_COLUMNS}
				FROM notifications
				WHERE user_id = $1 AND ($2::boolean IS FALSE OR is_read = FALSE)
				ORDER BY created_at DESC
				LIMIT $3
				""",
				user_id,
				unread_only,
				limit,
			)
		return [Notification.from_record(row) for row in rows]

	async def count_unread(self, user_id: str) -> int:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.count_unread(user_id)
		async with pool.acquire() as conn:
			value = await conn.fetchval(
				"SELECT COUNT(*) FROM notifications WHERE user_id = $1 AND is_read = FALSE",
				user_id,
			)
		return int(value or 0)

	async def mark_read(self, notification_id: str, user_id: str) -> bool:
		"""Set ``is_read`` on one notification owned by ``user_id``; never clears it."""
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.mark_read(notification_id, user_id)
		async with pool.acquire() as conn:
			status = await conn.execute(
				"UPDATE notifications SET is_read = TRUE WHERE id = $1 AND user_id = $2",
				notification_id,
				user_id,
			)
		return _updated_count(status) > 0

	async def mark_all_read(self, user_id: str) -> int:
		pool = await self._get_pool()
		if pool is None:
			return await self._memory.mark_all_read(user_id)
		async with pool.acquire() as conn:
			status = await conn.execute(
				"UPDATE notifications SET is_read = TRUE WHERE user_id = $1 AND is_read = FALSE",
				user_id,
			)
		return _updated_count(status)
