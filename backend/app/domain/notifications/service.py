"""Notification fan-out: persistence, listing and read flags."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

import ulid

from app.obs import metrics as obs_metrics
from app.settings import settings

from . import sockets
from .exceptions import InvalidNotification, NotificationNotFound
from .models import Notification, NotificationType, ReferenceKind
from .repo import NotificationRepository
from .schemas import MarkReadResult, NotificationList, NotificationView, NotifyResult

logger = logging.getLogger(__name__)


class NotificationService:
	def __init__(self, repository: NotificationRepository | None = None) -> None:
		self._repo = repository or NotificationRepository()

	async def notify(
		self,
		user_id: str,
		type: NotificationType | str,
		content: str,
		reference_id: Optional[str] = None,
		reference_type: ReferenceKind | str | None = None,
	) -> NotifyResult:
		try:
			if not content or not content.strip():
				raise InvalidNotification()
			try:
				notification_type = NotificationType(type)
			except ValueError as exc:
				raise InvalidNotification(f"Unknown notification type: {type}") from exc
			kind = reference_type.value if isinstance(reference_type, ReferenceKind) else reference_type
			notification = Notification(
				id=str(ulid.new()),
				user_id=user_id,
				type=notification_type.value,
				content=content,
				reference_id=str(reference_id) if reference_id is not None else None,
				reference_type=kind or None,
				created_at=datetime.now(timezone.utc),
				is_read=False,
			)
			await self._repo.create(notification)
		except Exception as exc:
			obs_metrics.notification_persisted("error")
			logger.warning("notification insert failed", extra={"recipient": user_id}, exc_info=True)
			return NotifyResult.failed(exc)
		obs_metrics.notification_persisted("ok")
		view = NotificationView.from_model(notification)
		try:
			await sockets.emit_notification(user_id, view.model_dump(mode="json"))
		except Exception:
			logger.warning("notification push failed", extra={"notification_id": notification.id}, exc_info=True)
		return NotifyResult.ok(notification=view)

	async def notify_best_effort(
		self,
		user_id: str,
		type: NotificationType | str,
		content: str,
		reference_id: Optional[str] = None,
		reference_type: ReferenceKind | str | None = None,
	) -> None:
		"""Fire-and-forget wrapper for domain actions; failures are only logged."""
		result = await self.notify(user_id, type, content, reference_id, reference_type)
		if not result.success:
			logger.info("best-effort notification dropped", extra={"recipient": user_id, "reason": result.reason})

	async def list_notifications(
		self,
		user_id: str,
		*,
		unread_only: bool = False,
		limit: Optional[int] = None,
	) -> NotificationList:
		size = max(1, min(limit or settings.notifications_page_size, settings.notifications_page_size))
		try:
			items = await self._repo.list_for_user(user_id, limit=size, unread_only=unread_only)
		except Exception:
			logger.warning("notification listing failed", exc_info=True)
			obs_metrics.inc_degraded_read("notifications")
			items = []
		try:
			unread = await self._repo.count_unread(user_id)
		except Exception:
			logger.warning("unread notification count failed", exc_info=True)
			obs_metrics.inc_degraded_read("notification_unread")
			unread = 0
		return NotificationList(items=[NotificationView.from_model(n) for n in items], unread_count=unread)

	async def mark_as_read(self, notification_id: str, user_id: str) -> MarkReadResult:
		try:
			if not await self._repo.mark_read(notification_id, user_id):
				raise NotificationNotFound()
		except Exception as exc:
			logger.warning("mark notification read failed", extra={"notification_id": notification_id}, exc_info=True)
			return MarkReadResult.failed(exc)
		return MarkReadResult.ok(updated=1)

	async def mark_all_as_read(self, user_id: str) -> MarkReadResult:
		try:
			updated = await self._repo.mark_all_read(user_id)
		except Exception as exc:
			logger.warning("mark all notifications read failed", exc_info=True)
			return MarkReadResult.failed(exc)
		return MarkReadResult.ok(updated=updated)


_SERVICE = NotificationService()


async def notify(
	user_id: str,
	type: NotificationType | str,
	content: str,
	reference_id: Optional[str] = None,
	reference_type: ReferenceKind | str | None = None,
) -> NotifyResult:
	return await _SERVICE.notify(user_id, type, content, reference_id, reference_type)


async def notify_best_effort(
	user_id: str,
	type: NotificationType | str,
	content: str,
	reference_id: Optional[str] = None,
	reference_type: ReferenceKind | str | None = None,
) -> None:
	await _SERVICE.notify_best_effort(user_id, type, content, reference_id, reference_type)


async def list_notifications(user_id: str, *, unread_only: bool = False, limit: Optional[int] = None) -> NotificationList:
	return await _SERVICE.list_notifications(user_id, unread_only=unread_only, limit=limit)


async def mark_as_read(notification_id: str, user_id: str) -> MarkReadResult:
	return await _SERVICE.mark_as_read(notification_id, user_id)


async def mark_all_as_read(user_id: str) -> MarkReadResult:
	return await _SERVICE.mark_all_as_read(user_id)
