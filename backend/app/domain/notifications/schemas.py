"""Pydantic schemas for notifications."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.domain.common.results import ActionResult

from .models import Notification


class NotificationView(BaseModel):
	id: str
	type: str
	content: str
	reference_id: Optional[str] = None
	reference_type: Optional[str] = None
	link: str
	created_at: datetime
	is_read: bool

	@classmethod
	def from_model(cls, notification: Notification) -> "NotificationView":
		return cls(
			id=notification.id,
			type=notification.type,
			content=notification.content,
			reference_id=notification.reference_id,
			reference_type=notification.reference_type,
			link=notification.link,
			created_at=notification.created_at,
			is_read=notification.is_read,
		)


class NotificationList(BaseModel):
	items: List[NotificationView] = Field(default_factory=list)
	unread_count: int = 0


class NotifyResult(ActionResult):
	notification: Optional[NotificationView] = None


class MarkReadResult(ActionResult):
	updated: int = 0
