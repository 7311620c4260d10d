"""Notification domain exceptions."""

from __future__ import annotations


class NotificationError(Exception):
	reason: str = "unknown"
	message: str = "Notification operation failed"

	def __init__(self, message: str | None = None) -> None:
		super().__init__(message or self.message)


class NotificationNotFound(NotificationError):
	reason = "not_found"
	message = "Notification not found"


class InvalidNotification(NotificationError):
	reason = "validation"
	message = "Notification content cannot be empty"
