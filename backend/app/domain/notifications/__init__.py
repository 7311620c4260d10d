"""Notification domain exports."""

from .models import NotificationTarget, NotificationType, ReferenceKind, route_for
from .repo import reset_memory_state
from .service import list_notifications, mark_all_as_read, mark_as_read, notify, notify_best_effort

__all__ = [
	"NotificationTarget",
	"NotificationType",
	"ReferenceKind",
	"list_notifications",
	"mark_all_as_read",
	"mark_as_read",
	"notify",
	"notify_best_effort",
	"reset_memory_state",
	"route_for",
]
