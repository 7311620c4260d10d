"""Engagement domain exports."""

from .models import EngagementResult
from .repo import reset_memory_state
from .service import (
	is_community_member,
	is_event_participant,
	join_community,
	leave_community,
	register_for_event,
	unregister_from_event,
)

__all__ = [
	"EngagementResult",
	"is_community_member",
	"is_event_participant",
	"join_community",
	"leave_community",
	"register_for_event",
	"reset_memory_state",
	"unregister_from_event",
]
