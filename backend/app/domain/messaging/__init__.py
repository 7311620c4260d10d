"""Messaging domain exports."""

from .repo import reset_memory_state
from .service import (
	add_participant,
	create_conversation,
	get_conversation,
	get_messages,
	leave_conversation,
	list_conversations,
	send_message,
)

__all__ = [
	"add_participant",
	"create_conversation",
	"get_conversation",
	"get_messages",
	"leave_conversation",
	"list_conversations",
	"reset_memory_state",
	"send_message",
]
