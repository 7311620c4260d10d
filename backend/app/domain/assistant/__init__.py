"""Assistant domain exports."""

from .repo import reset_memory_state
from .service import (
	create_chat_session,
	generate_suggestions,
	get_chat_session_messages,
	list_chat_sessions,
	send_chat_message,
)

__all__ = [
	"create_chat_session",
	"generate_suggestions",
	"get_chat_session_messages",
	"list_chat_sessions",
	"reset_memory_state",
	"send_chat_message",
]
