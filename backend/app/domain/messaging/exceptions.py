"""Domain-level exceptions for conversations and messages."""

from __future__ import annotations


class MessagingError(Exception):
	"""Base class for messaging errors.

	``reason`` is a stable machine code used by the API layer, the exception
	message is the human readable text returned in failure envelopes.
	"""

	reason: str = "unknown"
	message: str = "Messaging operation failed"

	def __init__(self, message: str | None = None) -> None:
		super().__init__(message or self.message)


class MessagingValidationError(MessagingError):
	reason = "validation"


class EmptyContent(MessagingValidationError):
	message = "Message content cannot be empty"


class InvalidParticipantCount(MessagingValidationError):
	message = "Non-group conversations must have exactly one other participant"


class NotGroupConversation(MessagingValidationError):
	message = "Cannot add participants to non-group conversations"


class NotParticipant(MessagingError):
	reason = "forbidden"
	message = "You are not a participant in this conversation"


class ConversationNotFound(MessagingError):
	reason = "not_found"
	message = "Conversation not found"


class AlreadyParticipant(MessagingError):
	reason = "conflict"
	message = "User is already a participant in this conversation"
