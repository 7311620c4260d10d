"""Assistant domain exceptions."""

from __future__ import annotations


class AssistantError(Exception):
	reason: str = "unknown"
	message: str = "Assistant request failed"

	def __init__(self, message: str | None = None) -> None:
		super().__init__(message or self.message)


class EmptyPrompt(AssistantError):
	reason = "validation"
	message = "Message content cannot be empty"


class SessionNotFound(AssistantError):
	reason = "not_found"
	message = "Chat session not found or does not belong to user"


class CompletionError(AssistantError):
	"""The text-completion service failed or returned nothing usable."""

	reason = "unavailable"
	message = "Text completion failed"
