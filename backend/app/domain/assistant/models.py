"""Assistant sessions and turns."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class ChatSession:
	id: str
	user_id: str
	created_at: datetime
	updated_at: datetime

	@classmethod
	def from_record(cls, record) -> "ChatSession":
		return cls(
			id=str(record["id"]),
			user_id=str(record["user_id"]),
			created_at=record["created_at"],
			updated_at=record["updated_at"],
		)


@dataclass(slots=True)
class ChatTurn:
	"""One side of an exchange; authorship is the binary ``is_user`` flag."""

	id: str
	session_id: str
	is_user: bool
	content: str
	created_at: datetime

	@classmethod
	def from_record(cls, record) -> "ChatTurn":
		return cls(
			id=str(record["id"]),
			session_id=str(record["session_id"]),
			is_user=bool(record["is_user"]),
			content=record["content"],
			created_at=record["created_at"],
		)

	@property
	def role(self) -> str:
		return "user" if self.is_user else "assistant"

	@property
	def speaker(self) -> str:
		return "User" if self.is_user else "Assistant"
