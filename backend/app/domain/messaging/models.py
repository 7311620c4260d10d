"""Domain models for conversations and messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Tuple


@dataclass(slots=True)
class Conversation:
	"""A direct (two-party) or group conversation."""

	id: str
	is_group: bool
	name: Optional[str]
	created_at: datetime
	updated_at: datetime

	@classmethod
	def from_record(cls, record) -> "Conversation":
		return cls(
			id=str(record["id"]),
			is_group=bool(record["is_group"]),
			name=record["name"],
			created_at=record["created_at"],
			updated_at=record["updated_at"],
		)

	def to_dict(self) -> dict:
		return {
			"id": self.id,
			"is_group": self.is_group,
			"name": self.name,
			"created_at": self.created_at.isoformat(),
			"updated_at": self.updated_at.isoformat(),
		}


@dataclass(slots=True)
class Participant:
	"""Membership row; its existence is the only authorisation token for a conversation."""

	conversation_id: str
	user_id: str
	joined_at: datetime

	@classmethod
	def from_record(cls, record) -> "Participant":
		return cls(
			conversation_id=str(record["conversation_id"]),
			user_id=str(record["user_id"]),
			joined_at=record["joined_at"],
		)


@dataclass(slots=True)
class Profile:
	id: str
	full_name: Optional[str]
	profile_image_url: Optional[str] = None

	@classmethod
	def from_record(cls, record) -> "Profile":
		return cls(
			id=str(record["id"]),
			full_name=record["full_name"],
			profile_image_url=record["profile_image_url"],
		)


@dataclass(slots=True)
class Message:
	id: str
	conversation_id: str
	sender_id: str
	content: str
	created_at: datetime
	read_by: Tuple[str, ...] = field(default_factory=tuple)

	@classmethod
	def from_record(cls, record) -> "Message":
		return cls(
			id=str(record["id"]),
			conversation_id=str(record["conversation_id"]),
			sender_id=str(record["sender_id"]),
			content=record["content"],
			created_at=record["created_at"],
			read_by=read_set(record["read_by"] or ()),
		)

	def is_read_by(self, user_id: str) -> bool:
		return user_id in self.read_by

	def needs_receipt(self, user_id: str) -> bool:
		return self.sender_id != user_id and not self.is_read_by(user_id)

	def to_dict(self) -> dict:
		return {
			"id": self.id,
			"conversation_id": self.conversation_id,
			"sender_id": self.sender_id,
			"content": self.content,
			"created_at": self.created_at.isoformat(),
			"read_by": list(self.read_by),
		}


def read_set(raw: Iterable[str]) -> Tuple[str, ...]:
	"""Normalise a stored reader collection, keeping first-seen order."""
	seen: list[str] = []
	for user_id in raw:
		value = str(user_id)
		if value not in seen:
			seen.append(value)
	return tuple(seen)
