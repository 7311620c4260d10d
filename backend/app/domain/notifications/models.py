"""Notification records and their navigation targets."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from app.settings import settings


class NotificationType(str, enum.Enum):
	COMMUNITY_JOIN = "community_join"
	EVENT_REGISTRATION = "event_registration"
	MESSAGE = "message"
	PROJECT_UPDATE = "project_update"
	TUTORIAL_PUBLISHED = "tutorial_published"


class ReferenceKind(str, enum.Enum):
	COMMUNITY = "community"
	EVENT = "event"
	PROJECT = "project"
	MESSAGE = "message"
	TUTORIAL = "tutorial"


ROUTES: Dict[ReferenceKind, str] = {
	ReferenceKind.COMMUNITY: "/communities/{id}",
	ReferenceKind.EVENT: "/events/{id}",
	ReferenceKind.PROJECT: "/projects/{id}",
	ReferenceKind.MESSAGE: "/messages",
	ReferenceKind.TUTORIAL: "/tutorials/{id}",
}

_unrouted = set(ReferenceKind) - set(ROUTES)
if _unrouted:
	raise RuntimeError(f"notification kinds without a route: {sorted(k.value for k in _unrouted)}")


@dataclass(frozen=True, slots=True)
class NotificationTarget:
	"""The domain object a notification points at."""

	kind: ReferenceKind
	reference_id: Optional[str] = None

	@classmethod
	def parse(cls, reference_type: Optional[str], reference_id: Optional[str]) -> Optional["NotificationTarget"]:
		if not reference_type:
			return None
		try:
			kind = ReferenceKind(reference_type)
		except ValueError:
			return None
		return cls(kind=kind, reference_id=str(reference_id) if reference_id is not None else None)


def route_for(target: Optional[NotificationTarget]) -> str:
	if target is None:
		return settings.notifications_fallback_route
	return ROUTES[target.kind].format(id=target.reference_id or "")


@dataclass(slots=True)
class Notification:
	id: str
	user_id: str
	type: str
	content: str
	reference_id: Optional[str]
	reference_type: Optional[str]
	created_at: datetime
	is_read: bool = False

	@classmethod
	def from_record(cls, record) -> "Notification":
		return cls(
			id=str(record["id"]),
			user_id=str(record["user_id"]),
			type=record["type"],
			content=record["content"],
			reference_id=record["reference_id"],
			reference_type=record["reference_type"],
			created_at=record["created_at"],
			is_read=bool(record["is_read"]),
		)

	@property
	def target(self) -> Optional[NotificationTarget]:
		"""Typed pointer; ``None`` for kinds without a page, whose raw reference is still kept."""
		return NotificationTarget.parse(self.reference_type, self.reference_id)

	@property
	def link(self) -> str:
		return route_for(self.target)
