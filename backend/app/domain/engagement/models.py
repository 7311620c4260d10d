"""Rosters for community membership and event registration."""

from __future__ import annotations

from dataclasses import dataclass

from typing import Optional

from pydantic import BaseModel


@dataclass(frozen=True, slots=True)
class Roster:
	"""Describes a membership table and the counter column it maintains."""

	name: str
	table: str
	key_column: str
	joined_column: str
	counter_table: str
	counter_column: str


COMMUNITY_MEMBERS = Roster(
	name="community",
	table="community_members",
	key_column="community_id",
	joined_column="joined_at",
	counter_table="communities",
	counter_column="member_count",
)

EVENT_PARTICIPANTS = Roster(
	name="event",
	table="event_participants",
	key_column="event_id",
	joined_column="registered_at",
	counter_table="events",
	counter_column="participant_count",
)


class EngagementResult(BaseModel):
	success: bool
	message: str
	reason: Optional[str] = None
