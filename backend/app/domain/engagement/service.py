"""Community membership and event registration actions.

A successful join or registration fans out a notification to the acting
user. The notification is best-effort and never changes the action result.
"""

from __future__ import annotations

import logging

from app.domain.notifications import service as notifications
from app.domain.notifications.models import NotificationType, ReferenceKind
from app.obs import metrics as obs_metrics

from .models import COMMUNITY_MEMBERS, EVENT_PARTICIPANTS, EngagementResult, Roster
from .repo import EngagementRepository

logger = logging.getLogger(__name__)


class EngagementService:
	def __init__(self, repository: EngagementRepository | None = None) -> None:
		self._repo = repository or EngagementRepository()

	async def join_community(self, user_id: str, community_id: str) -> EngagementResult:
		try:
			added = await self._repo.add(COMMUNITY_MEMBERS, community_id, user_id)
		except Exception:
			logger.warning("community join failed", extra={"community_id": community_id}, exc_info=True)
			obs_metrics.engagement_action("join_community", "error")
			return EngagementResult(success=False, message="Failed to join community", reason="unavailable")
		if not added:
			obs_metrics.engagement_action("join_community", "duplicate")
			return EngagementResult(success=False, message="You are already a member of this community", reason="conflict")
		await self._bump(COMMUNITY_MEMBERS, community_id, 1)
		await notifications.notify_best_effort(
			user_id,
			NotificationType.COMMUNITY_JOIN,
			"You have successfully joined a new community",
			community_id,
			ReferenceKind.COMMUNITY,
		)
		obs_metrics.engagement_action("join_community", "ok")
		return EngagementResult(success=True, message="Successfully joined community")

	async def leave_community(self, user_id: str, community_id: str) -> EngagementResult:
		try:
			removed = await self._repo.remove(COMMUNITY_MEMBERS, community_id, user_id)
		except Exception:
			logger.warning("community leave failed", extra={"community_id": community_id}, exc_info=True)
			obs_metrics.engagement_action("leave_community", "error")
			return EngagementResult(success=False, message="Failed to leave community", reason="unavailable")
		if not removed:
			obs_metrics.engagement_action("leave_community", "missing")
			return EngagementResult(success=False, message="You are not a member of this community", reason="not_found")
		await self._bump(COMMUNITY_MEMBERS, community_id, -1)
		obs_metrics.engagement_action("leave_community", "ok")
		return EngagementResult(success=True, message="Successfully left community")

	async def register_for_event(self, user_id: str, event_id: str) -> EngagementResult:
		try:
			added = await self._repo.add(EVENT_PARTICIPANTS, event_id, user_id)
		except Exception:
			logger.warning("event registration failed", extra={"event_id": event_id}, exc_info=True)
			obs_metrics.engagement_action("register_event", "error")
			return EngagementResult(success=False, message="Failed to register for event", reason="unavailable")
		if not added:
			obs_metrics.engagement_action("register_event", "duplicate")
			return EngagementResult(success=False, message="You are already registered for this event", reason="conflict")
		await self._bump(EVENT_PARTICIPANTS, event_id, 1)
		await notifications.notify_best_effort(
			user_id,
			NotificationType.EVENT_REGISTRATION,
			"You have successfully registered for an event",
			event_id,
			ReferenceKind.EVENT,
		)
		obs_metrics.engagement_action("register_event", "ok")
		return EngagementResult(success=True, message="Successfully registered for event")

	async def unregister_from_event(self, user_id: str, event_id: str) -> EngagementResult:
		try:
			removed = await self._repo.remove(EVENT_PARTICIPANTS, event_id, user_id)
		except Exception:
			logger.warning("event unregistration failed", extra={"event_id": event_id}, exc_info=True)
			obs_metrics.engagement_action("unregister_event", "error")
			return EngagementResult(success=False, message="Failed to unregister from event", reason="unavailable")
		if not removed:
			obs_metrics.engagement_action("unregister_event", "missing")
			return EngagementResult(success=False, message="You are not registered for this event", reason="not_found")
		await self._bump(EVENT_PARTICIPANTS, event_id, -1)
		obs_metrics.engagement_action("unregister_event", "ok")
		return EngagementResult(success=True, message="Successfully unregistered from event")

	async def is_community_member(self, user_id: str, community_id: str) -> bool:
		return await self._check(COMMUNITY_MEMBERS, community_id, user_id)

	async def is_event_participant(self, user_id: str, event_id: str) -> bool:
		return await self._check(EVENT_PARTICIPANTS, event_id, user_id)

	async def _check(self, roster: Roster, target_id: str, user_id: str) -> bool:
		try:
			return await self._repo.exists(roster, target_id, user_id)
		except Exception:
			logger.warning("%s roster check failed", roster.name, exc_info=True)
			obs_metrics.inc_degraded_read(f"{roster.name}_roster")
			return False

	async def _bump(self, roster: Roster, target_id: str, delta: int) -> None:
		try:
			await self._repo.adjust_counter(roster, target_id, delta)
		except Exception:
			logger.warning("%s counter update failed", roster.name, extra={"target_id": target_id}, exc_info=True)


_SERVICE = EngagementService()


async def join_community(user_id: str, community_id: str) -> EngagementResult:
	return await _SERVICE.join_community(user_id, community_id)


async def leave_community(user_id: str, community_id: str) -> EngagementResult:
	return await _SERVICE.leave_community(user_id, community_id)


async def is_community_member(user_id: str, community_id: str) -> bool:
	return await _SERVICE.is_community_member(user_id, community_id)


async def register_for_event(user_id: str, event_id: str) -> EngagementResult:
	return await _SERVICE.register_for_event(user_id, event_id)


async def unregister_from_event(user_id: str, event_id: str) -> EngagementResult:
	return await _SERVICE.unregister_from_event(user_id, event_id)


async def is_event_participant(user_id: str, event_id: str) -> bool:
	return await _SERVICE.is_event_participant(user_id, event_id)
