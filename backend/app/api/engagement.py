"""FastAPI routes for joining communities and registering for events."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.errors import REASON_STATUS
from app.domain.engagement import service
from app.domain.engagement.models import EngagementResult
from app.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["engagement"])


def _checked(result: EngagementResult) -> EngagementResult:
	if result.success:
		return result
	code = REASON_STATUS.get(result.reason or "", status.HTTP_502_BAD_GATEWAY)
	raise HTTPException(status_code=code, detail=result.message)


@router.post("/communities/{community_id}/members", response_model=EngagementResult)
async def join_community_endpoint(
	community_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> EngagementResult:
	return _checked(await service.join_community(auth_user.id, community_id))


@router.delete("/communities/{community_id}/members", response_model=EngagementResult)
async def leave_community_endpoint(
	community_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> EngagementResult:
	return _checked(await service.leave_community(auth_user.id, community_id))


@router.get("/communities/{community_id}/members/me")
async def community_membership_endpoint(
	community_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
	return {"member": await service.is_community_member(auth_user.id, community_id)}


@router.post("/events/{event_id}/participants", response_model=EngagementResult)
async def register_event_endpoint(
	event_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> EngagementResult:
	return _checked(await service.register_for_event(auth_user.id, event_id))


@router.delete("/events/{event_id}/participants", response_model=EngagementResult)
async def unregister_event_endpoint(
	event_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> EngagementResult:
	return _checked(await service.unregister_from_event(auth_user.id, event_id))


@router.get("/events/{event_id}/participants/me")
async def event_registration_endpoint(
	event_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
	return {"registered": await service.is_event_participant(auth_user.id, event_id)}
