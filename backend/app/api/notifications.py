"""FastAPI routes for the notification inbox."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.errors import raise_for_failure
from app.domain.notifications import service
from app.domain.notifications.schemas import MarkReadResult, NotificationList
from app.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationList)
async def list_notifications_endpoint(
	unread_only: bool = Query(default=False),
	limit: Optional[int] = Query(default=None, ge=1),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> NotificationList:
	return await service.list_notifications(auth_user.id, unread_only=unread_only, limit=limit)


@router.post("/read-all", response_model=MarkReadResult)
async def mark_all_read_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> MarkReadResult:
	result = await service.mark_all_as_read(auth_user.id)
	raise_for_failure(result)
	return result


@router.post("/{notification_id}/read", response_model=MarkReadResult)
async def mark_read_endpoint(
	notification_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> MarkReadResult:
	result = await service.mark_as_read(notification_id, auth_user.id)
	raise_for_failure(result)
	return result
