"""FastAPI routes for conversations and messages."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.api.errors import raise_for_failure
from app.domain.common.results import ActionResult
from app.domain.messaging import service
from app.domain.messaging.schemas import (
	AddParticipantRequest,
	ConversationDetail,
	ConversationSummary,
	CreateConversationRequest,
	CreateConversationResult,
	MessageView,
	SendMessageRequest,
	SendMessageResult,
)
from app.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/conversations", tags=["messages"])


@router.get("", response_model=List[ConversationSummary])
async def list_conversations_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> List[ConversationSummary]:
	return await service.list_conversations(auth_user.id)


@router.post("", response_model=CreateConversationResult, status_code=status.HTTP_201_CREATED)
async def create_conversation_endpoint(
	payload: CreateConversationRequest,
	response: Response,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> CreateConversationResult:
	result = await service.create_conversation(
		auth_user.id,
		name=payload.name,
		is_group=payload.is_group,
		participant_ids=payload.participant_ids,
	)
	raise_for_failure(result)
	if result.existing:
		response.status_code = status.HTTP_200_OK
	return result


@router.get("/{conversation_id}", response_model=ConversationDetail)
async def get_conversation_endpoint(
	conversation_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ConversationDetail:
	conversation = await service.get_conversation(conversation_id, auth_user.id)
	if conversation is None:
		raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="conversation_not_found")
	return conversation


@router.get("/{conversation_id}/messages", response_model=List[MessageView])
async def list_messages_endpoint(
	conversation_id: str,
	limit: Optional[int] = Query(default=None, ge=1),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> List[MessageView]:
	return await service.get_messages(conversation_id, auth_user.id, limit)


@router.post(
	"/{conversation_id}/messages",
	response_model=SendMessageResult,
	status_code=status.HTTP_201_CREATED,
)
async def send_message_endpoint(
	conversation_id: str,
	payload: SendMessageRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> SendMessageResult:
	result = await service.send_message(conversation_id, auth_user.id, payload.content)
	raise_for_failure(result)
	return result


@router.post("/{conversation_id}/participants", response_model=ActionResult)
async def add_participant_endpoint(
	conversation_id: str,
	payload: AddParticipantRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ActionResult:
	result = await service.add_participant(conversation_id, auth_user.id, payload.user_id)
	raise_for_failure(result)
	return result


@router.delete("/{conversation_id}/participants/me", response_model=ActionResult)
async def leave_conversation_endpoint(
	conversation_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ActionResult:
	result = await service.leave_conversation(conversation_id, auth_user.id)
	raise_for_failure(result)
	return result
