"""FastAPI routes for the AI chat assistant."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.errors import REASON_STATUS, raise_for_failure
from app.domain.assistant import service
from app.domain.assistant.schemas import (
	ChatExchangeResult,
	ChatMessageRequest,
	CreateSessionResult,
	SessionView,
	TurnView,
)
from app.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/assistant", tags=["assistant"])


@router.post("/sessions", response_model=CreateSessionResult, status_code=status.HTTP_201_CREATED)
async def create_session_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> CreateSessionResult:
	result = await service.create_chat_session(auth_user.id)
	raise_for_failure(result)
	return result


@router.get("/sessions", response_model=List[SessionView])
async def list_sessions_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> List[SessionView]:
	return await service.list_chat_sessions(auth_user.id)


@router.get("/sessions/{session_id}/messages", response_model=List[TurnView])
async def list_turns_endpoint(
	session_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> List[TurnView]:
	return await service.get_chat_session_messages(session_id, auth_user.id)


@router.post("/sessions/{session_id}/messages", response_model=ChatExchangeResult)
async def send_turn_endpoint(
	session_id: str,
	payload: ChatMessageRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ChatExchangeResult:
	result = await service.send_chat_message(session_id, auth_user.id, payload.message)
	if not result.success and result.user_message is not None:
		# The user turn is saved; report the failed reply with the partial exchange.
		raise HTTPException(
			status_code=REASON_STATUS.get(result.reason or "", status.HTTP_502_BAD_GATEWAY),
			detail=result.model_dump(mode="json"),
		)
	raise_for_failure(result)
	return result
