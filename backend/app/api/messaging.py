"""FastAPI endpoints for conversations and message sending."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from app.api.timeouts import run_with_timeout
from app.domain.chat import delivery
from app.domain.chat import service as conversations
from app.domain.chat.schemas import (
	ConversationSummary,
	MessageResponse,
	SendMessageRequest,
	SendMessageResponse,
	UnreadCountResponse,
)
from app.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["messaging"])


@router.get("/conversations", response_model=List[ConversationSummary])
async def list_conversations_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> List[ConversationSummary]:
	return await run_with_timeout(
		conversations.list_conversations_for_user(auth_user.id),
		operation="conversations.list",
	)


@router.get("/conversations/{conversation_id}", response_model=List[MessageResponse])
async def get_conversation_messages_endpoint(
	conversation_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> List[MessageResponse]:
	return await run_with_timeout(
		conversations.get_messages(conversation_id, auth_user.id),
		operation="conversations.messages",
	)


@router.post("/messages", response_model=SendMessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message_endpoint(
	payload: SendMessageRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> SendMessageResponse:
	# Only the pre-write phase is bounded; a written message always completes its notification
	pending = await run_with_timeout(delivery.prepare_message(auth_user, payload), operation="messages.send")
	return await delivery.commit_message(auth_user, pending)


@router.get("/messages/unread-count", response_model=UnreadCountResponse)
async def unread_messages_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> UnreadCountResponse:
	count = await run_with_timeout(conversations.unread_count(auth_user.id), operation="messages.unread")
	return UnreadCountResponse(count=count)
