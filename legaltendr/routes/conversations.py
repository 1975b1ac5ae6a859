"""
LegalTendr Backend — Conversation Route Handlers
==================================================

What:  Inbox, threads, sending and read receipts.
       Non-participants get 404 for every conversation-scoped path.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from legaltendr.database import get_db_session
from legaltendr.dependencies import get_current_user, require_client
from legaltendr.models import User
from legaltendr.schemas.common import CountResponse, ErrorResponse
from legaltendr.schemas.conversation import (
    ConversationResponse,
    MarkReadRequest,
    MessageResponse,
    SendMessageRequest,
    StartConversationRequest,
    StartConversationResponse,
)
from legaltendr.services.conversation_service import conversation_service

router = APIRouter(prefix="/api", tags=["Conversations"])

NOT_FOUND = {404: {"description": "Conversation not found", "model": ErrorResponse}}


@router.get(
    "/conversations",
    response_model=List[ConversationResponse],
    summary="Inbox, most recent activity first",
)
async def list_conversations(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[ConversationResponse]:
    return await conversation_service.list_conversations(db, user)


@router.post(
    "/conversations",
    response_model=StartConversationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Blank initial message, or a match with another lawyer", "model": ErrorResponse},
        404: {"description": "Lawyer or match not found", "model": ErrorResponse},
    },
    summary="Start (or continue) a conversation with a lawyer",
)
async def start_conversation(
    body: StartConversationRequest,
    client: User = Depends(require_client),
    db: AsyncSession = Depends(get_db_session),
) -> StartConversationResponse:
    return await conversation_service.start_conversation(
        db, client, body.lawyer_id, body.initial_message, body.match_id
    )


@router.get(
    "/conversations/{conversation_id}",
    response_model=ConversationResponse,
    responses=NOT_FOUND,
    summary="One conversation with counterpart and unread count",
)
async def get_conversation(
    conversation_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ConversationResponse:
    return await conversation_service.get_conversation(db, user, conversation_id)


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=List[MessageResponse],
    responses=NOT_FOUND,
    summary="Messages of a conversation, oldest first",
)
async def get_messages(
    conversation_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[MessageResponse]:
    return await conversation_service.get_messages(db, user, conversation_id)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Empty message", "model": ErrorResponse}, **NOT_FOUND},
    summary="Send a message",
)
async def send_message(
    conversation_id: uuid.UUID,
    body: SendMessageRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await conversation_service.send_message(db, user, conversation_id, body.content)


@router.post(
    "/messages/read",
    response_model=CountResponse,
    summary="Mark messages addressed to the caller as read",
)
async def mark_as_read(
    body: MarkReadRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CountResponse:
    return CountResponse(count=await conversation_service.mark_as_read(db, user, body.message_ids))
