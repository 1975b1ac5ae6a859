"""
LegalTendr Backend — Conversation and Message Schemas
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    message_id: uuid.UUID
    conversation_id: uuid.UUID
    sender_id: str
    content: str
    timestamp: datetime
    is_read: bool

    model_config = {"from_attributes": True}


class LatestMessage(BaseModel):
    content: str
    timestamp: datetime
    is_read: bool


class Counterpart(BaseModel):
    """The other participant as shown in the inbox."""
    user_id: str
    user_type: str
    first_name: str
    last_name: str
    profile_picture_url: Optional[str] = None
    hourly_rate: Optional[float] = None
    years_of_experience: Optional[int] = None


class ConversationResponse(BaseModel):
    conversation_id: uuid.UUID
    client_id: str
    lawyer_id: str
    match_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
    other_party: Optional[Counterpart] = None
    latest_message: Optional[LatestMessage] = None
    unread_count: int = 0


class StartConversationRequest(BaseModel):
    lawyer_id: str = Field(min_length=1, max_length=50)
    initial_message: str
    match_id: Optional[uuid.UUID] = None


class StartConversationResponse(BaseModel):
    conversation: ConversationResponse
    message: MessageResponse


class SendMessageRequest(BaseModel):
    content: str = Field(max_length=5000)


class MarkReadRequest(BaseModel):
    message_ids: List[uuid.UUID] = Field(default_factory=list)
