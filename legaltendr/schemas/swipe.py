"""
LegalTendr Backend — Swipe and Match Schemas
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from legaltendr.schemas.lawyer import LawyerProfile


class SwipeRequest(BaseModel):
    lawyer_id: str = Field(min_length=1, max_length=50)
    direction: Literal["left", "right"]


class SwipeResponse(BaseModel):
    swipe_id: uuid.UUID
    client_id: str
    lawyer_id: str
    direction: str
    matched: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class MatchPopup(BaseModel):
    """What the "You're connected" popup shows after a right swipe."""
    conversation_id: uuid.UUID
    lawyer_id: str
    lawyer_name: str
    lawyer_picture_url: Optional[str] = None


class SwipeResult(BaseModel):
    swipe: SwipeResponse
    match: Optional[MatchPopup] = Field(
        default=None, description="Present only for right swipes"
    )


class DeckResponse(BaseModel):
    lawyers: List[LawyerProfile]
    has_swiped: bool = Field(
        description="Whether the client has any swipe on record (offer a reset)"
    )


class UndoResponse(BaseModel):
    swipe: SwipeResponse
    conversation_deleted: bool


class MatchResponse(BaseModel):
    match_id: uuid.UUID
    client_id: str
    lawyer_id: str
    created_at: datetime
