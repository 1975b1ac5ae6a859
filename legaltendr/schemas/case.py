"""
LegalTendr Backend — Case Schemas
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from legaltendr.schemas.auth import SpecialtyRef

CaseStatus = Literal["open", "in_progress", "closed"]


class CaseCreate(BaseModel):
    title: str = Field(max_length=200)
    description: str
    specialties: List[str] = Field(default_factory=list)


class CaseUpdate(BaseModel):
    """Only the fields present are changed; specialties replace the whole set."""
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    specialties: Optional[List[str]] = None
    status: Optional[CaseStatus] = None
    hired_lawyer_id: Optional[str] = Field(default=None, max_length=50)


class CaseResponse(BaseModel):
    case_id: uuid.UUID
    client_id: str
    title: str
    description: str
    status: str
    hired_lawyer_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    specialties: List[SpecialtyRef] = Field(default_factory=list)


class ShareCaseRequest(BaseModel):
    conversation_id: uuid.UUID
