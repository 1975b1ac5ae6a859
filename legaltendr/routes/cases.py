"""
LegalTendr Backend — Case Route Handlers
==========================================

What:  Case CRUD for clients, read access for hired lawyers, matching
       lawyers for a case and sharing a case into a conversation.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from legaltendr.database import get_db_session
from legaltendr.dependencies import get_current_user, require_client
from legaltendr.models import User
from legaltendr.schemas.case import CaseCreate, CaseResponse, CaseUpdate, ShareCaseRequest
from legaltendr.schemas.common import ErrorResponse
from legaltendr.schemas.conversation import MessageResponse
from legaltendr.schemas.lawyer import LawyerProfile
from legaltendr.services.case_service import case_service
from legaltendr.services.lawyer_service import lawyer_service

router = APIRouter(prefix="/api/cases", tags=["Cases"])

NOT_FOUND = {404: {"description": "Case not found", "model": ErrorResponse}}


@router.get(
    "",
    response_model=List[CaseResponse],
    responses={400: {"description": "Unknown status", "model": ErrorResponse}},
    summary="Cases of the caller, newest first",
)
async def list_cases(
    case_status: Optional[str] = Query(default=None, alias="status"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[CaseResponse]:
    return await case_service.list_cases(db, user, case_status)


@router.post(
    "",
    response_model=CaseResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Missing text or unknown specialty", "model": ErrorResponse}},
    summary="Create a case",
)
async def create_case(
    body: CaseCreate,
    client: User = Depends(require_client),
    db: AsyncSession = Depends(get_db_session),
) -> CaseResponse:
    return await case_service.create_case(db, client, body)


@router.get(
    "/{case_id}",
    response_model=CaseResponse,
    responses=NOT_FOUND,
    summary="One case",
)
async def get_case(
    case_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CaseResponse:
    return await case_service.get_case(db, user, case_id)


@router.patch(
    "/{case_id}",
    response_model=CaseResponse,
    responses={400: {"description": "Invalid change", "model": ErrorResponse}, **NOT_FOUND},
    summary="Edit, hire on, or change the status of a case",
)
async def update_case(
    case_id: uuid.UUID,
    body: CaseUpdate,
    client: User = Depends(require_client),
    db: AsyncSession = Depends(get_db_session),
) -> CaseResponse:
    return await case_service.update_case(db, client, case_id, body)


@router.get(
    "/{case_id}/lawyers",
    response_model=List[LawyerProfile],
    responses=NOT_FOUND,
    summary="Lawyers sharing a specialty with the case",
)
async def matching_lawyers(
    case_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[LawyerProfile]:
    await case_service.ensure_visible(db, user, case_id)
    return await lawyer_service.get_matching_lawyers(db, case_id)


@router.post(
    "/{case_id}/share",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND,
    summary="Post the case summary into a conversation",
)
async def share_case(
    case_id: uuid.UUID,
    body: ShareCaseRequest,
    client: User = Depends(require_client),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await case_service.share_case(db, client, case_id, body.conversation_id)
