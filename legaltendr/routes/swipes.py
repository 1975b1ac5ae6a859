"""
LegalTendr Backend — Swipe and Match Route Handlers
=====================================================

What:  The client's swipe deck and swipe actions, plus the match list.

    GET  /api/swipes/deck    lawyers not yet swiped (discovery filters + case_id)
    POST /api/swipes         record a left/right swipe
    GET  /api/swipes         swipe history, oldest first
    POST /api/swipes/undo    undo the newest swipe
    POST /api/swipes/reset   forget passed (left) swipes
    GET  /api/matches        matches of a client or a lawyer
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from legaltendr.database import get_db_session
from legaltendr.dependencies import get_current_user, require_client
from legaltendr.models import User
from legaltendr.routes.lawyers import lawyer_filters
from legaltendr.schemas.common import CountResponse, ErrorResponse
from legaltendr.schemas.lawyer import LawyerFilters
from legaltendr.schemas.swipe import (
    DeckResponse,
    MatchResponse,
    SwipeRequest,
    SwipeResponse,
    SwipeResult,
    UndoResponse,
)
from legaltendr.services.match_service import match_service
from legaltendr.services.swipe_service import swipe_service

router = APIRouter(prefix="/api", tags=["Swipes"])


@router.get(
    "/swipes/deck",
    response_model=DeckResponse,
    responses={
        403: {"description": "Not a client", "model": ErrorResponse},
        404: {"description": "Case not found", "model": ErrorResponse},
    },
    summary="Lawyers the client has not swiped yet",
)
async def get_deck(
    filters: LawyerFilters = Depends(lawyer_filters),
    case_id: Optional[uuid.UUID] = Query(
        default=None, description="Add this case's specialties to the filter"
    ),
    client: User = Depends(require_client),
    db: AsyncSession = Depends(get_db_session),
) -> DeckResponse:
    return await swipe_service.get_deck(db, client, filters, case_id)


@router.post(
    "/swipes",
    response_model=SwipeResult,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"description": "Not a client", "model": ErrorResponse},
        404: {"description": "Lawyer not found", "model": ErrorResponse},
        409: {"description": "Already swiped", "model": ErrorResponse},
    },
    summary="Swipe left (pass) or right (match) on a lawyer",
)
async def record_swipe(
    body: SwipeRequest,
    client: User = Depends(require_client),
    db: AsyncSession = Depends(get_db_session),
) -> SwipeResult:
    return await swipe_service.record_swipe(db, client, body.lawyer_id, body.direction)


@router.get(
    "/swipes",
    response_model=List[SwipeResponse],
    summary="Swipe history, oldest first",
)
async def swipe_history(
    client: User = Depends(require_client),
    db: AsyncSession = Depends(get_db_session),
) -> List[SwipeResponse]:
    return await swipe_service.swipe_history(db, client)


@router.post(
    "/swipes/undo",
    response_model=UndoResponse,
    responses={404: {"description": "Nothing to undo", "model": ErrorResponse}},
    summary="Undo the most recent swipe",
)
async def undo_swipe(
    client: User = Depends(require_client),
    db: AsyncSession = Depends(get_db_session),
) -> UndoResponse:
    return await swipe_service.undo_last_swipe(db, client)


@router.post(
    "/swipes/reset",
    response_model=CountResponse,
    summary="Forget passed lawyers; matches are kept",
)
async def reset_passed(
    client: User = Depends(require_client),
    db: AsyncSession = Depends(get_db_session),
) -> CountResponse:
    return CountResponse(count=await swipe_service.reset_passed(db, client))


@router.get(
    "/matches",
    response_model=List[MatchResponse],
    tags=["Matches"],
    summary="Matches of the signed-in client or lawyer, newest first",
)
async def list_matches(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[MatchResponse]:
    return await match_service.list_matches(db, user)
