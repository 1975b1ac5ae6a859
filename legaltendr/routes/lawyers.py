"""
LegalTendr Backend — Lawyer Discovery Route Handlers
======================================================

What:  GET /api/lawyers (filtered list) and GET /api/lawyers/{id}.
       Available to any signed-in account.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from legaltendr.database import get_db_session
from legaltendr.dependencies import get_current_user
from legaltendr.models import User
from legaltendr.schemas.common import ErrorResponse
from legaltendr.schemas.lawyer import LawyerFilters, LawyerProfile
from legaltendr.services.lawyer_service import lawyer_service

router = APIRouter(prefix="/api", tags=["Lawyers"])


def lawyer_filters(
    specialties: List[str] = Query(
        default=[], description="Specialty ids; a lawyer matches when it has any of them"
    ),
    province_id: Optional[str] = Query(default=None),
    city_id: Optional[str] = Query(default=None),
    min_rate: Optional[float] = Query(default=None, ge=0, description="Inclusive"),
    max_rate: Optional[float] = Query(default=None, ge=0, description="Inclusive"),
) -> LawyerFilters:
    """Query-string → LawyerFilters; shared with the swipe deck route."""
    return LawyerFilters(
        specialties=specialties,
        province_id=province_id,
        city_id=city_id,
        min_rate=min_rate,
        max_rate=max_rate,
    )


@router.get(
    "/lawyers",
    response_model=List[LawyerProfile],
    responses={400: {"description": "min_rate > max_rate", "model": ErrorResponse}},
    summary="Discover lawyers",
    description="Ordered by rating, then number of reviews.",
)
async def list_lawyers(
    response: Response,
    filters: LawyerFilters = Depends(lawyer_filters),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[LawyerProfile]:
    lawyers = await lawyer_service.list_lawyers(db, filters)
    response.headers["X-Total-Count"] = str(len(lawyers))
    return lawyers


@router.get(
    "/lawyers/{lawyer_id}",
    response_model=LawyerProfile,
    responses={404: {"description": "Lawyer not found", "model": ErrorResponse}},
    summary="Get one lawyer",
)
async def get_lawyer(
    lawyer_id: str,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> LawyerProfile:
    return await lawyer_service.get_lawyer(db, lawyer_id)
