"""
LegalTendr Backend — Catalog Route Handlers
=============================================

What:  Specialties and geo codes for forms and filters.
       Reads are public (the sign-up form needs them); creating a
       specialty or loading geo codes needs an admin account.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from legaltendr.database import get_db_session
from legaltendr.dependencies import require_admin
from legaltendr.models import User
from legaltendr.schemas.catalog import (
    GeoCodeImport,
    GeoCodeResponse,
    GeoImportResponse,
    SpecialtyCreate,
    SpecialtyResponse,
)
from legaltendr.schemas.common import ErrorResponse
from legaltendr.services.catalog_service import catalog_service

router = APIRouter(prefix="/api", tags=["Catalog"])


@router.get(
    "/specialties",
    response_model=List[SpecialtyResponse],
    summary="List legal specialties by name",
)
async def list_specialties(db: AsyncSession = Depends(get_db_session)) -> List[SpecialtyResponse]:
    specialties = await catalog_service.list_specialties(db)
    return [SpecialtyResponse.model_validate(s) for s in specialties]


@router.post(
    "/specialties",
    response_model=SpecialtyResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"description": "Not an admin", "model": ErrorResponse},
        409: {"description": "Name already used", "model": ErrorResponse},
    },
    summary="Create a specialty (admin)",
)
async def create_specialty(
    body: SpecialtyCreate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> SpecialtyResponse:
    specialty = await catalog_service.create_specialty(db, body.name, body.description)
    return SpecialtyResponse.model_validate(specialty)


@router.get(
    "/geo/provinces",
    response_model=List[GeoCodeResponse],
    summary="List provinces by name",
)
async def list_provinces(db: AsyncSession = Depends(get_db_session)) -> List[GeoCodeResponse]:
    provinces = await catalog_service.list_provinces(db)
    return [GeoCodeResponse.model_validate(p) for p in provinces]


@router.get(
    "/geo/provinces/{province_id}/cities",
    response_model=List[GeoCodeResponse],
    summary="List the cities and municipalities of a province",
)
async def list_cities(
    province_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> List[GeoCodeResponse]:
    cities = await catalog_service.list_cities(db, province_id)
    return [GeoCodeResponse.model_validate(c) for c in cities]


@router.put(
    "/geo/codes",
    response_model=GeoImportResponse,
    responses={
        400: {"description": "Duplicate id in the batch", "model": ErrorResponse},
        403: {"description": "Not an admin", "model": ErrorResponse},
    },
    summary="Load or refresh PSGC geo codes (admin)",
    description="Rows are matched by id: new ids are inserted, known ids are overwritten.",
)
async def import_geo_codes(
    body: List[GeoCodeImport],
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> GeoImportResponse:
    created, updated = await catalog_service.import_geo_codes(db, body)
    return GeoImportResponse(created=created, updated=updated)
