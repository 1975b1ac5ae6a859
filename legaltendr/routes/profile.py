"""
LegalTendr Backend — Profile and File Route Handlers
======================================================

What:  PATCH /api/profile, POST /api/profile/picture and GET /api/files/{path}.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from legaltendr.database import get_db_session
from legaltendr.dependencies import get_current_user
from legaltendr.models import User
from legaltendr.schemas.auth import ProfileUpdate, UserProfile
from legaltendr.schemas.common import ErrorResponse
from legaltendr.services.file_service import file_service
from legaltendr.services.profile_service import profile_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Profile"])


@router.patch(
    "/profile",
    response_model=UserProfile,
    responses={
        400: {"description": "Unknown specialty", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
    },
    summary="Update the signed-in user's profile",
)
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserProfile:
    return await profile_service.update_profile(db, user, body)


@router.post(
    "/profile/picture",
    response_model=UserProfile,
    responses={
        400: {"description": "Invalid image", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
        500: {"description": "Storage failure", "model": ErrorResponse},
    },
    summary="Upload a new profile picture (PNG, JPEG or WebP)",
)
async def upload_picture(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="Image file"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserProfile:
    content = await file.read()
    return await profile_service.upload_profile_picture(
        db,
        user,
        filename=file.filename or "",
        content=content,
        content_length=file.size,
        background_tasks=background_tasks,
    )


@router.get(
    "/files/{file_path:path}",
    summary="Serve an uploaded file",
    responses={
        200: {"description": "The stored file"},
        400: {"description": "Path outside the storage root", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_file(file_path: str) -> FileResponse:
    full_path = file_service.open_stored(file_path)
    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
