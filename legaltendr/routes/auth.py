"""
LegalTendr Backend — Auth Route Handlers
==========================================

What:  POST /api/auth/register, /login, /logout and GET /api/auth/me.
How:   On register/login the session token is returned in the body and set as
       an HttpOnly cookie; logout deletes the session and clears the cookie.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from legaltendr.config import settings
from legaltendr.database import get_db_session
from legaltendr.dependencies import extract_token, get_current_user
from legaltendr.models import User
from legaltendr.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserProfile
from legaltendr.schemas.common import ErrorResponse, MessageAck
from legaltendr.services.auth_service import auth_service
from legaltendr.services.profile_service import profile_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_days * 24 * 3600,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Account created and signed in"},
        403: {"description": "Wrong admin key", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Register a client, lawyer or admin account",
)
async def register(
    body: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    token, session, user = await auth_service.register(db, body)
    set_session_cookie(response, token)
    profile = await profile_service.get_profile(db, user)
    return AuthResponse(token=token, expires_at=session.expires_at, user=profile)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid email or password", "model": ErrorResponse}},
    summary="Sign in with email and password",
)
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    token, session, user = await auth_service.login(db, body.email, body.password)
    set_session_cookie(response, token)
    profile = await profile_service.get_profile(db, user)
    return AuthResponse(token=token, expires_at=session.expires_at, user=profile)


@router.post(
    "/logout",
    response_model=MessageAck,
    summary="Sign out (idempotent)",
)
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> MessageAck:
    await auth_service.logout(db, extract_token(request))
    response.delete_cookie(settings.session_cookie_name, path="/")
    return MessageAck(message="Signed out")


@router.get(
    "/me",
    response_model=UserProfile,
    responses={401: {"description": "Not signed in", "model": ErrorResponse}},
    summary="Profile of the signed-in user",
)
async def me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserProfile:
    return await profile_service.get_profile(db, user)
