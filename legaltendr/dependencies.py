"""
LegalTendr Backend — Request Dependencies
===========================================

What:  FastAPI dependencies resolving the caller's account.
How:   The session token is read from the session cookie, or from an
       `Authorization: Bearer <token>` header for non-browser clients.

    get_current_user   any signed-in account (401 otherwise)
    require_client     client accounts only (403 for others)
    require_admin      admin accounts only (403 for others)
"""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from legaltendr.config import settings
from legaltendr.database import get_db_session
from legaltendr.exceptions import PermissionDeniedError
from legaltendr.models import User
from legaltendr.services.auth_service import auth_service


def extract_token(request: Request) -> Optional[str]:
    """Bearer header wins over the cookie when both are present."""
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(settings.session_cookie_name) or None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> User:
    user = await auth_service.authenticate(db, extract_token(request))
    request.state.user_id = user.user_id
    return user


def _require(user_type: str, label: str):
    async def dependency(user: User = Depends(get_current_user)) -> User:
        if user.user_type != user_type:
            raise PermissionDeniedError(
                message=f"Only {label} accounts can perform this action",
                context={"user_type": user.user_type},
            )
        return user

    dependency.__name__ = f"require_{user_type}"
    return dependency


require_client = _require("client", "client")
require_admin = _require("admin", "admin")
