"""
LegalTendr Backend — Auth Service
===================================

What:  Account registration, password login, session issue/lookup/revoke.
How:   Passwords are hashed with passlib. Sessions are random url-safe
       tokens; only their SHA-256 digest is stored in the sessions table.
Who:   Auth routes, and the get_current_user dependency on every
       authenticated request.

Registration Flow:
    ┌──────────┐   ┌────────────┐   ┌──────────────┐   ┌──────────────┐
    │ Validate │──▶│ users row  │──▶│ clients /    │──▶│ New session  │
    │ + unique │   │ (hashed pw)│   │ lawyers row  │   │ token        │
    └──────────┘   └────────────┘   └──────────────┘   └──────────────┘
"""

import hashlib
import logging
import re
import secrets
import string
import time
from datetime import timedelta
from typing import List, Optional, Tuple

from passlib.context import CryptContext
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from legaltendr.config import settings
from legaltendr.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    PermissionDeniedError,
)
from legaltendr.models import Client, Lawyer, LawyerSpecialty, User, UserSession
from legaltendr.models.base import as_utc, utcnow
from legaltendr.schemas.auth import RegisterRequest
from legaltendr.services.catalog_service import catalog_service

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

USER_ID_MAX_LENGTH = 50
_ID_ALPHABET = string.ascii_letters + string.digits
_NON_DIGITS = re.compile(r"\D")

INVALID_CREDENTIALS = "Invalid email or password"


# ══════════════════════════════════════════════════════════════════════════
# Helpers
# ══════════════════════════════════════════════════════════════════════════

def capitalize_words(value: Optional[str]) -> Optional[str]:
    """
    "mARIA de la CRUZ" → "Maria De La Cruz".

    Splits on single spaces only, so runs of spaces survive unchanged.
    """
    if value is None:
        return None
    return " ".join(word[:1].upper() + word[1:] for word in value.lower().split(" "))


def generate_user_id(phone_number: Optional[str]) -> str:
    """Phone digits + epoch milliseconds + 6 random alphanumerics, max 50 chars."""
    digits = _NON_DIGITS.sub("", phone_number or "")
    millis = str(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(6))
    return f"{digits}{millis}{suffix}"[:USER_ID_MAX_LENGTH]


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except (ValueError, TypeError):
        # Unrecognised hash format: treat as a failed login, not a 500
        logger.warning("Stored password hash could not be identified")
        return False


# ══════════════════════════════════════════════════════════════════════════
# Service
# ══════════════════════════════════════════════════════════════════════════

class AuthService:
    """Stateless; every method receives the request's session."""

    async def register(
        self, db: AsyncSession, data: RegisterRequest
    ) -> Tuple[str, UserSession, User]:
        """
        Create an account of any type and log it in.

        Returns:
            (raw_token, session_row, user)

        Raises:
            PermissionDeniedError: admin sign-up without the right key
            ConflictError: email already registered
            DatabaseError: unexpected database failure
        """
        if data.user_type == "admin" and data.admin_key != settings.admin_signup_key:
            logger.warning("Rejected admin registration for %s: bad admin key", data.email)
            raise PermissionDeniedError(message="Invalid admin key")

        try:
            existing = await db.execute(select(User.user_id).where(User.email == data.email))
            if existing.scalar_one_or_none() is not None:
                raise ConflictError(
                    message="An account with this email already exists",
                    context={"field": "email"},
                )

            user = User(
                user_id=generate_user_id(data.phone_number),
                email=data.email,
                password_hash=hash_password(data.password),
                user_type=data.user_type,
                first_name=capitalize_words(data.first_name.strip()),
                last_name=capitalize_words(data.last_name.strip()),
                phone_number=data.phone_number,
                profile_picture_url=data.profile_picture_url,
                province_id=data.province_id,
                province_name=capitalize_words(data.province_name),
                city_id=data.city_id,
                city_name=capitalize_words(data.city_name),
            )
            db.add(user)
            await db.flush()

            if data.user_type == "client":
                db.add(Client(client_id=user.user_id, bio=data.bio))
            elif data.user_type == "lawyer":
                db.add(
                    Lawyer(
                        lawyer_id=user.user_id,
                        bio=data.bio,
                        matches_count=0,
                        rating=0,
                        reviews=0,
                        hourly_rate=data.hourly_rate or 0,
                        years_of_experience=data.years_of_experience or 0,
                    )
                )
                await db.flush()
                await self._attach_specialties(db, user.user_id, data.specialties)

            token, session = await self.create_session(db, user.user_id)
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same email
            logger.warning("Registration integrity error for %s: %s", data.email, str(e))
            raise ConflictError(
                message="An account with this email already exists",
                context={"field": "email"},
            )
        except SQLAlchemyError as e:
            logger.error("Database error during registration: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the account. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Registered %s account %s", user.user_type, user.user_id)
        return token, session, user

    async def _attach_specialties(
        self, db: AsyncSession, lawyer_id: str, specialty_ids: List[str]
    ) -> None:
        known = await catalog_service.known_specialty_ids(db, specialty_ids)
        unknown = set(specialty_ids) - set(known)
        if unknown:
            logger.warning(
                "Skipping unknown specialties for lawyer %s: %s",
                lawyer_id,
                ", ".join(sorted(unknown)),
            )
        for specialty_id in known:
            db.add(LawyerSpecialty(lawyer_id=lawyer_id, specialty_id=specialty_id))
        await db.flush()

    async def login(
        self, db: AsyncSession, email: str, password: str
    ) -> Tuple[str, UserSession, User]:
        """
        Password login.

        Raises:
            AuthenticationError: unknown email or wrong password (same message)
        """
        try:
            result = await db.execute(select(User).where(User.email == email.strip().lower()))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", email)
            raise AuthenticationError(message=INVALID_CREDENTIALS)

        try:
            token, session = await self.create_session(db, user.user_id)
        except SQLAlchemyError as e:
            logger.error("Database error creating session: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

        logger.info("User %s logged in", user.user_id)
        return token, session, user

    async def create_session(self, db: AsyncSession, user_id: str) -> Tuple[str, UserSession]:
        token = secrets.token_urlsafe(32)
        now = utcnow()
        session = UserSession(
            token_hash=hash_token(token),
            user_id=user_id,
            created_at=now,
            expires_at=now + timedelta(days=settings.session_ttl_days),
        )
        db.add(session)
        await db.flush()
        return token, session

    async def logout(self, db: AsyncSession, token: Optional[str]) -> None:
        """Deletes the session if it exists; unknown tokens are ignored."""
        if not token:
            return
        try:
            await db.execute(delete(UserSession).where(UserSession.token_hash == hash_token(token)))
        except SQLAlchemyError as e:
            logger.error("Database error during logout: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

    async def authenticate(self, db: AsyncSession, token: Optional[str]) -> User:
        """
        Resolve a session token to its user.

        Expired sessions are deleted when encountered.

        Raises:
            AuthenticationError: missing, unknown or expired token
        """
        if not token:
            raise AuthenticationError()

        try:
            result = await db.execute(
                select(UserSession, User)
                .join(User, User.user_id == UserSession.user_id)
                .where(UserSession.token_hash == hash_token(token))
            )
            row = result.first()
            if row is None:
                raise AuthenticationError(message="Invalid or expired session")

            session, user = row
            if as_utc(session.expires_at) <= utcnow():
                await db.delete(session)
                # Commit now; the request session rolls back once we raise
                await db.commit()
                raise AuthenticationError(message="Invalid or expired session")
        except SQLAlchemyError as e:
            logger.error("Database error resolving session: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

        return user


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
