"""
LegalTendr Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own in-memory SQLite database (aiosqlite) with the
       schema created from the ORM models and the default specialties seeded.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine: in-memory engine with all tables
    ├── db_session: AsyncSession on that engine
    ├── mock_db_session: AsyncMock session for database-failure paths
    ├── temp_storage: temporary storage root
    ├── sample_png_bytes: 1x1 PNG for upload tests
    └── test_client: HTTPX AsyncClient bound to the app, same database

Helpers:
    make_client(db, ...) / make_lawyer(db, ...) register accounts through
    AuthService so rows look exactly like real sign-ups.
"""

import base64
import itertools
import os
import tempfile
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

# Override settings BEFORE any legaltendr import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="legaltendr_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["DB_CONNECT_ATTEMPTS"] = "1"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from legaltendr.database import Base, get_db_session
from legaltendr.models import Lawyer, Specialty, User
from legaltendr.schemas.auth import RegisterRequest
from legaltendr.services.auth_service import auth_service

DEFAULT_SPECIALTIES = [
    ("s1", "Family Law"),
    ("s2", "Corporate Law"),
    ("s3", "Immigration Law"),
    ("s4", "Real Estate Law"),
    ("s5", "Criminal Law"),
    ("s6", "Employment Law"),
    ("s7", "Environmental Law"),
    ("s8", "Intellectual Property Law"),
]

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

_email_counter = itertools.count(1)


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}{next(_email_counter)}@example.com"


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite shared by every session of one test (StaticPool)."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        session.add_all(
            [Specialty(specialty_id=sid, name=name) for sid, name in DEFAULT_SPECIALTIES]
        )
        await session.commit()

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception())
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.scalar = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# File Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_png_bytes():
    return PNG_BYTES


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    get_db_session is overridden to open sessions on the test database,
    with the same commit/rollback behavior as the real dependency.
    """
    from legaltendr.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ══════════════════════════════════════════════════════════════════════════
# Account Helpers
# ══════════════════════════════════════════════════════════════════════════

async def make_client(
    db: AsyncSession,
    email: Optional[str] = None,
    first_name: str = "Carla",
    last_name: str = "Reyes",
    **extra,
) -> User:
    _, _, user = await auth_service.register(
        db,
        RegisterRequest(
            email=email or unique_email("client"),
            password="secret123",
            user_type="client",
            first_name=first_name,
            last_name=last_name,
            **extra,
        ),
    )
    return user


async def make_lawyer(
    db: AsyncSession,
    email: Optional[str] = None,
    first_name: str = "Luis",
    last_name: str = "Santos",
    specialties: Optional[List[str]] = None,
    hourly_rate: float = 100,
    rating: float = 0,
    reviews: int = 0,
    **extra,
) -> User:
    _, _, user = await auth_service.register(
        db,
        RegisterRequest(
            email=email or unique_email("lawyer"),
            password="secret123",
            user_type="lawyer",
            first_name=first_name,
            last_name=last_name,
            hourly_rate=hourly_rate,
            specialties=specialties or [],
            **extra,
        ),
    )
    if rating or reviews:
        lawyer = await db.get(Lawyer, user.user_id)
        lawyer.rating = rating
        lawyer.reviews = reviews
        await db.flush()
    return user


async def register_via_api(client: AsyncClient, user_type: str = "client", **fields) -> dict:
    """POST /api/auth/register and return the JSON body (token + user)."""
    payload = {
        "email": unique_email(user_type),
        "password": "secret123",
        "user_type": user_type,
        "first_name": "Test",
        "last_name": user_type.capitalize(),
    }
    payload.update(fields)
    response = await client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
