"""
LegalTendr Backend — User, Client, Lawyer and Session Models
==============================================================

What:  Accounts and their role-specific profile rows.

Table Design:
    users      One row per account. user_id is a readable string built at
               registration (phone digits + epoch ms + random suffix), not a UUID.
    clients    1:1 with users where user_type = 'client'
    lawyers    1:1 with users where user_type = 'lawyer'; carries the
               discovery stats (matches_count, rating, reviews) and pricing
    sessions   Opaque login sessions. Only the SHA-256 of the token is stored,
               so a leaked table cannot be replayed.
"""

from datetime import datetime
from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from legaltendr.database import Base
from legaltendr.models.base import TimestampMixin, utcnow

USER_TYPES = ("client", "lawyer", "admin")


class User(TimestampMixin, Base):
    """An account of any type."""

    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(50), primary_key=True)

    # Stored trimmed and lower-cased; lookups lower-case the input the same way
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Values: client, lawyer, admin
    user_type: Mapped[str] = mapped_column(String(20), nullable=False)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(30), nullable=True)
    profile_picture_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Location is denormalised: the geo code and its display name
    province_id: Mapped[str | None] = mapped_column(String(20), nullable=True)
    province_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    city_id: Mapped[str | None] = mapped_column(String(20), nullable=True)
    city_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<User(user_id='{self.user_id}', user_type='{self.user_type}')>"


class Client(TimestampMixin, Base):
    __tablename__ = "clients"

    client_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        primary_key=True,
    )
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)


class Lawyer(TimestampMixin, Base):
    """
    Lawyer profile and discovery stats.

    matches_count is bumped by every right swipe and lowered when that swipe
    is undone. rating/reviews are carried for ordering; nothing writes them yet.
    """

    __tablename__ = "lawyers"

    lawyer_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        primary_key=True,
    )
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    matches_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    rating: Mapped[float] = mapped_column(
        Numeric(3, 2, asdecimal=False), nullable=False, default=0, server_default=text("0")
    )
    reviews: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    hourly_rate: Mapped[float] = mapped_column(
        Numeric(10, 2, asdecimal=False), nullable=False, default=0, server_default=text("0")
    )
    years_of_experience: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    __table_args__ = (
        Index("idx_lawyers_rating", "rating", "reviews"),
    )


class UserSession(Base):
    """A login session; the raw token only ever exists in the client's cookie."""

    __tablename__ = "sessions"

    token_hash: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
