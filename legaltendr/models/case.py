"""
LegalTendr Backend — Case Models
==================================

What:  A client's description of a legal need, tagged with specialties.

Lifecycle:
    open ──hire──▶ in_progress ──▶ closed
    A client may also move a case back to open or close it directly.
    Hiring is refused once the case is closed.
"""

import uuid
from typing import Optional

from sqlalchemy import ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from legaltendr.database import Base
from legaltendr.models.base import TimestampMixin

CASE_STATUSES = ("open", "in_progress", "closed")


class Case(TimestampMixin, Base):
    __tablename__ = "cases"

    case_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    hired_lawyer_id: Mapped[Optional[str]] = mapped_column(
        String(50),
        ForeignKey("lawyers.lawyer_id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="open")

    __table_args__ = (
        Index("idx_cases_client_created", "client_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Case(case_id={self.case_id}, status='{self.status}')>"


class CaseCategory(Base):
    """Specialty tag on a case."""

    __tablename__ = "case_categories"

    case_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("cases.case_id", ondelete="CASCADE"),
        primary_key=True,
    )
    specialty_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("specialties.specialty_id", ondelete="CASCADE"),
        primary_key=True,
    )
