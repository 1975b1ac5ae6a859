"""
LegalTendr Backend — Swipe Model
==================================

What:  A client's decision on one lawyer card.
How:   matched = True for a right swipe (accept), False for a left swipe.
       A right swipe is what the API calls a "match".

Invariant:
    At most one swipe per (client, lawyer). Undo and reset delete rows, which
    puts the lawyer back into the client's deck.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from legaltendr.database import Base
from legaltendr.models.base import utcnow


class Swipe(Base):
    __tablename__ = "swipes"

    swipe_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    lawyer_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("lawyers.lawyer_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    matched: Mapped[bool] = mapped_column(Boolean, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("client_id", "lawyer_id", name="uq_swipes_client_lawyer"),
        Index("idx_swipes_client_created", "client_id", "created_at"),
    )

    @property
    def direction(self) -> str:
        return "right" if self.matched else "left"

    def __repr__(self) -> str:
        return (
            f"<Swipe(client_id='{self.client_id}', lawyer_id='{self.lawyer_id}', "
            f"matched={self.matched})>"
        )
