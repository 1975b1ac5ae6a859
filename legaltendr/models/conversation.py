"""
LegalTendr Backend — Conversation and Message Models
======================================================

What:  Direct messaging between one client and one lawyer.

Table Design:
    conversations  One per (client, lawyer) pair. match_id points at the
                   right swipe that opened it (if any). latest_message_id is a
                   plain column, not a foreign key, so that messages and
                   conversations do not reference each other in a cycle.
    messages       Ordered by timestamp within a conversation.

Query Patterns:
    - Inbox: conversations of a user ORDER BY updated_at DESC
      → send_message sets updated_at to the message timestamp
    - Thread: messages WHERE conversation_id = :id ORDER BY timestamp
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from legaltendr.database import Base
from legaltendr.models.base import TimestampMixin, utcnow


class Conversation(TimestampMixin, Base):
    __tablename__ = "conversations"

    conversation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
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
    match_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("swipes.swipe_id", ondelete="SET NULL"),
        nullable=True,
    )
    latest_message_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    __table_args__ = (
        UniqueConstraint("client_id", "lawyer_id", name="uq_conversations_pair"),
    )

    def other_party(self, user_id: str) -> str:
        """The participant that is not `user_id`."""
        return self.lawyer_id if user_id == self.client_id else self.client_id

    def has_participant(self, user_id: str) -> bool:
        return user_id in (self.client_id, self.lawyer_id)


class Message(Base):
    __tablename__ = "messages"

    message_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("conversations.conversation_id", ondelete="CASCADE"),
        nullable=False,
    )
    sender_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    is_read: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    __table_args__ = (
        Index("idx_messages_conversation_timestamp", "conversation_id", "timestamp"),
    )
