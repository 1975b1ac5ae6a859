"""
LegalTendr Backend — Conversation and Message Service
=======================================================

What:  Inbox, threads, sending and read receipts between a client and a lawyer.
Who:   Conversation routes; SwipeService (conversation on match);
       CaseService (sharing a case into a thread).

Visibility:
    Only the two participants can see a conversation or its messages. For
    everyone else the conversation does not exist (NotFoundError), so ids
    cannot be discovered by guessing.

Inbox enrichment (list_conversations):
    1. Conversations of the user, newest activity first
    2. One query for the counterpart users (+ lawyer rows for rate/experience)
    3. One query for the latest messages
    4. One grouped COUNT for unread messages sent by the other party
"""

import logging
import uuid
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from legaltendr.exceptions import DatabaseError, NotFoundError, ValidationError
from legaltendr.models import Conversation, Lawyer, Message, Swipe, User
from legaltendr.models.base import utcnow
from legaltendr.schemas.conversation import (
    ConversationResponse,
    Counterpart,
    LatestMessage,
    MessageResponse,
    StartConversationResponse,
)

logger = logging.getLogger(__name__)


def _db_error(action: str, e: SQLAlchemyError) -> DatabaseError:
    logger.error("Database error while %s: %s", action, str(e), exc_info=True)
    return DatabaseError(
        message=f"Could not complete the request while {action}. Please try again.",
        context={"error_type": type(e).__name__},
    )


class ConversationService:
    """Messaging between matched clients and lawyers."""

    # ── Lookups ───────────────────────────────────────────────────────────

    async def get_participant_conversation(
        self, db: AsyncSession, user: User, conversation_id: uuid.UUID
    ) -> Conversation:
        """The conversation if `user` takes part in it, else NotFoundError."""
        conversation = await db.get(Conversation, conversation_id)
        if conversation is None or not conversation.has_participant(user.user_id):
            raise NotFoundError(resource="conversation", resource_id=str(conversation_id))
        return conversation

    async def get_or_create(
        self,
        db: AsyncSession,
        client_id: str,
        lawyer_id: str,
        match_id: Optional[uuid.UUID] = None,
    ) -> Tuple[Conversation, bool]:
        """
        The pair's single conversation, created when missing.

        An existing conversation without a match gets `match_id` attached.

        Returns:
            (conversation, created)
        """
        result = await db.execute(
            select(Conversation).where(
                Conversation.client_id == client_id,
                Conversation.lawyer_id == lawyer_id,
            )
        )
        conversation = result.scalar_one_or_none()
        if conversation is not None:
            if match_id is not None and conversation.match_id is None:
                conversation.match_id = match_id
                await db.flush()
            return conversation, False

        now = utcnow()
        conversation = Conversation(
            client_id=client_id,
            lawyer_id=lawyer_id,
            match_id=match_id,
            created_at=now,
            updated_at=now,
        )
        db.add(conversation)
        await db.flush()
        logger.info(
            "Conversation %s created for client %s and lawyer %s",
            conversation.conversation_id,
            client_id,
            lawyer_id,
        )
        return conversation, True

    # ── Inbox ─────────────────────────────────────────────────────────────

    async def list_conversations(
        self, db: AsyncSession, user: User
    ) -> List[ConversationResponse]:
        try:
            result = await db.execute(
                select(Conversation)
                .where(
                    or_(
                        Conversation.client_id == user.user_id,
                        Conversation.lawyer_id == user.user_id,
                    )
                )
                .order_by(Conversation.updated_at.desc())
            )
            conversations = list(result.scalars().all())
            return await self._enrich(db, user, conversations)
        except SQLAlchemyError as e:
            raise _db_error("listing conversations", e)

    async def get_conversation(
        self, db: AsyncSession, user: User, conversation_id: uuid.UUID
    ) -> ConversationResponse:
        try:
            conversation = await self.get_participant_conversation(db, user, conversation_id)
            enriched = await self._enrich(db, user, [conversation])
        except SQLAlchemyError as e:
            raise _db_error("loading the conversation", e)
        return enriched[0]

    async def _enrich(
        self, db: AsyncSession, user: User, conversations: Sequence[Conversation]
    ) -> List[ConversationResponse]:
        if not conversations:
            return []

        other_ids = {c.other_party(user.user_id) for c in conversations}
        counterparts: Dict[str, Counterpart] = {}
        rows = await db.execute(
            select(User, Lawyer)
            .outerjoin(Lawyer, Lawyer.lawyer_id == User.user_id)
            .where(User.user_id.in_(other_ids))
        )
        for other, lawyer in rows.all():
            counterparts[other.user_id] = Counterpart(
                user_id=other.user_id,
                user_type=other.user_type,
                first_name=other.first_name,
                last_name=other.last_name,
                profile_picture_url=other.profile_picture_url,
                hourly_rate=(lawyer.hourly_rate or 0) if lawyer else None,
                years_of_experience=(lawyer.years_of_experience or 0) if lawyer else None,
            )

        latest_ids = [c.latest_message_id for c in conversations if c.latest_message_id]
        latest: Dict[uuid.UUID, Message] = {}
        if latest_ids:
            messages = await db.execute(select(Message).where(Message.message_id.in_(latest_ids)))
            latest = {m.message_id: m for m in messages.scalars().all()}

        unread_rows = await db.execute(
            select(Message.conversation_id, func.count(Message.message_id))
            .where(
                Message.conversation_id.in_([c.conversation_id for c in conversations]),
                Message.sender_id != user.user_id,
                Message.is_read.is_(False),
            )
            .group_by(Message.conversation_id)
        )
        unread = {conversation_id: count for conversation_id, count in unread_rows.all()}

        enriched = []
        for c in conversations:
            message = latest.get(c.latest_message_id) if c.latest_message_id else None
            enriched.append(
                ConversationResponse(
                    conversation_id=c.conversation_id,
                    client_id=c.client_id,
                    lawyer_id=c.lawyer_id,
                    match_id=c.match_id,
                    created_at=c.created_at,
                    updated_at=c.updated_at,
                    other_party=counterparts.get(c.other_party(user.user_id)),
                    latest_message=(
                        LatestMessage(
                            content=message.content,
                            timestamp=message.timestamp,
                            is_read=message.is_read,
                        )
                        if message
                        else None
                    ),
                    unread_count=unread.get(c.conversation_id, 0),
                )
            )
        return enriched

    # ── Starting a conversation ───────────────────────────────────────────

    async def start_conversation(
        self,
        db: AsyncSession,
        client: User,
        lawyer_id: str,
        initial_message: str,
        match_id: Optional[uuid.UUID] = None,
    ) -> StartConversationResponse:
        """
        Open (or reuse) the thread with a lawyer and post the first message.

        Raises:
            ValidationError: blank initial message, or a match_id that is not
                the client's match with this lawyer
            NotFoundError: unknown lawyer or match
        """
        if not initial_message or not initial_message.strip():
            raise ValidationError(
                message="An initial message is required to start a conversation",
                field="initial_message",
            )

        try:
            if await db.get(Lawyer, lawyer_id) is None:
                raise NotFoundError(resource="lawyer", resource_id=lawyer_id)
            if match_id is not None:
                await self._check_match(db, client, lawyer_id, match_id)
            conversation, _ = await self.get_or_create(db, client.user_id, lawyer_id, match_id)
            message = await self._post(db, conversation, client.user_id, initial_message)
            enriched = await self._enrich(db, client, [conversation])
        except SQLAlchemyError as e:
            raise _db_error("starting the conversation", e)

        return StartConversationResponse(
            conversation=enriched[0],
            message=MessageResponse.model_validate(message),
        )

    async def _check_match(
        self, db: AsyncSession, client: User, lawyer_id: str, match_id: uuid.UUID
    ) -> None:
        """match_id must be this client's right swipe on this lawyer."""
        swipe = await db.get(Swipe, match_id)
        # Another client's swipe is reported exactly like an unknown id
        if swipe is None or swipe.client_id != client.user_id:
            raise NotFoundError(resource="match", resource_id=str(match_id))
        if swipe.lawyer_id != lawyer_id or not swipe.matched:
            raise ValidationError(
                message="match_id does not refer to a match with this lawyer",
                field="match_id",
                context={"match_id": str(match_id), "lawyer_id": lawyer_id},
            )

    # ── Messages ──────────────────────────────────────────────────────────

    async def get_messages(
        self, db: AsyncSession, user: User, conversation_id: uuid.UUID
    ) -> List[MessageResponse]:
        try:
            await self.get_participant_conversation(db, user, conversation_id)
            result = await db.execute(
                select(Message)
                .where(Message.conversation_id == conversation_id)
                .order_by(Message.timestamp.asc())
            )
            messages = result.scalars().all()
        except SQLAlchemyError as e:
            raise _db_error("loading messages", e)
        return [MessageResponse.model_validate(m) for m in messages]

    async def send_message(
        self, db: AsyncSession, user: User, conversation_id: uuid.UUID, content: str
    ) -> MessageResponse:
        """
        Append a message and make it the conversation's latest.

        Raises:
            ValidationError: content empty after stripping
            NotFoundError: not a participant
        """
        if not content or not content.strip():
            raise ValidationError(message="Message content cannot be empty", field="content")

        try:
            conversation = await self.get_participant_conversation(db, user, conversation_id)
            message = await self._post(db, conversation, user.user_id, content)
        except SQLAlchemyError as e:
            raise _db_error("sending the message", e)
        return MessageResponse.model_validate(message)

    async def _post(
        self, db: AsyncSession, conversation: Conversation, sender_id: str, content: str
    ) -> Message:
        timestamp = utcnow()
        message = Message(
            conversation_id=conversation.conversation_id,
            sender_id=sender_id,
            content=content.strip(),
            timestamp=timestamp,
            is_read=False,
        )
        db.add(message)
        await db.flush()

        conversation.latest_message_id = message.message_id
        conversation.updated_at = timestamp
        await db.flush()
        logger.debug(
            "Message %s posted to conversation %s",
            message.message_id,
            conversation.conversation_id,
        )
        return message

    async def mark_as_read(
        self, db: AsyncSession, user: User, message_ids: Sequence[uuid.UUID]
    ) -> int:
        """
        Mark messages addressed to `user` as read.

        Ids of the user's own messages, of other people's conversations, and
        of already-read messages are ignored.

        Returns:
            Number of messages that changed from unread to read.
        """
        if not message_ids:
            return 0

        my_conversations = select(Conversation.conversation_id).where(
            or_(
                Conversation.client_id == user.user_id,
                Conversation.lawyer_id == user.user_id,
            )
        )
        try:
            result = await db.execute(
                select(Message.message_id).where(
                    Message.message_id.in_(list(message_ids)),
                    Message.conversation_id.in_(my_conversations),
                    Message.sender_id != user.user_id,
                    Message.is_read.is_(False),
                )
            )
            unread_ids = list(result.scalars().all())
            if unread_ids:
                await db.execute(
                    update(Message)
                    .where(Message.message_id.in_(unread_ids))
                    .values(is_read=True)
                )
        except SQLAlchemyError as e:
            raise _db_error("marking messages as read", e)

        logger.debug("User %s read %d messages", user.user_id, len(unread_ids))
        return len(unread_ids)


# ── Singleton Instance ────────────────────────────────────────────────────
conversation_service = ConversationService()
