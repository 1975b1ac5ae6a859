"""
LegalTendr Backend — Swipe Service
====================================

What:  The client's swipe deck and the decisions recorded on it.
Who:   Swipe routes (clients only).

Swipe Flow (record_swipe, direction = right):
    ┌──────────┐   ┌────────────┐   ┌──────────────────┐   ┌──────────────┐
    │ Lawyer   │──▶│ Insert     │──▶│ matches_count+1  │──▶│ Conversation │
    │ exists?  │   │ swipe row  │   │ (atomic UPDATE)  │   │ get-or-create│
    └──────────┘   └────────────┘   └──────────────────┘   └──────────────┘
    A left swipe stops after the insert.

Undo (undo_last_swipe) reverses the newest swipe, including its match side
effects. Reset (reset_passed) forgets left swipes so passed lawyers come back
into the deck; matches stay.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import case as sql_case
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from legaltendr.exceptions import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from legaltendr.models import Conversation, Lawyer, Message, Swipe, User
from legaltendr.models.base import utcnow
from legaltendr.schemas.lawyer import LawyerFilters
from legaltendr.schemas.swipe import (
    DeckResponse,
    MatchPopup,
    SwipeResponse,
    SwipeResult,
    UndoResponse,
)
from legaltendr.services.case_service import case_service
from legaltendr.services.conversation_service import conversation_service
from legaltendr.services.lawyer_service import lawyer_service

logger = logging.getLogger(__name__)

DIRECTIONS = ("left", "right")


def _to_response(swipe: Swipe) -> SwipeResponse:
    return SwipeResponse(
        swipe_id=swipe.swipe_id,
        client_id=swipe.client_id,
        lawyer_id=swipe.lawyer_id,
        direction=swipe.direction,
        matched=swipe.matched,
        created_at=swipe.created_at,
    )


class SwipeService:

    async def get_deck(
        self,
        db: AsyncSession,
        client: User,
        filters: Optional[LawyerFilters] = None,
        case_id: Optional[uuid.UUID] = None,
    ) -> DeckResponse:
        """
        Lawyers the client has not swiped yet.

        With `case_id`, the case's specialties are added to the specialty
        filter (the case must belong to the client).
        """
        filters = filters or LawyerFilters()
        if case_id is not None:
            await case_service.get_owned_case(db, client.user_id, case_id)
            case_specialties = await case_service.get_case_specialty_ids(db, case_id)
            if case_specialties:
                merged = list(dict.fromkeys([*filters.specialties, *case_specialties]))
                filters = filters.model_copy(update={"specialties": merged})

        lawyers = await lawyer_service.list_lawyers(db, filters, exclude_swiped_by=client.user_id)

        try:
            swipe_count = await db.scalar(
                select(func.count(Swipe.swipe_id)).where(Swipe.client_id == client.user_id)
            )
        except SQLAlchemyError as e:
            logger.error("Database error counting swipes: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

        return DeckResponse(lawyers=lawyers, has_swiped=bool(swipe_count))

    async def record_swipe(
        self, db: AsyncSession, client: User, lawyer_id: str, direction: str
    ) -> SwipeResult:
        """
        Raises:
            ValidationError: direction not left/right
            NotFoundError: unknown lawyer
            ConflictError: the client already swiped this lawyer
        """
        if direction not in DIRECTIONS:
            raise ValidationError(
                message="Direction must be 'left' or 'right'", field="direction"
            )

        try:
            row = (
                await db.execute(
                    select(User, Lawyer)
                    .join(Lawyer, Lawyer.lawyer_id == User.user_id)
                    .where(Lawyer.lawyer_id == lawyer_id)
                )
            ).first()
            if row is None:
                raise NotFoundError(resource="lawyer", resource_id=lawyer_id)
            lawyer_user, _ = row

            existing = await db.scalar(
                select(Swipe.swipe_id).where(
                    Swipe.client_id == client.user_id,
                    Swipe.lawyer_id == lawyer_id,
                )
            )
            if existing is not None:
                raise ConflictError(
                    message="You have already swiped on this lawyer",
                    context={"lawyer_id": lawyer_id},
                )

            swipe = Swipe(
                client_id=client.user_id,
                lawyer_id=lawyer_id,
                matched=direction == "right",
                created_at=utcnow(),
            )
            db.add(swipe)
            try:
                await db.flush()
            except IntegrityError:
                # Concurrent duplicate swipe hit uq_swipes_client_lawyer
                raise ConflictError(
                    message="You have already swiped on this lawyer",
                    context={"lawyer_id": lawyer_id},
                )

            if not swipe.matched:
                logger.info("Client %s passed on lawyer %s", client.user_id, lawyer_id)
                return SwipeResult(swipe=_to_response(swipe))

            await db.execute(
                update(Lawyer)
                .where(Lawyer.lawyer_id == lawyer_id)
                .values(matches_count=Lawyer.matches_count + 1)
                .execution_options(synchronize_session="fetch")
            )
            conversation, _ = await conversation_service.get_or_create(
                db, client.user_id, lawyer_id, match_id=swipe.swipe_id
            )
        except SQLAlchemyError as e:
            logger.error("Database error recording swipe: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not record the swipe. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info(
            "Client %s matched lawyer %s (conversation %s)",
            client.user_id,
            lawyer_id,
            conversation.conversation_id,
        )
        return SwipeResult(
            swipe=_to_response(swipe),
            match=MatchPopup(
                conversation_id=conversation.conversation_id,
                lawyer_id=lawyer_id,
                lawyer_name=lawyer_user.display_name,
                lawyer_picture_url=lawyer_user.profile_picture_url,
            ),
        )

    async def undo_last_swipe(self, db: AsyncSession, client: User) -> UndoResponse:
        """
        Remove the client's newest swipe.

        For a match: matches_count goes down (never below 0) and the
        conversation opened by that match is deleted if nobody wrote in it.

        Raises:
            NotFoundError: no swipe to undo
        """
        conversation_deleted = False
        try:
            swipe = await db.scalar(
                select(Swipe)
                .where(Swipe.client_id == client.user_id)
                .order_by(Swipe.created_at.desc())
                .limit(1)
            )
            if swipe is None:
                raise NotFoundError(resource="swipe")

            if swipe.matched:
                await db.execute(
                    update(Lawyer)
                    .where(Lawyer.lawyer_id == swipe.lawyer_id)
                    .values(
                        matches_count=sql_case(
                            (Lawyer.matches_count > 0, Lawyer.matches_count - 1),
                            else_=0,
                        )
                    )
                    .execution_options(synchronize_session="fetch")
                )
                conversation_deleted = await self._release_conversation(db, swipe)

            undone = _to_response(swipe)
            await db.delete(swipe)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error undoing swipe: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not undo the swipe. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info(
            "Client %s undid %s swipe on lawyer %s",
            client.user_id,
            undone.direction,
            undone.lawyer_id,
        )
        return UndoResponse(swipe=undone, conversation_deleted=conversation_deleted)

    async def _release_conversation(self, db: AsyncSession, swipe: Swipe) -> bool:
        """Delete the match's empty conversation, or detach it if it has messages."""
        conversation = await db.scalar(
            select(Conversation).where(Conversation.match_id == swipe.swipe_id)
        )
        if conversation is None:
            return False

        message_count = await db.scalar(
            select(func.count(Message.message_id)).where(
                Message.conversation_id == conversation.conversation_id
            )
        )
        if message_count:
            conversation.match_id = None
            await db.flush()
            return False

        await db.delete(conversation)
        await db.flush()
        return True

    async def reset_passed(self, db: AsyncSession, client: User) -> int:
        """Delete the client's left swipes; returns how many were removed."""
        try:
            passed = (
                await db.execute(
                    select(Swipe.swipe_id).where(
                        Swipe.client_id == client.user_id,
                        Swipe.matched.is_(False),
                    )
                )
            ).scalars().all()
            if passed:
                await db.execute(
                    delete(Swipe)
                    .where(Swipe.swipe_id.in_(passed))
                    .execution_options(synchronize_session="fetch")
                )
        except SQLAlchemyError as e:
            logger.error("Database error resetting swipes: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

        removed = len(passed)
        logger.info("Client %s reset %d passed swipes", client.user_id, removed)
        return removed

    async def swipe_history(self, db: AsyncSession, client: User) -> List[SwipeResponse]:
        try:
            result = await db.execute(
                select(Swipe)
                .where(Swipe.client_id == client.user_id)
                .order_by(Swipe.created_at.asc())
            )
            swipes = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error reading swipe history: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})
        return [_to_response(s) for s in swipes]


# ── Singleton Instance ────────────────────────────────────────────────────
swipe_service = SwipeService()
