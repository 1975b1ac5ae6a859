"""
LegalTendr Backend — Match Service
====================================

What:  Lists matches (right swipes) from either side.
       Clients see the lawyers they accepted; lawyers see the clients that
       accepted them. Admin accounts have no matches.
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from legaltendr.exceptions import DatabaseError
from legaltendr.models import Swipe, User
from legaltendr.schemas.swipe import MatchResponse

logger = logging.getLogger(__name__)


class MatchService:

    async def list_matches(self, db: AsyncSession, user: User) -> List[MatchResponse]:
        """Newest first."""
        if user.user_type == "client":
            owner = Swipe.client_id
        elif user.user_type == "lawyer":
            owner = Swipe.lawyer_id
        else:
            return []

        try:
            result = await db.execute(
                select(Swipe)
                .where(owner == user.user_id, Swipe.matched.is_(True))
                .order_by(Swipe.created_at.desc())
            )
            swipes = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing matches for %s: %s", user.user_id, str(e))
            raise DatabaseError(
                message="Could not retrieve matches. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return [
            MatchResponse(
                match_id=s.swipe_id,
                client_id=s.client_id,
                lawyer_id=s.lawyer_id,
                created_at=s.created_at,
            )
            for s in swipes
        ]


# ── Singleton Instance ────────────────────────────────────────────────────
match_service = MatchService()
