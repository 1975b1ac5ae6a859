"""
LegalTendr Backend — Lawyer Discovery Service
===============================================

What:  Lists and fetches lawyer cards, filtered by specialty, location and rate.
Who:   Discovery routes, the swipe deck, case matching.

Query plan (list_lawyers):
    SELECT users.*, lawyers.* FROM users JOIN lawyers ON ...
    WHERE lawyer_id IN (SELECT lawyer_id FROM lawyer_specialties
                        WHERE specialty_id IN (:ids))        -- any-of
      AND province_id = :p AND city_id = :c
      AND hourly_rate BETWEEN :min AND :max
      AND lawyer_id NOT IN (SELECT lawyer_id FROM swipes WHERE client_id = :me)
    ORDER BY rating DESC, reviews DESC, lawyer_id

    The IN-subquery keeps each lawyer once even when several of its
    specialties match. Specialty names are then loaded in one extra query.
"""

import logging
import uuid
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from legaltendr.exceptions import DatabaseError, NotFoundError, ValidationError
from legaltendr.models import Lawyer, LawyerSpecialty, Specialty, Swipe, User
from legaltendr.schemas.auth import SpecialtyRef
from legaltendr.schemas.lawyer import LawyerFilters, LawyerProfile
from legaltendr.services.case_service import case_service

logger = logging.getLogger(__name__)


async def specialties_by_lawyer(
    db: AsyncSession, lawyer_ids: Iterable[str]
) -> Dict[str, List[SpecialtyRef]]:
    """lawyer_id → its specialties ordered by name (lawyers with none are absent)."""
    ids = list(lawyer_ids)
    grouped: Dict[str, List[SpecialtyRef]] = defaultdict(list)
    if not ids:
        return grouped
    result = await db.execute(
        select(LawyerSpecialty.lawyer_id, Specialty.specialty_id, Specialty.name)
        .join(Specialty, Specialty.specialty_id == LawyerSpecialty.specialty_id)
        .where(LawyerSpecialty.lawyer_id.in_(ids))
        .order_by(Specialty.name)
    )
    for lawyer_id, specialty_id, name in result.all():
        grouped[lawyer_id].append(SpecialtyRef(specialty_id=specialty_id, name=name))
    return grouped


def to_lawyer_profile(user: User, lawyer: Lawyer, specialties: List[SpecialtyRef]) -> LawyerProfile:
    return LawyerProfile(
        lawyer_id=lawyer.lawyer_id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        phone_number=user.phone_number,
        profile_picture_url=user.profile_picture_url,
        province_id=user.province_id,
        province_name=user.province_name,
        city_id=user.city_id,
        city_name=user.city_name,
        bio=lawyer.bio,
        hourly_rate=lawyer.hourly_rate or 0,
        years_of_experience=lawyer.years_of_experience or 0,
        matches_count=lawyer.matches_count or 0,
        rating=lawyer.rating or 0,
        reviews=lawyer.reviews or 0,
        specialties=specialties,
    )


class LawyerService:
    """Read-only lawyer discovery."""

    @staticmethod
    def validate_filters(filters: LawyerFilters) -> None:
        if (
            filters.min_rate is not None
            and filters.max_rate is not None
            and filters.min_rate > filters.max_rate
        ):
            raise ValidationError(
                message="min_rate cannot be greater than max_rate",
                field="min_rate",
                context={"min_rate": filters.min_rate, "max_rate": filters.max_rate},
            )

    async def list_lawyers(
        self,
        db: AsyncSession,
        filters: Optional[LawyerFilters] = None,
        exclude_swiped_by: Optional[str] = None,
    ) -> List[LawyerProfile]:
        """
        Lawyers matching every given filter.

        Args:
            filters: see LawyerFilters; None means no filtering
            exclude_swiped_by: client id whose swiped lawyers are left out (deck)

        Raises:
            ValidationError: min_rate > max_rate
        """
        filters = filters or LawyerFilters()
        self.validate_filters(filters)

        query = select(User, Lawyer).join(Lawyer, Lawyer.lawyer_id == User.user_id)

        if filters.specialties:
            query = query.where(
                Lawyer.lawyer_id.in_(
                    select(LawyerSpecialty.lawyer_id).where(
                        LawyerSpecialty.specialty_id.in_(filters.specialties)
                    )
                )
            )
        if filters.province_id:
            query = query.where(User.province_id == filters.province_id)
        if filters.city_id:
            query = query.where(User.city_id == filters.city_id)
        if filters.min_rate is not None:
            query = query.where(Lawyer.hourly_rate >= filters.min_rate)
        if filters.max_rate is not None:
            query = query.where(Lawyer.hourly_rate <= filters.max_rate)
        if exclude_swiped_by:
            query = query.where(
                Lawyer.lawyer_id.not_in(
                    select(Swipe.lawyer_id).where(Swipe.client_id == exclude_swiped_by)
                )
            )

        query = query.order_by(Lawyer.rating.desc(), Lawyer.reviews.desc(), Lawyer.lawyer_id)

        try:
            rows = (await db.execute(query)).all()
            specialties = await specialties_by_lawyer(db, (lawyer.lawyer_id for _, lawyer in rows))
        except SQLAlchemyError as e:
            logger.error("Database error listing lawyers: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve lawyers. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return [
            to_lawyer_profile(user, lawyer, specialties.get(lawyer.lawyer_id, []))
            for user, lawyer in rows
        ]

    async def get_lawyer(self, db: AsyncSession, lawyer_id: str) -> LawyerProfile:
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
            user, lawyer = row
            specialties = await specialties_by_lawyer(db, [lawyer_id])
        except SQLAlchemyError as e:
            logger.error("Database error fetching lawyer %s: %s", lawyer_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the lawyer. Please try again.",
                context={"lawyer_id": lawyer_id},
            )
        return to_lawyer_profile(user, lawyer, specialties.get(lawyer_id, []))

    async def get_matching_lawyers(
        self, db: AsyncSession, case_id: uuid.UUID
    ) -> List[LawyerProfile]:
        """Unique lawyers sharing at least one specialty with the case."""
        specialty_ids = await case_service.get_case_specialty_ids(db, case_id)
        if not specialty_ids:
            return []
        return await self.list_lawyers(db, LawyerFilters(specialties=specialty_ids))


# ── Singleton Instance ────────────────────────────────────────────────────
lawyer_service = LawyerService()
