"""
LegalTendr Backend — Case Service
===================================

What:  Clients describe legal needs as cases, tag them with specialties,
       hire a lawyer and share the case into a conversation.
Who:   Case routes; LawyerService (case → matching lawyers);
       SwipeService (case-filtered deck).

Visibility:
    A case is visible to its client and to the lawyer hired on it. Anyone
    else gets NotFoundError. Only the owning client may change it.
"""

import logging
import uuid
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from legaltendr.exceptions import DatabaseError, NotFoundError, ValidationError
from legaltendr.models import CASE_STATUSES, Case, CaseCategory, Lawyer, Specialty, User
from legaltendr.models.base import utcnow
from legaltendr.schemas.auth import SpecialtyRef
from legaltendr.schemas.case import CaseCreate, CaseResponse, CaseUpdate
from legaltendr.schemas.conversation import MessageResponse
from legaltendr.services.catalog_service import catalog_service
from legaltendr.services.conversation_service import conversation_service

logger = logging.getLogger(__name__)

SHARE_TEMPLATE = 'I\'d like to discuss my case: "{title}" - {description}'


def _required_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(message=f"{field.capitalize()} is required", field=field)
    return value.strip()


class CaseService:

    # ── Specialties ───────────────────────────────────────────────────────

    async def _replace_specialties(
        self, db: AsyncSession, case_id: uuid.UUID, specialty_ids: List[str]
    ) -> None:
        await db.execute(delete(CaseCategory).where(CaseCategory.case_id == case_id))
        for specialty_id in specialty_ids:
            db.add(CaseCategory(case_id=case_id, specialty_id=specialty_id))
        await db.flush()

    async def _specialties_by_case(
        self, db: AsyncSession, case_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, List[SpecialtyRef]]:
        ids = list(case_ids)
        grouped: Dict[uuid.UUID, List[SpecialtyRef]] = defaultdict(list)
        if not ids:
            return grouped
        result = await db.execute(
            select(CaseCategory.case_id, Specialty.specialty_id, Specialty.name)
            .join(Specialty, Specialty.specialty_id == CaseCategory.specialty_id)
            .where(CaseCategory.case_id.in_(ids))
            .order_by(Specialty.name)
        )
        for case_id, specialty_id, name in result.all():
            grouped[case_id].append(SpecialtyRef(specialty_id=specialty_id, name=name))
        return grouped

    async def get_case_specialty_ids(self, db: AsyncSession, case_id: uuid.UUID) -> List[str]:
        try:
            result = await db.execute(
                select(CaseCategory.specialty_id).where(CaseCategory.case_id == case_id)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error reading specialties of case %s: %s", case_id, str(e))
            raise DatabaseError(context={"case_id": str(case_id)})

    async def get_case_specialties(self, db: AsyncSession, case_id: uuid.UUID) -> List[SpecialtyRef]:
        try:
            grouped = await self._specialties_by_case(db, [case_id])
        except SQLAlchemyError as e:
            logger.error("Database error reading specialties of case %s: %s", case_id, str(e))
            raise DatabaseError(context={"case_id": str(case_id)})
        return grouped.get(case_id, [])

    # ── Lookups ───────────────────────────────────────────────────────────

    async def _visible_case(self, db: AsyncSession, user: User, case_id: uuid.UUID) -> Case:
        case = await db.get(Case, case_id)
        if case is None or user.user_id not in (case.client_id, case.hired_lawyer_id):
            raise NotFoundError(resource="case", resource_id=str(case_id))
        return case

    async def get_owned_case(self, db: AsyncSession, client_id: str, case_id: uuid.UUID) -> Case:
        """The case if `client_id` wrote it, else NotFoundError."""
        case = await db.get(Case, case_id)
        if case is None or case.client_id != client_id:
            raise NotFoundError(resource="case", resource_id=str(case_id))
        return case

    def _to_response(self, case: Case, specialties: List[SpecialtyRef]) -> CaseResponse:
        return CaseResponse(
            case_id=case.case_id,
            client_id=case.client_id,
            title=case.title,
            description=case.description,
            status=case.status,
            hired_lawyer_id=case.hired_lawyer_id,
            created_at=case.created_at,
            updated_at=case.updated_at,
            specialties=specialties,
        )

    # ── Operations ────────────────────────────────────────────────────────

    async def create_case(self, db: AsyncSession, client: User, data: CaseCreate) -> CaseResponse:
        """
        Raises:
            ValidationError: blank title/description or unknown specialty id
        """
        title = _required_text(data.title, "title")
        description = _required_text(data.description, "description")

        try:
            specialty_ids = await catalog_service.validate_specialty_ids(db, data.specialties)
            now = utcnow()
            case = Case(
                client_id=client.user_id,
                title=title,
                description=description,
                status="open",
                created_at=now,
                updated_at=now,
            )
            db.add(case)
            await db.flush()
            await self._replace_specialties(db, case.case_id, specialty_ids)
            specialties = await self._specialties_by_case(db, [case.case_id])
        except SQLAlchemyError as e:
            logger.error("Database error creating case: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the case. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Case %s created by client %s", case.case_id, client.user_id)
        return self._to_response(case, specialties.get(case.case_id, []))

    async def list_cases(
        self, db: AsyncSession, user: User, status: Optional[str] = None
    ) -> List[CaseResponse]:
        """Clients see their own cases; lawyers see the cases they were hired on."""
        if status is not None and status not in CASE_STATUSES:
            raise ValidationError(
                message=f"Invalid status '{status}'. Must be one of: {', '.join(CASE_STATUSES)}",
                field="status",
            )

        if user.user_type == "client":
            query = select(Case).where(Case.client_id == user.user_id)
        elif user.user_type == "lawyer":
            query = select(Case).where(Case.hired_lawyer_id == user.user_id)
        else:
            return []
        if status is not None:
            query = query.where(Case.status == status)
        query = query.order_by(Case.created_at.desc())

        try:
            cases = list((await db.execute(query)).scalars().all())
            specialties = await self._specialties_by_case(db, [c.case_id for c in cases])
        except SQLAlchemyError as e:
            logger.error("Database error listing cases: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve cases. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return [self._to_response(c, specialties.get(c.case_id, [])) for c in cases]

    async def get_case(self, db: AsyncSession, user: User, case_id: uuid.UUID) -> CaseResponse:
        try:
            case = await self._visible_case(db, user, case_id)
            specialties = await self._specialties_by_case(db, [case_id])
        except SQLAlchemyError as e:
            logger.error("Database error fetching case %s: %s", case_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the case. Please try again.",
                context={"case_id": str(case_id)},
            )
        return self._to_response(case, specialties.get(case_id, []))

    async def ensure_visible(self, db: AsyncSession, user: User, case_id: uuid.UUID) -> None:
        """NotFoundError unless `user` may see the case."""
        try:
            await self._visible_case(db, user, case_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching case %s: %s", case_id, str(e))
            raise DatabaseError(context={"case_id": str(case_id)})

    async def update_case(
        self, db: AsyncSession, client: User, case_id: uuid.UUID, changes: CaseUpdate
    ) -> CaseResponse:
        """
        Apply the fields present in `changes`.

        Hiring rules:
            - hired_lawyer_id must name an existing lawyer
            - hiring on an open case moves it to in_progress (unless a status
              is given explicitly in the same update)
            - a closed case cannot be hired on

        Raises:
            NotFoundError: case missing or not owned by the client
            ValidationError: blank text, unknown specialty or lawyer, closed case
        """
        fields = changes.model_fields_set
        try:
            case = await self.get_owned_case(db, client.user_id, case_id)

            if "title" in fields:
                case.title = _required_text(changes.title, "title")
            if "description" in fields:
                case.description = _required_text(changes.description, "description")
            if "specialties" in fields:
                specialty_ids = await catalog_service.validate_specialty_ids(db, changes.specialties or [])
                await self._replace_specialties(db, case.case_id, specialty_ids)

            if "hired_lawyer_id" in fields and changes.hired_lawyer_id is not None:
                if case.status == "closed":
                    raise ValidationError(
                        message="A closed case cannot be assigned to a lawyer",
                        field="hired_lawyer_id",
                    )
                if await db.get(Lawyer, changes.hired_lawyer_id) is None:
                    raise ValidationError(
                        message=f"Lawyer '{changes.hired_lawyer_id}' does not exist",
                        field="hired_lawyer_id",
                    )
                case.hired_lawyer_id = changes.hired_lawyer_id
                if case.status == "open" and "status" not in fields:
                    case.status = "in_progress"
                logger.info("Case %s hired lawyer %s", case.case_id, case.hired_lawyer_id)

            if "status" in fields and changes.status is not None:
                case.status = changes.status

            case.updated_at = utcnow()
            await db.flush()
            specialties = await self._specialties_by_case(db, [case.case_id])
        except SQLAlchemyError as e:
            logger.error("Database error updating case %s: %s", case_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the case. Please try again.",
                context={"case_id": str(case_id)},
            )
        return self._to_response(case, specialties.get(case.case_id, []))

    async def share_case(
        self,
        db: AsyncSession,
        client: User,
        case_id: uuid.UUID,
        conversation_id: uuid.UUID,
    ) -> MessageResponse:
        """Post the case summary into one of the client's conversations."""
        try:
            case = await self.get_owned_case(db, client.user_id, case_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching case %s: %s", case_id, str(e))
            raise DatabaseError(context={"case_id": str(case_id)})

        content = SHARE_TEMPLATE.format(title=case.title, description=case.description)
        message = await conversation_service.send_message(db, client, conversation_id, content)
        logger.info("Case %s shared into conversation %s", case_id, conversation_id)
        return message


# ── Singleton Instance ────────────────────────────────────────────────────
case_service = CaseService()
