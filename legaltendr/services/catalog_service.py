"""
LegalTendr Backend — Catalog Service
======================================

What:  Reference data: legal specialties and Philippine geo codes.
Who:   Catalog routes (registration forms, discovery filters, case forms).
       geo_codes starts empty; an admin loads the PSGC list through
       import_geo_codes (PUT /api/geo/codes).

Geo hierarchy:
    PSGC ids share their leading digits with their parent. A city or
    municipality belongs to a province when its id starts with the first
    four characters of the province id.
"""

import logging
import re
from collections import Counter
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from legaltendr.exceptions import ConflictError, DatabaseError, ValidationError
from legaltendr.models import GeoCode, Specialty
from legaltendr.models.catalog import GEO_LEVEL_PROVINCE, GEO_LEVELS_CITY
from legaltendr.schemas.catalog import GeoCodeImport

logger = logging.getLogger(__name__)

PROVINCE_PREFIX_LENGTH = 4

_SPECIALTY_ID = re.compile(r"^s(\d+)$")


class CatalogService:

    # ── Specialties ───────────────────────────────────────────────────────

    async def list_specialties(self, db: AsyncSession) -> List[Specialty]:
        try:
            result = await db.execute(select(Specialty).order_by(Specialty.name))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing specialties: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

    async def create_specialty(
        self, db: AsyncSession, name: str, description: Optional[str] = None
    ) -> Specialty:
        """
        Add a specialty with the next free `s<n>` id.

        Raises:
            ValidationError: blank name
            ConflictError: a specialty with this name exists (case-insensitive)
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError(message="Specialty name is required", field="name")

        try:
            duplicate = await db.scalar(
                select(Specialty.specialty_id).where(func.lower(Specialty.name) == name.lower())
            )
            if duplicate is not None:
                raise ConflictError(
                    message=f"Specialty '{name}' already exists",
                    context={"specialty_id": duplicate},
                )

            specialty = Specialty(
                specialty_id=await self._next_specialty_id(db),
                name=name,
                description=description,
            )
            db.add(specialty)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating specialty: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

        logger.info("Specialty %s created: %s", specialty.specialty_id, name)
        return specialty

    async def _next_specialty_id(self, db: AsyncSession) -> str:
        ids = (await db.execute(select(Specialty.specialty_id))).scalars().all()
        numbers = [int(m.group(1)) for m in map(_SPECIALTY_ID.match, ids) if m]
        return f"s{max(numbers, default=0) + 1}"

    async def known_specialty_ids(self, db: AsyncSession, specialty_ids: Iterable[str]) -> List[str]:
        """The subset of `specialty_ids` that exist, de-duplicated, input order kept."""
        wanted = list(dict.fromkeys(s for s in specialty_ids if s))
        if not wanted:
            return []
        result = await db.execute(
            select(Specialty.specialty_id).where(Specialty.specialty_id.in_(wanted))
        )
        found = set(result.scalars().all())
        return [s for s in wanted if s in found]

    async def validate_specialty_ids(self, db: AsyncSession, specialty_ids: Iterable[str]) -> List[str]:
        """Like known_specialty_ids(), but any unknown id is a ValidationError."""
        wanted = list(dict.fromkeys(specialty_ids))
        known = await self.known_specialty_ids(db, wanted)
        unknown = sorted(set(wanted) - set(known))
        if unknown:
            raise ValidationError(
                message=f"Unknown specialty: {', '.join(unknown)}",
                field="specialties",
                context={"unknown": unknown},
            )
        return known

    # ── Geo codes ─────────────────────────────────────────────────────────

    async def list_provinces(self, db: AsyncSession) -> List[GeoCode]:
        try:
            result = await db.execute(
                select(GeoCode)
                .where(GeoCode.geo_level == GEO_LEVEL_PROVINCE)
                .order_by(GeoCode.name)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing provinces: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

    async def list_cities(self, db: AsyncSession, province_id: str) -> List[GeoCode]:
        """Cities and municipalities of a province, by name."""
        province_id = (province_id or "").strip()
        if not province_id:
            raise ValidationError(message="Province id is required", field="province_id")

        prefix = province_id[:PROVINCE_PREFIX_LENGTH]
        try:
            result = await db.execute(
                select(GeoCode)
                .where(
                    GeoCode.geo_level.in_(GEO_LEVELS_CITY),
                    GeoCode.id.startswith(prefix, autoescape=True),
                )
                .order_by(GeoCode.name)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing cities of %s: %s", province_id, str(e))
            raise DatabaseError(context={"province_id": province_id})

    async def import_geo_codes(
        self, db: AsyncSession, rows: Sequence[GeoCodeImport]
    ) -> Tuple[int, int]:
        """
        Insert or overwrite geo codes by id (PSGC load on a fresh install).

        Returns:
            (created, updated)

        Raises:
            ValidationError: an id appears twice in the batch
        """
        ids = [row.id.strip() for row in rows]
        duplicates = sorted(i for i, n in Counter(ids).items() if n > 1)
        if duplicates:
            raise ValidationError(
                message=f"Duplicate geo code id: {', '.join(duplicates)}",
                field="id",
                context={"duplicates": duplicates},
            )
        if not rows:
            return 0, 0

        try:
            result = await db.execute(select(GeoCode).where(GeoCode.id.in_(ids)))
            existing = {geo.id: geo for geo in result.scalars().all()}
            for geo_id, row in zip(ids, rows):
                geo = existing.get(geo_id)
                if geo is None:
                    db.add(GeoCode(id=geo_id, name=row.name.strip(), geo_level=row.geo_level.strip()))
                else:
                    geo.name = row.name.strip()
                    geo.geo_level = row.geo_level.strip()
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error importing geo codes: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

        created, updated = len(ids) - len(existing), len(existing)
        logger.info("Geo codes imported: %d created, %d updated", created, updated)
        return created, updated


# ── Singleton Instance ────────────────────────────────────────────────────
catalog_service = CatalogService()
