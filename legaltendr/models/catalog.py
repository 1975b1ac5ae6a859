"""
LegalTendr Backend — Specialty and Geo Code Models
====================================================

What:  Reference data shared by lawyers and cases.

    specialties         Practice areas ("Family Law", ...). Seeded by the
                        initial migration with ids s1..s8.
    lawyer_specialties  Which areas a lawyer practises (many-to-many)
    geo_codes           Philippine Standard Geographic Codes. A city or
                        municipality belongs to the province whose id shares
                        its first four characters.
"""

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from legaltendr.database import Base

GEO_LEVEL_PROVINCE = "Prov"
GEO_LEVELS_CITY = ("City", "Mun")


class Specialty(Base):
    __tablename__ = "specialties"

    specialty_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Specialty(specialty_id='{self.specialty_id}', name='{self.name}')>"


class LawyerSpecialty(Base):
    __tablename__ = "lawyer_specialties"

    lawyer_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("lawyers.lawyer_id", ondelete="CASCADE"),
        primary_key=True,
    )
    specialty_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("specialties.specialty_id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )


class GeoCode(Base):
    __tablename__ = "geo_codes"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)

    # Values: Prov, City, Mun (other PSGC levels may exist and are ignored)
    geo_level: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
