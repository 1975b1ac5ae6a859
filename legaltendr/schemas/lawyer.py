"""
LegalTendr Backend — Lawyer Discovery Schemas
===============================================

What:  Filters accepted by discovery and the lawyer card returned for each hit.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from legaltendr.schemas.auth import SpecialtyRef


class LawyerFilters(BaseModel):
    """
    Discovery filters. Every field is optional; an empty filter lists everyone.

    specialties:        a lawyer matches when it has ANY of these ids
    min_rate/max_rate:  inclusive bounds on hourly_rate
    """
    specialties: List[str] = Field(default_factory=list)
    province_id: Optional[str] = None
    city_id: Optional[str] = None
    min_rate: Optional[float] = Field(default=None, ge=0)
    max_rate: Optional[float] = Field(default=None, ge=0)


class LawyerProfile(BaseModel):
    """One swipe card. Missing stats are reported as 0."""
    lawyer_id: str
    first_name: str
    last_name: str
    email: str
    phone_number: Optional[str] = None
    profile_picture_url: Optional[str] = None
    province_id: Optional[str] = None
    province_name: Optional[str] = None
    city_id: Optional[str] = None
    city_name: Optional[str] = None
    bio: Optional[str] = None
    hourly_rate: float = 0
    years_of_experience: int = 0
    matches_count: int = 0
    rating: float = 0
    reviews: int = 0
    specialties: List[SpecialtyRef] = Field(default_factory=list)
