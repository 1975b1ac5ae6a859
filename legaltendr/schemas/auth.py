"""
LegalTendr Backend — Auth and Profile Schemas
===============================================

What:  Registration/login bodies and the profile returned for the current user.
"""

import re
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

# Deliberately loose: one @, something on both sides, a dot in the domain
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

UserType = Literal["client", "lawyer", "admin"]


def _normalise_email(v: str) -> str:
    email = v.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email address")
    return email


class RegisterRequest(BaseModel):
    """
    Body of POST /api/auth/register.

    Lawyer-only fields (hourly_rate, years_of_experience, specialties) are
    ignored for other account types. admin_key is required for admins.
    """
    email: str = Field(max_length=255)
    password: str = Field(min_length=6, max_length=128)
    user_type: UserType
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone_number: Optional[str] = Field(default=None, max_length=30)
    profile_picture_url: Optional[str] = Field(default=None, max_length=500)
    province_id: Optional[str] = Field(default=None, max_length=20)
    province_name: Optional[str] = Field(default=None, max_length=100)
    city_id: Optional[str] = Field(default=None, max_length=20)
    city_name: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = None
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    years_of_experience: Optional[int] = Field(default=None, ge=0, le=80)
    specialties: List[str] = Field(default_factory=list)
    admin_key: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalise_email(v)


class LoginRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return v.strip().lower()


class SpecialtyRef(BaseModel):
    specialty_id: str
    name: str


class UserProfile(BaseModel):
    """
    The current user as shown on the profile page.

    profile_type mirrors user_type; the lawyer block is only filled for lawyers.
    """
    user_id: str
    email: str
    user_type: str
    profile_type: str
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    profile_picture_url: Optional[str] = None
    province_id: Optional[str] = None
    province_name: Optional[str] = None
    city_id: Optional[str] = None
    city_name: Optional[str] = None
    bio: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    # Lawyer-only
    hourly_rate: Optional[float] = None
    years_of_experience: Optional[int] = None
    matches_count: Optional[int] = None
    rating: Optional[float] = None
    reviews: Optional[int] = None
    specialties: List[SpecialtyRef] = Field(default_factory=list)


class AuthResponse(BaseModel):
    """
    Returned by register and login.

    The token is also set as the session cookie; API clients that cannot keep
    cookies send it back as `Authorization: Bearer <token>`.
    """
    token: str
    expires_at: datetime
    user: UserProfile


class ProfileUpdate(BaseModel):
    """PATCH /api/profile; only the fields present are changed."""
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone_number: Optional[str] = Field(default=None, max_length=30)
    province_id: Optional[str] = Field(default=None, max_length=20)
    province_name: Optional[str] = Field(default=None, max_length=100)
    city_id: Optional[str] = Field(default=None, max_length=20)
    city_name: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = None
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    years_of_experience: Optional[int] = Field(default=None, ge=0, le=80)
    specialties: Optional[List[str]] = None
