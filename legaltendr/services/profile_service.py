"""
LegalTendr Backend — Profile Service
======================================

What:  Reads and edits the current user's profile, including the picture.
Who:   Auth routes (/me, register/login responses) and profile routes.

Picture upload:
    ┌──────────┐   ┌──────────────┐   ┌──────────────┐   ┌────────────────┐
    │ Validate │──▶│ Store under  │──▶│ Update users │──▶│ Remove previous│
    │ & store  │   │ avatars/...  │   │ picture url  │   │ stored picture │
    └──────────┘   └──────────────┘   └──────────────┘   └────────────────┘
    If the database update fails the new file is removed instead. With
    background_tasks (the upload route), the previous picture is removed
    after the response, which is after the request's transaction commits.
"""

import logging
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from legaltendr.exceptions import DatabaseError
from legaltendr.models import Client, Lawyer, LawyerSpecialty, User
from legaltendr.models.base import utcnow
from legaltendr.schemas.auth import ProfileUpdate, UserProfile
from legaltendr.services.auth_service import capitalize_words
from legaltendr.services.catalog_service import catalog_service
from legaltendr.services.file_service import file_service
from legaltendr.services.lawyer_service import specialties_by_lawyer

logger = logging.getLogger(__name__)

# Fields copied as-is from ProfileUpdate onto the users row
_USER_FIELDS = ("phone_number", "province_id", "city_id")
# Fields stored with each word capitalised
_CAPITALISED_FIELDS = ("first_name", "last_name", "province_name", "city_name")


class ProfileService:

    async def get_profile(self, db: AsyncSession, user: User) -> UserProfile:
        """The user joined with its client or lawyer row."""
        try:
            return await self._build(db, user)
        except SQLAlchemyError as e:
            logger.error("Database error loading profile %s: %s", user.user_id, str(e))
            raise DatabaseError(context={"user_id": user.user_id})

    async def _build(self, db: AsyncSession, user: User) -> UserProfile:
        profile = UserProfile(
            user_id=user.user_id,
            email=user.email,
            user_type=user.user_type,
            profile_type=user.user_type,
            first_name=user.first_name,
            last_name=user.last_name,
            phone_number=user.phone_number,
            profile_picture_url=user.profile_picture_url,
            province_id=user.province_id,
            province_name=user.province_name,
            city_id=user.city_id,
            city_name=user.city_name,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

        if user.user_type == "client":
            client = await db.get(Client, user.user_id)
            if client is not None:
                profile.bio = client.bio
        elif user.user_type == "lawyer":
            lawyer = await db.get(Lawyer, user.user_id)
            if lawyer is not None:
                profile.bio = lawyer.bio
                profile.hourly_rate = lawyer.hourly_rate or 0
                profile.years_of_experience = lawyer.years_of_experience or 0
                profile.matches_count = lawyer.matches_count or 0
                profile.rating = lawyer.rating or 0
                profile.reviews = lawyer.reviews or 0
                specialties = await specialties_by_lawyer(db, [user.user_id])
                profile.specialties = specialties.get(user.user_id, [])
        return profile

    async def update_profile(
        self, db: AsyncSession, user: User, changes: ProfileUpdate
    ) -> UserProfile:
        """
        Apply the fields present in `changes`.

        Lawyer-only fields are ignored for other account types. A given
        specialty list replaces the lawyer's current set.

        Raises:
            ValidationError: unknown specialty id
        """
        fields = changes.model_fields_set
        try:
            for name in _CAPITALISED_FIELDS:
                if name in fields:
                    value = getattr(changes, name)
                    setattr(user, name, capitalize_words(value.strip()) if value else value)
            for name in _USER_FIELDS:
                if name in fields:
                    setattr(user, name, getattr(changes, name))

            if user.user_type == "client" and "bio" in fields:
                client = await db.get(Client, user.user_id)
                if client is None:
                    client = Client(client_id=user.user_id)
                    db.add(client)
                client.bio = changes.bio
                client.updated_at = utcnow()
            elif user.user_type == "lawyer":
                await self._update_lawyer(db, user, changes)

            user.updated_at = utcnow()
            await db.flush()
            profile = await self._build(db, user)
        except SQLAlchemyError as e:
            logger.error("Database error updating profile %s: %s", user.user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the profile. Please try again.",
                context={"user_id": user.user_id},
            )

        logger.info("Profile %s updated (%s)", user.user_id, ", ".join(sorted(fields)) or "no fields")
        return profile

    async def _update_lawyer(self, db: AsyncSession, user: User, changes: ProfileUpdate) -> None:
        fields = changes.model_fields_set
        lawyer = await db.get(Lawyer, user.user_id)
        if lawyer is None:
            lawyer = Lawyer(lawyer_id=user.user_id, matches_count=0, rating=0, reviews=0)
            db.add(lawyer)

        if "bio" in fields:
            lawyer.bio = changes.bio
        if "hourly_rate" in fields and changes.hourly_rate is not None:
            lawyer.hourly_rate = changes.hourly_rate
        if "years_of_experience" in fields and changes.years_of_experience is not None:
            lawyer.years_of_experience = changes.years_of_experience
        lawyer.updated_at = utcnow()
        await db.flush()

        if "specialties" in fields and changes.specialties is not None:
            specialty_ids = await catalog_service.validate_specialty_ids(db, changes.specialties)
            await db.execute(delete(LawyerSpecialty).where(LawyerSpecialty.lawyer_id == user.user_id))
            for specialty_id in specialty_ids:
                db.add(LawyerSpecialty(lawyer_id=user.user_id, specialty_id=specialty_id))
            await db.flush()

    async def upload_profile_picture(
        self,
        db: AsyncSession,
        user: User,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> UserProfile:
        """
        Without background_tasks the previous picture is removed before returning.

        Raises:
            ValidationError: bad extension, size or content type
            FileStorageError: the file could not be written
        """
        absolute_path, relative_path = await file_service.validate_and_store(
            filename=filename,
            content=content,
            content_length=content_length,
        )
        previous = file_service.path_from_url(user.profile_picture_url)

        try:
            user.profile_picture_url = file_service.public_url(relative_path)
            user.updated_at = utcnow()
            await db.flush()
            profile = await self._build(db, user)
        except SQLAlchemyError as e:
            await file_service.cleanup_file(absolute_path)
            logger.error("Database error saving picture for %s: %s", user.user_id, str(e))
            raise DatabaseError(
                message="Could not save the profile picture. Please try again.",
                context={"user_id": user.user_id},
            )

        if previous is not None:
            if background_tasks is not None:
                background_tasks.add_task(file_service.cleanup_file, str(previous))
            else:
                await file_service.cleanup_file(str(previous))
        logger.info("Profile picture of %s stored at %s", user.user_id, relative_path)
        return profile


# ── Singleton Instance ────────────────────────────────────────────────────
profile_service = ProfileService()
