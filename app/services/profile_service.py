"""
Kindred — Profile persistence and onboarding view.

Reads and writes the viewer's own ``profiles`` row.  Only the subject user
ever writes their row; every call here is keyed by the authenticated
viewer id.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile import Profile
from app.schemas.profile import AppProfile, ProfileUpdate
from app.services.preferences import map_support_type_to_database

logger = structlog.get_logger("kindred.profile_service")


class ProfileService:
    """CRUD for the ``profiles`` table plus the onboarding projection."""

    # Descriptive fields counted towards profile completion
    COMPLETION_FIELDS: tuple[str, ...] = (
        "name",
        "dob",
        "location",
        "gender",
        "workplace",
        "job_title",
        "education",
        "religious_beliefs",
        "communication_style",
        "availability",
    )

    # ── Reads ────────────────────────────────────────────────────────────

    async def get_profile(
        self,
        user_id: uuid.UUID | str,
        db_session: AsyncSession,
    ) -> Optional[Profile]:
        stmt = select(Profile).where(Profile.id == uuid.UUID(str(user_id)))
        result = await db_session.execute(stmt)
        profile = result.scalar_one_or_none()

        if profile is None:
            logger.debug("profile_not_found", user_id=str(user_id))
        return profile

    # ── Writes ───────────────────────────────────────────────────────────

    async def upsert_profile(
        self,
        user_id: uuid.UUID | str,
        payload: ProfileUpdate,
        db_session: AsyncSession,
    ) -> Profile:
        """Create or update the viewer's profile.

        Only fields present in the payload are applied.  UI wording for the
        support role ("I need support") is stored in its database form.
        """
        log = logger.bind(user_id=str(user_id))

        profile = await self.get_profile(user_id, db_session)
        created = profile is None
        if created:
            profile = Profile(id=uuid.UUID(str(user_id)))
            db_session.add(profile)

        update_data = payload.model_dump(exclude_unset=True)
        if update_data.get("support_type"):
            update_data["support_type"] = map_support_type_to_database(
                update_data["support_type"]
            )

        for field, value in update_data.items():
            setattr(profile, field, value)
        profile.updated_at = datetime.now(timezone.utc)

        await db_session.flush()
        log.info(
            "profile_upserted",
            created=created,
            updated_fields=sorted(update_data.keys()),
        )
        return profile

    async def touch_last_active(
        self,
        user_id: uuid.UUID | str,
        db_session: AsyncSession,
    ) -> None:
        """Stamp ``last_active_at`` for the viewer, if they have a profile."""
        profile = await self.get_profile(user_id, db_session)
        if profile is None:
            return
        profile.last_active_at = datetime.now(timezone.utc)
        await db_session.flush()

    # ── Projection ───────────────────────────────────────────────────────

    def completion_percentage(self, profile: Any) -> int:
        filled = sum(
            1 for field in self.COMPLETION_FIELDS if getattr(profile, field, None)
        )
        return round(filled / len(self.COMPLETION_FIELDS) * 100)

    def to_app_profile(self, profile: Profile) -> AppProfile:
        preferences = list(profile.support_preferences or [])
        return AppProfile(
            id=str(profile.id),
            name=profile.name or "",
            date_of_birth=profile.dob or "",
            location=profile.location or "",
            gender=profile.gender or "",
            workplace=profile.workplace or "",
            job_title=profile.job_title or "",
            education=profile.education or "",
            religious_beliefs=profile.religious_beliefs or "",
            communication_preferences=profile.communication_style or "",
            availability=profile.availability or "",
            completed_setup=bool(profile.completed_setup),
            profile_completion_percentage=self.completion_percentage(profile),
            journey=preferences[0] if preferences else "",
            journey_note=profile.journey_note or "",
            support_preferences=preferences,
            support_giver=bool(profile.support_giver),
            support_seeker=bool(profile.support_seeker),
            support_type=profile.support_type or "",
        )
