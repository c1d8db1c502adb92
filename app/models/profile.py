"""
Kindred — Profile model (one row per authenticated user).
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True), primary_key=True, comment="Identity-provider user id"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    # ── Onboarding details ─────────────────────────────────────────
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    dob: Mapped[str | None] = mapped_column(String, nullable=True)
    location: Mapped[str | None] = mapped_column(String, nullable=True)
    gender: Mapped[str | None] = mapped_column(String, nullable=True)
    workplace: Mapped[str | None] = mapped_column(String, nullable=True)
    job_title: Mapped[str | None] = mapped_column(String, nullable=True)
    education: Mapped[str | None] = mapped_column(String, nullable=True)
    religious_beliefs: Mapped[str | None] = mapped_column(String, nullable=True)
    availability: Mapped[str | None] = mapped_column(String, nullable=True)
    communication_style: Mapped[str | None] = mapped_column(String, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String, nullable=True)
    completed_setup: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    guidelines_accepted: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )

    # ── Peer-support role and journeys ─────────────────────────────
    support_type: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="support-seeker / support-giver"
    )
    support_seeker: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    support_giver: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    support_preferences: Mapped[list | None] = mapped_column(
        JSONB, nullable=True, comment="Array of journey tags"
    )
    journey_note: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ── Activity and reputation ────────────────────────────────────
    last_active_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_ratings: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    certified_mentor: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    people_supported: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )

    def __repr__(self) -> str:
        return f"<Profile {self.name!r} id={self.id} type={self.support_type!r}>"
