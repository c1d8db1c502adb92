"""
Kindred — Mindfulness journal and daily streak.

Journal, gratitude and strength entries are private to their owner; every
query here is filtered on ``user_id``.  The streak counts UTC days with at
least one recorded activity and rises at most once per day.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.mindfulness import MindfulnessEntry, MindfulnessStreak
from app.schemas.mindfulness import (
    ENTRY_TYPES,
    MindfulnessEntryCreate,
    MindfulnessEntryUpdate,
    MindfulnessEntryView,
    StreakView,
)

logger = structlog.get_logger("kindred.mindfulness_service")

DEFAULT_JOURNAL_MOOD = "😊"
DEFAULT_GRATITUDE_CATEGORY = "general"

# Columns that are NOT NULL; an explicit null in an update leaves them as-is
_REQUIRED_FIELDS: frozenset[str] = frozenset({"type", "content", "is_private"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_uuid(value: uuid.UUID | str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValueError(f"Invalid entry id {value!r}")


class MindfulnessService:
    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self.clock = clock

    # ── Projection ───────────────────────────────────────────────────────

    @staticmethod
    def to_view(entry: MindfulnessEntry) -> MindfulnessEntryView:
        return MindfulnessEntryView(
            id=str(entry.id),
            user_id=str(entry.user_id),
            created_at=entry.created_at,
            updated_at=entry.updated_at,
            type=entry.type,
            content=entry.content,
            mood=entry.mood,
            category=entry.category,
            is_private=entry.is_private if entry.is_private is not None else True,
            tags=[t for t in (entry.tags or []) if isinstance(t, str)],
        )

    @staticmethod
    def streak_view(user_id: uuid.UUID, streak: Optional[MindfulnessStreak]) -> StreakView:
        if streak is None:
            return StreakView(user_id=str(user_id))
        return StreakView(
            user_id=str(streak.user_id),
            mindfulness=streak.mindfulness or 0,
            last_updated=streak.last_updated,
            last_mindfulness_date=streak.last_mindfulness_date,
        )

    # ── Entries ──────────────────────────────────────────────────────────

    async def list_entries(
        self,
        user_id: uuid.UUID,
        db_session: AsyncSession,
        entry_type: Optional[str] = None,
    ) -> list[MindfulnessEntryView]:
        """The owner's entries, newest first, optionally of one type."""
        if entry_type is not None and entry_type not in ENTRY_TYPES:
            raise ValueError(
                f"Invalid entry type {entry_type!r}. Must be one of: "
                f"{', '.join(ENTRY_TYPES)}"
            )

        stmt = select(MindfulnessEntry).where(MindfulnessEntry.user_id == user_id)
        if entry_type is not None:
            stmt = stmt.where(MindfulnessEntry.type == entry_type)
        stmt = stmt.order_by(MindfulnessEntry.created_at.desc())

        rows = (await db_session.execute(stmt)).scalars().all()
        logger.info(
            "mindfulness_entries_listed",
            user_id=str(user_id),
            entry_type=entry_type,
            count=len(rows),
        )
        return [self.to_view(row) for row in rows]

    async def _owned_entry(
        self,
        user_id: uuid.UUID,
        entry_id: uuid.UUID | str,
        db_session: AsyncSession,
    ) -> MindfulnessEntry:
        stmt = select(MindfulnessEntry).where(
            MindfulnessEntry.id == _as_uuid(entry_id),
            MindfulnessEntry.user_id == user_id,
        )
        entry = (await db_session.execute(stmt)).scalar_one_or_none()
        if entry is None:
            logger.info(
                "mindfulness_entry_not_found",
                user_id=str(user_id),
                entry_id=str(entry_id),
            )
            raise LookupError("Entry not found")
        return entry

    async def get_entry(
        self,
        user_id: uuid.UUID,
        entry_id: uuid.UUID | str,
        db_session: AsyncSession,
    ) -> MindfulnessEntryView:
        return self.to_view(await self._owned_entry(user_id, entry_id, db_session))

    async def create_entry(
        self,
        user_id: uuid.UUID,
        payload: MindfulnessEntryCreate,
        db_session: AsyncSession,
    ) -> MindfulnessEntryView:
        if not payload.content.strip():
            raise ValueError("Entry content is required")

        entry = MindfulnessEntry(
            id=uuid.uuid4(),
            user_id=user_id,
            type=payload.type,
            content=payload.content,
            mood=payload.mood,
            category=payload.category,
            is_private=payload.is_private,
            tags=list(payload.tags or []),
        )
        db_session.add(entry)
        await db_session.flush()
        await db_session.refresh(entry)

        logger.info(
            "mindfulness_entry_created",
            user_id=str(user_id),
            entry_id=str(entry.id),
            entry_type=entry.type,
        )
        return self.to_view(entry)

    async def update_entry(
        self,
        user_id: uuid.UUID,
        changes: MindfulnessEntryUpdate,
        db_session: AsyncSession,
    ) -> MindfulnessEntryView:
        """Apply the fields present in ``changes`` and stamp ``updated_at``.

        Raises
        ------
        LookupError
            If the viewer owns no entry with ``changes.id``.
        """
        entry = await self._owned_entry(user_id, changes.id, db_session)

        fields = changes.model_dump(exclude_unset=True, exclude={"id"})
        for field, value in fields.items():
            if value is None and field in _REQUIRED_FIELDS:
                continue
            if field == "tags":
                value = list(value or [])
            setattr(entry, field, value)
        entry.updated_at = self.clock()
        await db_session.flush()

        logger.info(
            "mindfulness_entry_updated",
            user_id=str(user_id),
            entry_id=str(entry.id),
            fields=sorted(fields),
        )
        return self.to_view(entry)

    async def delete_entry(
        self,
        user_id: uuid.UUID,
        entry_id: uuid.UUID | str,
        db_session: AsyncSession,
    ) -> None:
        entry = await self._owned_entry(user_id, entry_id, db_session)
        await db_session.delete(entry)
        await db_session.flush()
        logger.info(
            "mindfulness_entry_deleted", user_id=str(user_id), entry_id=str(entry.id)
        )

    async def import_entries(
        self,
        user_id: uuid.UUID,
        entries: Iterable[MindfulnessEntryCreate],
        db_session: AsyncSession,
    ) -> int:
        """Bulk-create entries carried over from a device-local journal.

        Journal entries without a mood and gratitude entries without a
        category get the app defaults.  Returns the number created.
        """
        created = 0
        for item in entries:
            mood = item.mood
            category = item.category
            if item.type == "journal" and not mood:
                mood = DEFAULT_JOURNAL_MOOD
            if item.type == "gratitude" and not category:
                category = DEFAULT_GRATITUDE_CATEGORY
            db_session.add(
                MindfulnessEntry(
                    id=uuid.uuid4(),
                    user_id=user_id,
                    type=item.type,
                    content=item.content,
                    mood=mood,
                    category=category,
                    is_private=item.is_private,
                    tags=list(item.tags or []),
                )
            )
            created += 1

        if created:
            await db_session.flush()
        logger.info("mindfulness_entries_imported", user_id=str(user_id), count=created)
        return created

    # ── Streak ───────────────────────────────────────────────────────────

    async def _streak_row(
        self, user_id: uuid.UUID, db_session: AsyncSession
    ) -> Optional[MindfulnessStreak]:
        stmt = select(MindfulnessStreak).where(MindfulnessStreak.user_id == user_id)
        return (await db_session.execute(stmt)).scalar_one_or_none()

    async def get_streak(
        self, user_id: uuid.UUID, db_session: AsyncSession
    ) -> StreakView:
        return self.streak_view(user_id, await self._streak_row(user_id, db_session))

    async def record_activity(
        self,
        user_id: uuid.UUID,
        activity_type: str,
        db_session: AsyncSession,
    ) -> tuple[StreakView, bool, bool]:
        """Count a mindfulness activity towards today's streak.

        Returns ``(streak, created, incremented)``.  A second activity on
        the same UTC day refreshes ``last_updated`` only.
        """
        if not activity_type or not activity_type.strip():
            raise ValueError("Activity type is required")

        log = logger.bind(user_id=str(user_id), activity_type=activity_type)
        now = self.clock()
        today = now.astimezone(timezone.utc).date()

        streak = await self._streak_row(user_id, db_session)
        if streak is None:
            streak = MindfulnessStreak(
                user_id=user_id,
                mindfulness=1,
                last_updated=now,
                last_mindfulness_date=today,
            )
            db_session.add(streak)
            await db_session.flush()
            log.info("mindfulness_streak_created")
            return self.streak_view(user_id, streak), True, True

        incremented = streak.last_mindfulness_date != today
        if incremented:
            streak.mindfulness = (streak.mindfulness or 0) + 1
            streak.last_mindfulness_date = today
        streak.last_updated = now
        await db_session.flush()

        log.info(
            "mindfulness_streak_updated",
            incremented=incremented,
            days=streak.mindfulness,
        )
        return self.streak_view(user_id, streak), False, incremented
