"""
Kindred — Mindfulness API

Private journal, gratitude and strength entries plus the daily streak.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_viewer_id, http_error_from
from app.database import get_db
from app.schemas.mindfulness import (
    ENTRY_TYPES,
    MindfulnessEntryCreate,
    MindfulnessEntryListResponse,
    MindfulnessEntryUpdate,
    MindfulnessEntryView,
    MindfulnessImportRequest,
    MindfulnessImportResponse,
    StreakActivity,
    StreakResponse,
    StreakView,
    SuccessResponse,
)
from app.services.mindfulness_service import MindfulnessService

router = APIRouter()

_mindfulness_service: MindfulnessService | None = None


def _get_mindfulness_service() -> MindfulnessService:
    global _mindfulness_service
    if _mindfulness_service is None:
        _mindfulness_service = MindfulnessService()
    return _mindfulness_service


# ──────────────────────────────────────────────────────────────────────────────
# / — Entries
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "",
    response_model=MindfulnessEntryListResponse,
    summary="List the viewer's mindfulness entries",
)
async def list_entries(
    entry_type: Optional[str] = Query(
        None, alias="type", description="One of: " + ", ".join(ENTRY_TYPES)
    ),
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> MindfulnessEntryListResponse:
    try:
        entries = await _get_mindfulness_service().list_entries(
            viewer_id, db, entry_type=entry_type
        )
    except ValueError as exc:
        raise http_error_from(exc)
    return MindfulnessEntryListResponse(entries=entries)


@router.post(
    "",
    response_model=MindfulnessEntryView,
    status_code=status.HTTP_201_CREATED,
    summary="Create a mindfulness entry",
)
async def create_entry(
    payload: MindfulnessEntryCreate,
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> MindfulnessEntryView:
    try:
        return await _get_mindfulness_service().create_entry(viewer_id, payload, db)
    except ValueError as exc:
        raise http_error_from(exc)


@router.put(
    "",
    response_model=MindfulnessEntryView,
    summary="Update a mindfulness entry",
)
async def update_entry(
    payload: MindfulnessEntryUpdate,
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> MindfulnessEntryView:
    try:
        return await _get_mindfulness_service().update_entry(viewer_id, payload, db)
    except (LookupError, ValueError) as exc:
        raise http_error_from(exc)


@router.delete(
    "",
    response_model=SuccessResponse,
    summary="Delete a mindfulness entry",
)
async def delete_entry(
    entry_id: str = Query(..., alias="id"),
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> SuccessResponse:
    try:
        await _get_mindfulness_service().delete_entry(viewer_id, entry_id, db)
    except (LookupError, ValueError) as exc:
        raise http_error_from(exc)
    return SuccessResponse()


@router.post(
    "/import",
    response_model=MindfulnessImportResponse,
    summary="Import entries kept on the device",
)
async def import_entries(
    payload: MindfulnessImportRequest,
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> MindfulnessImportResponse:
    imported = await _get_mindfulness_service().import_entries(
        viewer_id, payload.entries, db
    )
    return MindfulnessImportResponse(message="Entries imported", imported=imported)


# ──────────────────────────────────────────────────────────────────────────────
# /streak — Daily streak (declared before /{entry_id})
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/streak",
    response_model=StreakView,
    summary="Get the viewer's mindfulness streak",
)
async def get_streak(
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> StreakView:
    return await _get_mindfulness_service().get_streak(viewer_id, db)


@router.post(
    "/streak",
    response_model=StreakResponse,
    summary="Record a mindfulness activity for today",
)
async def record_activity(
    payload: StreakActivity,
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> StreakResponse:
    try:
        streak, created, incremented = await _get_mindfulness_service().record_activity(
            viewer_id, payload.activity_type, db
        )
    except ValueError as exc:
        raise http_error_from(exc)
    return StreakResponse(
        message="Streak created" if created else "Streak updated",
        data=streak,
        streak_incremented=incremented,
    )


# ──────────────────────────────────────────────────────────────────────────────
# /{entry_id} — Single entry
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{entry_id}",
    response_model=MindfulnessEntryView,
    summary="Get one mindfulness entry",
)
async def get_entry(
    entry_id: str,
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> MindfulnessEntryView:
    try:
        return await _get_mindfulness_service().get_entry(viewer_id, entry_id, db)
    except (LookupError, ValueError) as exc:
        raise http_error_from(exc)
