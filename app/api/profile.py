"""
Kindred — Profile API

Read and update the authenticated viewer's own profile.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_viewer_id
from app.database import get_db
from app.schemas.profile import AppProfile, ProfileUpdate
from app.services.profile_service import ProfileService

logger = structlog.get_logger("kindred.api.profile")

router = APIRouter()

_profile_service = ProfileService()


@router.get(
    "",
    response_model=AppProfile,
    summary="Get the viewer's profile",
)
async def read_profile(
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> AppProfile:
    profile = await _profile_service.get_profile(viewer_id, db)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found.",
        )
    return _profile_service.to_app_profile(profile)


@router.put(
    "",
    response_model=AppProfile,
    summary="Create or update the viewer's profile",
)
async def write_profile(
    payload: ProfileUpdate,
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> AppProfile:
    """Apply the fields present in the body to the viewer's profile,
    creating it on first save (onboarding)."""
    log = logger.bind(viewer_id=str(viewer_id))
    log.info("write_profile_start")

    profile = await _profile_service.upsert_profile(viewer_id, payload, db)
    return _profile_service.to_app_profile(profile)
