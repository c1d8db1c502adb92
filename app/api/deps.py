"""
Kindred — Shared API dependencies.

Authentication is handled by the upstream identity gateway, which forwards
the verified user id in the ``X-User-Id`` header.  This module only reads
that header; it never validates credentials itself.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.services.profile_service import ProfileService

_profile_service = ProfileService()


def _parse_viewer_id(raw: Optional[str]) -> Optional[uuid.UUID]:
    if not raw:
        return None
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user identity.",
        )


async def get_optional_viewer_id(
    x_user_id: Optional[str] = Header(None),
) -> Optional[uuid.UUID]:
    return _parse_viewer_id(x_user_id)


async def get_viewer_id(
    x_user_id: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> uuid.UUID:
    """Require an authenticated viewer and refresh their activity stamp."""
    viewer_id = _parse_viewer_id(x_user_id)
    if viewer_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    await _profile_service.touch_last_active(viewer_id, db)
    return viewer_id


def http_error_from(exc: Exception) -> HTTPException:
    """Translate a service-layer exception into an ``HTTPException``."""
    if isinstance(exc, LookupError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, PermissionError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
