"""
Kindred — Peer directory (server-side peer listing).

Answers ``GET /peer-support``: loads candidate profiles for a viewer,
narrows them by support role and journeys, turns them into scored peer
cards, and applies the optional active-only filter and sort order.

Journey matching here is looser than the client-side filter:
a candidate is kept when any of its normalised tags contains, or is
contained in, any requested tag ("anxiety" matches "social anxiety").
"""

from __future__ import annotations

import json
import uuid
from typing import Any, Iterable, Optional, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile import Profile
from app.schemas.peer import PeerFilters, PeerMatch
from app.services.filter_service import filter_peers, sort_peers
from app.services.preferences import SUPPORT_GIVER, SUPPORT_SEEKER, normalize_preferences
from app.services.transformer_service import PeerTransformer

logger = structlog.get_logger("kindred.peer_directory_service")

# Query-string spellings accepted for each stored role
_SUPPORT_TYPE_ALIASES: dict[str, str] = {
    SUPPORT_GIVER: SUPPORT_GIVER,
    "give": SUPPORT_GIVER,
    SUPPORT_SEEKER: SUPPORT_SEEKER,
    "need": SUPPORT_SEEKER,
}


def resolve_support_type(value: Optional[str]) -> Optional[str]:
    """Map a ``supportType`` query value to its stored role, or ``None``."""
    if not value:
        return None
    return _SUPPORT_TYPE_ALIASES.get(value)


def parse_preferences_param(value: Optional[str]) -> list[str]:
    """Decode the JSON-encoded ``supportPreferences`` query value.

    Malformed JSON or a non-list payload is logged and treated as absent.
    """
    if not value:
        return []
    try:
        decoded = json.loads(value)
    except json.JSONDecodeError:
        logger.warning("support_preferences_param_invalid_json", value=value)
        return []
    if not isinstance(decoded, list):
        logger.warning("support_preferences_param_not_a_list", value=value)
        return []
    return normalize_preferences(decoded)


def parse_active_only_param(value: Optional[str]) -> Optional[bool]:
    if value is None or value == "":
        return None
    return value.lower() == "true"


def preferences_overlap(candidate_prefs: Iterable[Any], wanted: Sequence[str]) -> bool:
    """True when any candidate tag contains, or is contained in, a wanted tag."""
    for candidate in normalize_preferences(candidate_prefs):
        for pref in wanted:
            if pref in candidate or candidate in pref:
                return True
    return False


class PeerDirectoryService:
    """List peer cards for a viewer straight from the ``profiles`` table."""

    def __init__(self, transformer: PeerTransformer | None = None) -> None:
        self.transformer = transformer or PeerTransformer()

    def select_candidates(
        self,
        profiles: Sequence[Any],
        preferences: Sequence[str],
    ) -> list[Any]:
        """Keep profiles whose journeys overlap ``preferences``.

        With no requested preferences every profile is kept; profiles
        without any journeys are dropped once preferences are requested.
        """
        if not preferences:
            return list(profiles)
        return [
            p for p in profiles
            if isinstance(getattr(p, "support_preferences", None), list)
            and preferences_overlap(p.support_preferences, preferences)
        ]

    async def list_peers(
        self,
        viewer_id: Optional[uuid.UUID],
        filters: PeerFilters,
        db_session: AsyncSession,
    ) -> list[PeerMatch]:
        """Return scored, filtered and ordered peer cards for ``viewer_id``.

        ``filters.support_type`` must already be resolved to a stored role
        and ``filters.support_preferences`` already normalised.
        """
        log = logger.bind(viewer_id=str(viewer_id) if viewer_id else None)
        log.info(
            "list_peers_start",
            support_type=filters.support_type,
            preferences=list(filters.support_preferences),
            active_only=filters.active_only,
            sort_by=filters.sort_by,
        )

        viewer: Optional[Profile] = None
        stmt = select(Profile)
        if viewer_id is not None:
            viewer_result = await db_session.execute(
                select(Profile).where(Profile.id == viewer_id)
            )
            viewer = viewer_result.scalar_one_or_none()
            stmt = stmt.where(Profile.id != viewer_id)

        if filters.support_type:
            stmt = stmt.where(Profile.support_type == filters.support_type)

        result = await db_session.execute(stmt)
        profiles = list(result.scalars().all())

        candidates = self.select_candidates(profiles, filters.support_preferences)
        peers = self.transformer.to_peer_matches(candidates, viewer)

        if filters.active_only is not None:
            peers = filter_peers(peers, PeerFilters(active_only=filters.active_only))
        if filters.sort_by:
            peers = sort_peers(peers, filters.sort_by)

        log.info(
            "list_peers_complete",
            profiles_loaded=len(profiles),
            candidates=len(candidates),
            returned=len(peers),
            has_viewer_profile=viewer is not None,
        )
        return peers
