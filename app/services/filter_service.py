"""
Kindred — Peer list filtering and ordering.

Filters compose as:
  1. active only        (applied only when ``active_only is True``)
  2. support type       (exact match)
  3. journey overlap    (at least one tag in common, i.e. OR semantics)

Both operations return new lists and never mutate their input.
"""

from __future__ import annotations

from typing import Optional, Sequence

import structlog

from app.schemas.peer import SORT_STRATEGIES, PeerFilters, PeerMatch
from app.services.preferences import normalize_preferences

logger = structlog.get_logger("kindred.filter_service")


def filter_peers(
    peers: Sequence[PeerMatch],
    filters: Optional[PeerFilters],
) -> list[PeerMatch]:
    result = list(peers)
    if filters is None:
        return result

    if filters.active_only is True:
        result = [p for p in result if p.is_active is True]

    if filters.support_type:
        result = [p for p in result if p.support_type == filters.support_type]

    wanted = set(normalize_preferences(filters.support_preferences))
    if wanted:
        result = [
            p for p in result
            if wanted.intersection(normalize_preferences(p.support_preferences))
        ]

    logger.debug(
        "peers_filtered",
        before=len(peers),
        after=len(result),
        active_only=filters.active_only,
        support_type=filters.support_type,
        preference_count=len(wanted),
    )
    return result


def sort_peers(
    peers: Sequence[PeerMatch],
    sort_by: Optional[str] = "match",
) -> list[PeerMatch]:
    """Order ``peers`` by the named strategy.

    ``rating`` / ``peopleSupported`` sort descending on that field,
    ``availability`` puts active peers first and then orders by score, and
    ``match`` (also the fallback for unknown values) orders by score.
    """
    if sort_by and sort_by not in SORT_STRATEGIES:
        logger.debug("unknown_sort_strategy", sort_by=sort_by, fallback="match")

    if sort_by == "rating":
        return sorted(peers, key=lambda p: p.rating, reverse=True)

    if sort_by == "peopleSupported":
        return sorted(peers, key=lambda p: p.people_supported or 0, reverse=True)

    if sort_by == "availability":
        return sorted(peers, key=lambda p: (not p.is_active, -p.match_score))

    return sorted(peers, key=lambda p: p.match_score, reverse=True)
