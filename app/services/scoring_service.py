"""
Kindred — Peer compatibility scorer.

Additive heuristic between the viewer's profile and a candidate peer:

  score = 50
        + 10 x shared journey tags (at most 3 counted, i.e. +30)
        + 15 if both locations are set and identical
        + 10 if both availability slots are set and identical

capped at 100.  A missing profile on either side yields the base score.
"""

from __future__ import annotations

from typing import Optional

import structlog

from app.schemas.profile import ProfileRecord
from app.services.preferences import normalize_preferences

logger = structlog.get_logger("kindred.scoring_service")


class MatchScorer:
    """Rule-based compatibility score in ``[0, 100]``.

    Stateless; a single instance is shared by the transformer and the
    peer directory.
    """

    BASE_SCORE: int = 50
    PREFERENCE_BONUS: int = 10
    PREFERENCE_BONUS_CAP: int = 30
    LOCATION_BONUS: int = 15
    AVAILABILITY_BONUS: int = 10
    MAX_SCORE: int = 100

    def score(
        self,
        viewer: Optional[ProfileRecord],
        candidate: Optional[ProfileRecord],
    ) -> int:
        """Score ``candidate`` from the ``viewer``'s point of view.

        The formula only looks at set intersection and equality, so
        ``score(a, b) == score(b, a)``.
        """
        if viewer is None or candidate is None:
            return self.BASE_SCORE

        shared = self._shared_preferences(
            viewer.support_preferences, candidate.support_preferences
        )
        preference_points = min(
            len(shared) * self.PREFERENCE_BONUS, self.PREFERENCE_BONUS_CAP
        )

        location_points = (
            self.LOCATION_BONUS
            if self._both_set_and_equal(viewer.location, candidate.location)
            else 0
        )
        availability_points = (
            self.AVAILABILITY_BONUS
            if self._both_set_and_equal(viewer.availability, candidate.availability)
            else 0
        )

        total = self.BASE_SCORE + preference_points + location_points + availability_points
        result = min(round(total), self.MAX_SCORE)

        logger.debug(
            "match_score_calculated",
            viewer_id=viewer.id,
            candidate_id=candidate.id,
            shared_preferences=shared,
            preference_points=preference_points,
            location_points=location_points,
            availability_points=availability_points,
            score=result,
        )
        return result

    # ── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _shared_preferences(
        viewer_prefs: list[str], candidate_prefs: list[str]
    ) -> list[str]:
        """Distinct normalised tags present on both sides, in the viewer's
        order."""
        candidate_set = set(normalize_preferences(candidate_prefs))
        shared: list[str] = []
        for pref in normalize_preferences(viewer_prefs):
            if pref in candidate_set and pref not in shared:
                shared.append(pref)
        return shared

    @staticmethod
    def _both_set_and_equal(a: Optional[str], b: Optional[str]) -> bool:
        return bool(a) and bool(b) and a == b
