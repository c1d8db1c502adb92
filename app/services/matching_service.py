"""
Kindred — Peer matching orchestrator.

Drives a viewer's "find a peer" screen:

  1. Load the viewer's own profile once (failures are logged and treated as
     "no profile known").
  2. For each match request, derive default criteria from that profile:
       support type  -> the complement of the viewer's role
       journeys      -> the viewer's normalised preferences
     Explicit overrides supplied by the caller always win.
  3. Ask the peer-listing collaborator for candidates, then filter and sort
     them locally.

Overlapping ``fetch_peers`` calls are ordered by a sequence token: only the
most recent call may update ``peers`` / ``filtered_peers`` / ``error``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Protocol, Sequence

import structlog

from app.schemas.peer import PeerFilters, PeerMatch
from app.schemas.profile import ProfileRecord
from app.services.filter_service import filter_peers, sort_peers
from app.services.preferences import complement_support_type, normalize_preferences
from app.services.transformer_service import PeerTransformer

logger = structlog.get_logger("kindred.matching_service")


class ProfileReader(Protocol):
    async def get_profile(self, user_id: str) -> Any | None: ...


class PeerLister(Protocol):
    async def list_peers(self, query: PeerFilters) -> Sequence[Any]: ...


class PeerMatchingService:
    """Stateful per-viewer matching session.

    ``profile_reader`` and ``peer_lister`` are usually the same
    :class:`~app.clients.peer_support_client.PeerSupportClient`.
    """

    def __init__(
        self,
        profile_reader: ProfileReader,
        peer_lister: PeerLister,
        transformer: PeerTransformer | None = None,
    ) -> None:
        self.profile_reader = profile_reader
        self.peer_lister = peer_lister
        self.transformer = transformer or PeerTransformer()

        self.viewer_profile: Optional[ProfileRecord] = None
        self.is_profile_loaded: bool = False
        self.peers: list[PeerMatch] = []
        self.filtered_peers: list[PeerMatch] = []
        self.is_loading: bool = False
        self.error: Optional[str] = None

        self._profile_task: Optional[asyncio.Task] = None
        self._sequence: int = 0

    # ── Viewer profile ───────────────────────────────────────────────────

    def start(self, viewer_id: str) -> asyncio.Task:
        """Schedule the one-off viewer profile load on the running loop."""
        if self._profile_task is None:
            self._profile_task = asyncio.create_task(
                self.load_viewer_profile(viewer_id)
            )
        return self._profile_task

    async def load_viewer_profile(self, viewer_id: str) -> Optional[ProfileRecord]:
        log = logger.bind(viewer_id=viewer_id)
        try:
            raw = await self.profile_reader.get_profile(viewer_id)
            if raw is not None:
                self.viewer_profile = self.transformer.as_record(raw)
                log.info(
                    "viewer_profile_loaded",
                    support_type=self.viewer_profile.support_type,
                    preference_count=len(self.viewer_profile.support_preferences),
                )
            else:
                log.info("viewer_profile_not_found")
        except Exception:
            log.exception("viewer_profile_load_failed")
        finally:
            self.is_profile_loaded = True
        return self.viewer_profile

    async def wait_for_profile(self) -> None:
        if self._profile_task is not None and not self._profile_task.done():
            await self._profile_task

    # ── Query derivation ─────────────────────────────────────────────────

    @staticmethod
    def _needs_viewer_defaults(overrides: Optional[PeerFilters]) -> bool:
        if overrides is None:
            return True
        return not overrides.support_type or not overrides.support_preferences

    def build_query(self, overrides: Optional[PeerFilters] = None) -> PeerFilters:
        """Merge caller overrides with defaults derived from the viewer."""
        overrides = overrides or PeerFilters()
        viewer = self.viewer_profile

        if overrides.support_type:
            support_type = overrides.support_type
        elif viewer is not None:
            support_type = complement_support_type(viewer.support_type)
        else:
            support_type = None

        if overrides.support_preferences:
            preferences = normalize_preferences(overrides.support_preferences)
        elif viewer is not None:
            preferences = normalize_preferences(viewer.support_preferences)
        else:
            preferences = []

        return PeerFilters(
            support_type=support_type,
            support_preferences=tuple(preferences),
            active_only=overrides.active_only,
            sort_by=overrides.sort_by,
        )

    # ── Fetch ────────────────────────────────────────────────────────────

    async def fetch_peers(
        self, overrides: Optional[PeerFilters] = None
    ) -> list[PeerMatch]:
        """Fetch, filter and sort candidate peers.

        Upstream failures are recorded in ``error`` and the previously
        loaded lists are left in place.  Returns the current
        ``filtered_peers``.
        """
        self._sequence += 1
        token = self._sequence
        self.is_loading = True
        self.error = None

        log = logger.bind(fetch_token=token)

        try:
            if self._needs_viewer_defaults(overrides):
                await self.wait_for_profile()
            query = self.build_query(overrides)
            log.info(
                "fetch_peers_start",
                support_type=query.support_type,
                preferences=list(query.support_preferences),
                active_only=query.active_only,
                sort_by=query.sort_by,
            )
            items = await self.peer_lister.list_peers(query)
            peers = [self._as_peer_match(item) for item in items]
        except Exception as exc:
            if token == self._sequence:
                self.error = str(exc) or "An error occurred"
                self.is_loading = False
            log.warning("fetch_peers_failed", error=str(exc))
            return self.filtered_peers

        if token != self._sequence:
            log.info("fetch_peers_stale_response_discarded", latest=self._sequence)
            return self.filtered_peers

        self.peers = peers
        self.filtered_peers = sort_peers(filter_peers(peers, query), query.sort_by)
        self.is_loading = False

        log.info(
            "fetch_peers_complete",
            fetched=len(self.peers),
            shown=len(self.filtered_peers),
        )
        return self.filtered_peers

    def _as_peer_match(self, item: Any) -> PeerMatch:
        """Accept ready-made peer cards or raw profile rows."""
        if isinstance(item, PeerMatch):
            return item
        return self.transformer.to_peer_match(item, self.viewer_profile)
