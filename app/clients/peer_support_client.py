"""
Kindred — HTTP client for the peer-support API.

Implements the two collaborators the matching orchestrator depends on
(``get_profile`` and ``list_peers``) against a running Kindred backend, so
a front end or a script can drive :class:`PeerMatchingService` remotely::

    async with PeerSupportClient(viewer_id) as client:
        matching = PeerMatchingService(client, client)
        matching.start(viewer_id)
        peers = await matching.fetch_peers()
"""

from __future__ import annotations

import json
from typing import Optional

import httpx
import structlog

from app.config import get_settings
from app.schemas.peer import PeerFilters, PeerMatch
from app.schemas.profile import ProfileRecord

logger = structlog.get_logger("kindred.clients.peer_support")

VIEWER_HEADER = "X-User-Id"


class PeerSupportClientError(RuntimeError):
    """Raised when the peer-support API answers with a non-2xx status or
    cannot be reached."""


class PeerSupportClient:
    def __init__(
        self,
        viewer_id: str,
        base_url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = get_settings()
        self.viewer_id = str(viewer_id)
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=base_url or settings.PEER_SUPPORT_BASE_URL,
            timeout=timeout or settings.PEER_SUPPORT_TIMEOUT_SECONDS,
        )

    async def __aenter__(self) -> "PeerSupportClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    @property
    def _headers(self) -> dict[str, str]:
        return {VIEWER_HEADER: self.viewer_id}

    # ── Collaborator API ─────────────────────────────────────────────────

    async def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        """Fetch the viewer's own profile; ``None`` when it does not exist."""
        try:
            response = await self._http.get(
                "/profile", headers={VIEWER_HEADER: str(user_id)}
            )
        except httpx.HTTPError as exc:
            raise PeerSupportClientError(f"Failed to fetch profile: {exc}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        if response.is_error:
            logger.warning(
                "profile_fetch_failed",
                user_id=str(user_id),
                status=response.status_code,
            )
            raise PeerSupportClientError("Failed to fetch profile")

        return ProfileRecord.model_validate(response.json())

    async def list_peers(self, query: PeerFilters) -> list[PeerMatch]:
        params: dict[str, str] = {}
        if query.support_type:
            params["supportType"] = query.support_type
        if query.support_preferences:
            params["supportPreferences"] = json.dumps(list(query.support_preferences))
        if query.active_only is not None:
            params["activeOnly"] = "true" if query.active_only else "false"

        try:
            response = await self._http.get(
                "/peer-support", params=params, headers=self._headers
            )
        except httpx.HTTPError as exc:
            raise PeerSupportClientError(f"Failed to fetch peers: {exc}") from exc

        if response.is_error:
            logger.warning(
                "peer_list_fetch_failed",
                viewer_id=self.viewer_id,
                status=response.status_code,
            )
            raise PeerSupportClientError("Failed to fetch peers")

        payload = response.json()
        peers = payload.get("peers") if isinstance(payload, dict) else None
        if not isinstance(peers, list):
            return []
        return [PeerMatch.model_validate(p) for p in peers]
