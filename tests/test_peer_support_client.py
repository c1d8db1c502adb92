"""Tests for PeerSupportClient using httpx's mock transport."""
import json

import httpx
import pytest

from app.clients.peer_support_client import PeerSupportClient, PeerSupportClientError
from app.schemas.peer import PeerFilters
from app.services.matching_service import PeerMatchingService

BASE_URL = "http://kindred.test/api/v1"

PEERS_PAYLOAD = {
    "peers": [
        {
            "id": "p1",
            "name": "Sarah Johnson",
            "avatar": "👤",
            "matchScore": 70,
            "supportPreferences": ["Anxiety"],
            "supportType": "support-giver",
            "location": "New York",
            "isActive": True,
            "rating": 4.8,
            "totalRatings": 24,
            "certifiedMentor": True,
            "peopleSupported": 42,
        },
        {
            "id": "p2",
            "name": "Tom",
            "avatar": "👤",
            "matchScore": 90,
            "supportPreferences": ["Career"],
            "supportType": "support-giver",
            "location": "Austin",
            "rating": 4.0,
        },
    ]
}

VIEWER_PAYLOAD = {
    "id": "viewer",
    "name": "Jamie",
    "supportType": "support-seeker",
    "supportPreferences": ["Anxiety"],
    "location": "Denver",
    "profileCompletionPercentage": 80,
}


def make_client(handler, viewer_id="viewer"):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    return PeerSupportClient(viewer_id, http_client=http), http


class TestGetProfile:

    @pytest.mark.asyncio
    async def test_parses_camel_case_profile(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["user"] = request.headers.get("X-User-Id")
            return httpx.Response(200, json=VIEWER_PAYLOAD)

        client, http = make_client(handler)
        async with http:
            record = await client.get_profile("viewer")

        assert seen == {"path": "/api/v1/profile", "user": "viewer"}
        assert record.support_type == "support-seeker"
        assert record.support_preferences == ["Anxiety"]

    @pytest.mark.asyncio
    async def test_not_found_is_none(self):
        client, http = make_client(lambda request: httpx.Response(404, json={"detail": "x"}))
        async with http:
            assert await client.get_profile("viewer") is None

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        client, http = make_client(lambda request: httpx.Response(500))
        async with http:
            with pytest.raises(PeerSupportClientError):
                await client.get_profile("viewer")


class TestListPeers:

    @pytest.mark.asyncio
    async def test_query_parameters(self):
        seen = {}

        def handler(request):
            seen.update(request.url.params)
            seen["user"] = request.headers.get("X-User-Id")
            return httpx.Response(200, json=PEERS_PAYLOAD)

        client, http = make_client(handler)
        async with http:
            peers = await client.list_peers(
                PeerFilters(
                    support_type="support-giver",
                    support_preferences=("anxiety", "stress"),
                    active_only=False,
                )
            )

        assert seen["supportType"] == "support-giver"
        assert json.loads(seen["supportPreferences"]) == ["anxiety", "stress"]
        assert seen["activeOnly"] == "false"
        assert seen["user"] == "viewer"
        assert [p.id for p in peers] == ["p1", "p2"]
        assert peers[0].match_score == 70
        assert peers[0].is_active is True

    @pytest.mark.asyncio
    async def test_empty_filters_send_no_params(self):
        seen = {}

        def handler(request):
            seen["query"] = request.url.query
            return httpx.Response(200, json={"peers": []})

        client, http = make_client(handler)
        async with http:
            assert await client.list_peers(PeerFilters()) == []
        assert seen["query"] == b""

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        client, http = make_client(lambda request: httpx.Response(503))
        async with http:
            with pytest.raises(PeerSupportClientError, match="Failed to fetch peers"):
                await client.list_peers(PeerFilters())

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client, http = make_client(handler)
        async with http:
            with pytest.raises(PeerSupportClientError):
                await client.list_peers(PeerFilters())


class TestDrivesMatchingService:

    @pytest.mark.asyncio
    async def test_end_to_end(self, transformer):
        def handler(request):
            if request.url.path.endswith("/profile"):
                return httpx.Response(200, json=VIEWER_PAYLOAD)
            return httpx.Response(200, json=PEERS_PAYLOAD)

        client, http = make_client(handler)
        async with http:
            matching = PeerMatchingService(client, client, transformer)
            matching.start("viewer")
            peers = await matching.fetch_peers()

        assert [p.id for p in peers] == ["p1"]
        assert matching.error is None

    @pytest.mark.asyncio
    async def test_upstream_failure_sets_error(self, transformer):
        def handler(request):
            if request.url.path.endswith("/profile"):
                return httpx.Response(404)
            return httpx.Response(500)

        client, http = make_client(handler)
        async with http:
            matching = PeerMatchingService(client, client, transformer)
            matching.start("viewer")
            peers = await matching.fetch_peers()

        assert peers == []
        assert matching.error == "Failed to fetch peers"
        assert matching.viewer_profile is None
