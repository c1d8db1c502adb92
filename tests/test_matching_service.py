"""Tests for PeerMatchingService — query derivation, error handling and
ordering of overlapping fetches."""
import asyncio
from unittest.mock import AsyncMock

import pytest

from app.schemas.peer import PeerFilters
from app.services.matching_service import PeerMatchingService


@pytest.fixture
def profile_reader(make_profile):
    reader = AsyncMock()
    reader.get_profile.return_value = make_profile(
        id="viewer",
        support_type="support-seeker",
        support_preferences=[" Anxiety", "Stress"],
        location="NY",
        availability="evening",
    )
    return reader


@pytest.fixture
def peer_lister():
    lister = AsyncMock()
    lister.list_peers.return_value = []
    return lister


@pytest.fixture
def service(profile_reader, peer_lister, transformer):
    return PeerMatchingService(profile_reader, peer_lister, transformer)


def sent_query(peer_lister) -> PeerFilters:
    return peer_lister.list_peers.await_args.args[0]


class TestViewerProfile:

    @pytest.mark.asyncio
    async def test_load_sets_flags(self, service):
        await service.start("viewer")
        assert service.is_profile_loaded is True
        assert service.viewer_profile.support_type == "support-seeker"

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, service, profile_reader):
        first = service.start("viewer")
        second = service.start("viewer")
        assert first is second
        await first
        profile_reader.get_profile.assert_awaited_once_with("viewer")

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self, service, profile_reader):
        profile_reader.get_profile.side_effect = RuntimeError("db down")
        result = await service.load_viewer_profile("viewer")
        assert result is None
        assert service.viewer_profile is None
        assert service.is_profile_loaded is True
        assert service.error is None

    @pytest.mark.asyncio
    async def test_missing_profile(self, service, profile_reader):
        profile_reader.get_profile.return_value = None
        await service.load_viewer_profile("viewer")
        assert service.viewer_profile is None
        assert service.is_profile_loaded is True


class TestQueryDerivation:

    @pytest.mark.asyncio
    async def test_defaults_from_viewer(self, service, peer_lister):
        service.start("viewer")
        await service.fetch_peers()

        query = sent_query(peer_lister)
        assert query.support_type == "support-giver"
        assert query.support_preferences == ("anxiety", "stress")

    @pytest.mark.asyncio
    async def test_giver_viewer_gets_seekers(self, service, profile_reader, peer_lister, make_profile):
        profile_reader.get_profile.return_value = make_profile(
            support_type="support-giver", support_preferences=[]
        )
        service.start("viewer")
        await service.fetch_peers()
        assert sent_query(peer_lister).support_type == "support-seeker"
        assert sent_query(peer_lister).support_preferences == ()

    @pytest.mark.asyncio
    async def test_overrides_win(self, service, peer_lister):
        service.start("viewer")
        await service.fetch_peers(
            PeerFilters(
                support_type="support-seeker",
                support_preferences=("Grief",),
                active_only=True,
                sort_by="rating",
            )
        )
        query = sent_query(peer_lister)
        assert query.support_type == "support-seeker"
        assert query.support_preferences == ("grief",)
        assert query.active_only is True
        assert query.sort_by == "rating"

    @pytest.mark.asyncio
    async def test_malformed_override_tags_dropped(self, service, peer_lister):
        service.start("viewer")
        await service.fetch_peers(
            PeerFilters(support_type="support-seeker", support_preferences=["Grief", 5, None])
        )
        assert sent_query(peer_lister).support_preferences == ("grief",)

    @pytest.mark.asyncio
    async def test_partial_override_fills_from_viewer(self, service, peer_lister):
        service.start("viewer")
        await service.fetch_peers(PeerFilters(support_type="support-seeker"))
        query = sent_query(peer_lister)
        assert query.support_type == "support-seeker"
        assert query.support_preferences == ("anxiety", "stress")

    @pytest.mark.asyncio
    async def test_no_viewer_profile_means_no_defaults(self, service, profile_reader, peer_lister):
        profile_reader.get_profile.side_effect = RuntimeError("boom")
        service.start("viewer")
        await service.fetch_peers()
        query = sent_query(peer_lister)
        assert query.support_type is None
        assert query.support_preferences == ()

    @pytest.mark.asyncio
    async def test_explicit_filters_do_not_wait_for_profile(self, service, profile_reader, peer_lister):
        never = asyncio.Event()

        async def slow_profile(_user_id):
            await never.wait()

        profile_reader.get_profile.side_effect = slow_profile
        task = service.start("viewer")

        await service.fetch_peers(
            PeerFilters(support_type="support-giver", support_preferences=("grief",))
        )
        assert peer_lister.list_peers.await_count == 1
        assert service.is_profile_loaded is False

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


class TestFetchPeers:

    @pytest.mark.asyncio
    async def test_filters_and_sorts_locally(self, service, peer_lister, make_peer):
        peer_lister.list_peers.return_value = [
            make_peer(id="low", match_score=60, support_preferences=["Anxiety"]),
            make_peer(id="off", match_score=99, support_preferences=["Career"]),
            make_peer(id="high", match_score=90, support_preferences=["stress"]),
            make_peer(id="seeker", match_score=95, support_type="support-seeker",
                      support_preferences=["anxiety"]),
        ]
        service.start("viewer")
        result = await service.fetch_peers()

        assert [p.id for p in result] == ["high", "low"]
        assert len(service.peers) == 4
        assert service.is_loading is False
        assert service.error is None

    @pytest.mark.asyncio
    async def test_raw_rows_are_scored_against_viewer(self, service, peer_lister, make_profile):
        peer_lister.list_peers.return_value = [
            make_profile(id="p1", support_preferences=["anxiety"], location="NY",
                         availability="evening"),
        ]
        service.start("viewer")
        [peer] = await service.fetch_peers()
        assert peer.id == "p1"
        assert peer.match_score == 85

    @pytest.mark.asyncio
    async def test_error_keeps_previous_results(self, service, peer_lister, make_peer):
        peer_lister.list_peers.return_value = [
            make_peer(id="kept", support_preferences=["anxiety"]),
        ]
        service.start("viewer")
        await service.fetch_peers()

        peer_lister.list_peers.side_effect = RuntimeError("Failed to fetch peers")
        result = await service.fetch_peers()

        assert service.error == "Failed to fetch peers"
        assert service.is_loading is False
        assert [p.id for p in result] == ["kept"]
        assert [p.id for p in service.filtered_peers] == ["kept"]

    @pytest.mark.asyncio
    async def test_error_cleared_on_next_success(self, service, peer_lister):
        service.start("viewer")
        peer_lister.list_peers.side_effect = RuntimeError("boom")
        await service.fetch_peers()
        assert service.error == "boom"

        peer_lister.list_peers.side_effect = None
        peer_lister.list_peers.return_value = []
        await service.fetch_peers()
        assert service.error is None


class TestOverlappingFetches:

    @staticmethod
    def _overrides(sort_by=None):
        return PeerFilters(
            support_type="support-giver",
            support_preferences=("anxiety",),
            sort_by=sort_by,
        )

    @pytest.mark.asyncio
    async def test_only_latest_result_applies(self, service, peer_lister, make_peer):
        started = asyncio.Event()
        release = asyncio.Event()
        stale = make_peer(id="stale", support_preferences=["anxiety"])
        fresh = make_peer(id="fresh", support_preferences=["anxiety"])

        async def list_peers(query):
            if query.sort_by == "rating":
                started.set()
                await release.wait()
                return [stale]
            return [fresh]

        peer_lister.list_peers.side_effect = list_peers

        first = asyncio.create_task(service.fetch_peers(self._overrides("rating")))
        await started.wait()
        await service.fetch_peers(self._overrides())
        assert [p.id for p in service.filtered_peers] == ["fresh"]

        release.set()
        await first

        assert [p.id for p in service.filtered_peers] == ["fresh"]
        assert [p.id for p in service.peers] == ["fresh"]
        assert service.is_loading is False

    @pytest.mark.asyncio
    async def test_stale_error_is_ignored(self, service, peer_lister, make_peer):
        started = asyncio.Event()
        release = asyncio.Event()
        fresh = make_peer(id="fresh", support_preferences=["anxiety"])

        async def list_peers(query):
            if query.sort_by == "rating":
                started.set()
                await release.wait()
                raise RuntimeError("late failure")
            return [fresh]

        peer_lister.list_peers.side_effect = list_peers

        first = asyncio.create_task(service.fetch_peers(self._overrides("rating")))
        await started.wait()
        await service.fetch_peers(self._overrides())

        release.set()
        await first

        assert service.error is None
        assert [p.id for p in service.filtered_peers] == ["fresh"]
