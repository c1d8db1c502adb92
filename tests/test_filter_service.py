"""Unit tests for peer filtering and sort strategies."""
import pytest

from app.schemas.peer import SORT_STRATEGIES, PeerFilters
from app.services.filter_service import filter_peers, sort_peers


@pytest.fixture
def peers(make_peer):
    return [
        make_peer(id="a", match_score=70, is_active=True, rating=4.1, people_supported=3,
                  support_preferences=["Anxiety"], support_type="support-giver"),
        make_peer(id="b", match_score=90, is_active=False, rating=4.9, people_supported=10,
                  support_preferences=["Career Change"], support_type="support-giver"),
        make_peer(id="c", match_score=60, is_active=True, rating=3.5, people_supported=0,
                  support_preferences=["grief", "anxiety"], support_type="support-seeker"),
        make_peer(id="d", match_score=80, is_active=False, rating=4.5, people_supported=7,
                  support_preferences=[], support_type="support-giver"),
    ]


def ids(peers):
    return [p.id for p in peers]


class TestFilterPeers:

    def test_no_filters_returns_copy(self, peers):
        out = filter_peers(peers, None)
        assert out == peers
        assert out is not peers

    def test_active_only_is_order_preserving_subsequence(self, peers):
        out = filter_peers(peers, PeerFilters(active_only=True))
        assert ids(out) == ["a", "c"]

    def test_active_only_false_does_not_filter(self, peers):
        assert ids(filter_peers(peers, PeerFilters(active_only=False))) == ["a", "b", "c", "d"]

    def test_support_type_exact(self, peers):
        out = filter_peers(peers, PeerFilters(support_type="support-seeker"))
        assert ids(out) == ["c"]

    def test_preferences_or_semantics_case_insensitive(self, peers):
        out = filter_peers(
            peers, PeerFilters(support_preferences=("ANXIETY ", "career change"))
        )
        assert ids(out) == ["a", "b", "c"]

    def test_non_string_criteria_tags_are_dropped(self, peers):
        criteria = PeerFilters(support_preferences=["anxiety", 7, None, {"tag": "grief"}])
        assert criteria.support_preferences == ("anxiety",)
        assert ids(filter_peers(peers, criteria)) == ["a", "c"]

    def test_only_malformed_criteria_tags_means_no_tag_filter(self, peers):
        criteria = PeerFilters(support_preferences=[3, None])
        assert criteria.support_preferences == ()
        assert ids(filter_peers(peers, criteria)) == ["a", "b", "c", "d"]

    def test_none_criteria_tags(self):
        assert PeerFilters(support_preferences=None).support_preferences == ()

    def test_filters_compose(self, peers):
        out = filter_peers(
            peers,
            PeerFilters(
                active_only=True,
                support_type="support-giver",
                support_preferences=("anxiety",),
            ),
        )
        assert ids(out) == ["a"]

    def test_input_not_mutated(self, peers):
        before = list(peers)
        filter_peers(peers, PeerFilters(active_only=True, support_type="support-giver"))
        assert peers == before


class TestSortPeers:

    def test_match_default(self, peers):
        assert ids(sort_peers(peers)) == ["b", "d", "a", "c"]

    def test_rating_non_increasing(self, peers):
        out = sort_peers(peers, "rating")
        ratings = [p.rating for p in out]
        assert ratings == sorted(ratings, reverse=True)
        assert ids(out) == ["b", "d", "a", "c"]

    def test_people_supported(self, peers):
        assert ids(sort_peers(peers, "peopleSupported")) == ["b", "d", "a", "c"]

    def test_availability_active_first_then_score(self, peers):
        assert ids(sort_peers(peers, "availability")) == ["a", "c", "b", "d"]

    @pytest.mark.parametrize("strategy", ["bogus", None, ""])
    def test_unknown_strategy_falls_back_to_match(self, peers, strategy):
        assert ids(sort_peers(peers, strategy)) == ["b", "d", "a", "c"]

    @pytest.mark.parametrize("strategy", SORT_STRATEGIES)
    def test_every_named_strategy_is_a_permutation(self, peers, strategy):
        assert sorted(ids(sort_peers(peers, strategy))) == ["a", "b", "c", "d"]

    def test_stable_on_ties(self, make_peer):
        tied = [make_peer(id=str(i), match_score=50) for i in range(5)]
        assert ids(sort_peers(tied, "match")) == ["0", "1", "2", "3", "4"]

    def test_input_not_mutated(self, peers):
        before = ids(peers)
        sort_peers(peers, "rating")
        assert ids(peers) == before
