"""HTTP-level tests for the peer-support, profile and mindfulness routers.

The database dependency is replaced with a mocked session; the lifespan
(pool warm-up) is not run because the client is not used as a context
manager.
"""
import uuid
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.database import get_db
from app.main import InFlightTracker, app


@pytest.fixture
def client(db_session):
    async def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:

    def test_liveness(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"

    def test_request_id_generated(self, client):
        assert client.get("/health").headers["X-Request-ID"]


class TestIdentity:

    def test_missing_header_is_401(self, client):
        response = client.get("/api/v1/profile")
        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"

    def test_malformed_header_is_401(self, client):
        response = client.get("/api/v1/peer-support", headers={"X-User-Id": "nope"})
        assert response.status_code == 401


class TestPeerDirectory:

    def test_anonymous_listing_is_camel_case(self, client, db_session, result_of, make_profile):
        db_session.execute.side_effect = [
            result_of(scalars=[SimpleNamespace(**make_profile(id="p1"))]),
        ]

        response = client.get(
            "/api/v1/peer-support",
            params={"supportType": "give", "supportPreferences": '["anxiety"]'},
        )

        assert response.status_code == 200
        [peer] = response.json()["peers"]
        assert peer["id"] == "p1"
        assert peer["matchScore"] == 50
        assert peer["supportPreferences"] == ["Anxiety", "Career Change"]
        assert "peopleSupported" in peer


class TestChat:

    def test_message_to_unknown_receiver_is_404(self, client, db_session, result_of):
        db_session.execute.side_effect = [
            result_of(scalar=None),
            result_of(scalar=None),
        ]

        response = client.post(
            "/api/v1/peer-support/chats",
            headers={"X-User-Id": str(uuid.uuid4())},
            json={"receiver_id": str(uuid.uuid4()), "message": "hello"},
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Receiver not found"
        db_session.flush.assert_not_awaited()


class TestSupportRequests:

    def test_self_request_is_400(self, client, db_session, result_of):
        viewer = uuid.uuid4()
        db_session.execute.side_effect = [result_of(scalar=None)]

        response = client.post(
            "/api/v1/peer-support/requests",
            headers={"X-User-Id": str(viewer)},
            json={"receiver_id": str(viewer), "message": "hi"},
        )

        assert response.status_code == 400
        assert "yourself" in response.json()["detail"]

    def test_unknown_receiver_is_404(self, client, db_session, result_of):
        db_session.execute.side_effect = [
            result_of(scalar=None),
            result_of(scalar=None),
        ]

        response = client.post(
            "/api/v1/peer-support/requests",
            headers={"X-User-Id": str(uuid.uuid4())},
            json={"receiver_id": str(uuid.uuid4()), "message": "hi"},
        )

        assert response.status_code == 404

    def test_invalid_status_payload_is_422(self, client, db_session, result_of):
        db_session.execute.side_effect = [result_of(scalar=None)]
        response = client.patch(
            "/api/v1/peer-support/requests",
            headers={"X-User-Id": str(uuid.uuid4())},
            json={"id": str(uuid.uuid4()), "status": "completed"},
        )
        assert response.status_code == 422


class TestMindfulness:

    def test_first_activity_creates_streak(self, client, db_session, result_of):
        db_session.execute.side_effect = [result_of(scalar=None), result_of(scalar=None)]

        response = client.post(
            "/api/v1/mindfulness/streak",
            headers={"X-User-Id": str(uuid.uuid4())},
            json={"activityType": "breathing"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Streak created"
        assert body["streakIncremented"] is True
        assert body["data"]["mindfulness"] == 1

    def test_activity_type_required(self, client, db_session, result_of):
        db_session.execute.side_effect = [result_of(scalar=None)]
        response = client.post(
            "/api/v1/mindfulness/streak",
            headers={"X-User-Id": str(uuid.uuid4())},
            json={},
        )
        assert response.status_code == 422

    def test_streak_route_not_taken_for_an_entry_id(self, client, db_session, result_of):
        viewer = uuid.uuid4()
        db_session.execute.side_effect = [result_of(scalar=None), result_of(scalar=None)]

        response = client.get(
            "/api/v1/mindfulness/streak", headers={"X-User-Id": str(viewer)}
        )

        assert response.status_code == 200
        assert response.json() == {
            "userId": str(viewer),
            "mindfulness": 0,
            "lastUpdated": None,
            "lastMindfulnessDate": None,
        }

    def test_unknown_type_filter_is_400(self, client, db_session, result_of):
        db_session.execute.side_effect = [result_of(scalar=None)]
        response = client.get(
            "/api/v1/mindfulness",
            headers={"X-User-Id": str(uuid.uuid4())},
            params={"type": "dream"},
        )
        assert response.status_code == 400

    def test_delete_unknown_entry_is_404(self, client, db_session, result_of):
        db_session.execute.side_effect = [result_of(scalar=None), result_of(scalar=None)]
        response = client.delete(
            "/api/v1/mindfulness",
            headers={"X-User-Id": str(uuid.uuid4())},
            params={"id": str(uuid.uuid4())},
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Entry not found"


class TestInFlightTracker:

    @pytest.mark.asyncio
    async def test_drain_when_idle(self):
        assert await InFlightTracker().drain(timeout=0.01) is True

    @pytest.mark.asyncio
    async def test_drain_times_out_with_open_request(self):
        tracker = InFlightTracker()
        tracker.enter()
        assert await tracker.drain(timeout=0.01) is False
        tracker.leave()
        assert tracker.count == 0
        assert await tracker.drain(timeout=0.01) is True
