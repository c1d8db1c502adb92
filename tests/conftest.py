"""Shared pytest fixtures for Kindred tests."""
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.schemas.peer import PeerMatch
from app.services.transformer_service import PeerTransformer, TransformerDefaults

FIXED_NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def transformer():
    """Transformer with a frozen clock so activity checks are deterministic."""
    return PeerTransformer(defaults=TransformerDefaults(), clock=lambda: FIXED_NOW)


@pytest.fixture
def viewer_id():
    return uuid.uuid4()


@pytest.fixture
def peer_id():
    return uuid.uuid4()


@pytest.fixture
def make_profile():
    """Factory for raw ``profiles`` rows as plain dicts."""

    def _make(**overrides):
        row = {
            "id": str(uuid.uuid4()),
            "name": "Sarah Johnson",
            "avatar_url": None,
            "location": "New York",
            "availability": "evening",
            "support_type": "support-giver",
            "support_preferences": ["Anxiety", "Career Change"],
            "last_active_at": FIXED_NOW - timedelta(minutes=10),
            "rating": 4.8,
            "total_ratings": 24,
            "certified_mentor": True,
            "people_supported": 42,
            "journey_note": "Overcame anxiety through mindfulness.",
        }
        row.update(overrides)
        return row

    return _make


@pytest.fixture
def make_peer():
    """Factory for ready-made ``PeerMatch`` cards."""

    def _make(**overrides):
        data = {
            "id": str(uuid.uuid4()),
            "name": "Peer",
            "avatar": "👤",
            "match_score": 50,
            "support_preferences": [],
            "support_type": "support-giver",
            "location": "Unknown",
            "is_active": False,
            "rating": 4.5,
            "total_ratings": 0,
            "certified_mentor": False,
            "people_supported": 0,
        }
        data.update(overrides)
        return PeerMatch(**data)

    return _make


def _result_of(scalar=None, scalars=None):
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    rows = list(scalars or [])
    result.scalars.return_value.all.return_value = rows
    result.scalars.return_value.first.return_value = rows[0] if rows else None
    result.all.return_value = rows
    return result


@pytest.fixture
def db_session():
    """An ``AsyncSession`` stand-in; tests set ``execute.side_effect``."""
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def result_of():
    """Build a mock of SQLAlchemy's ``Result`` for ``session.execute``."""
    return _result_of
