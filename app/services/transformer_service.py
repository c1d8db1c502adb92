"""
Kindred — Profile -> view-model transformations.

Maps persisted ``profiles`` rows (ORM objects or plain mappings) into the
viewer-specific ``PeerMatch`` cards, messaging-context ``ChatPeer``
summaries, chat transcripts, and support-request listings.

Every raw row is validated through :class:`ProfileRecord` first, and all
fallback values (display name, avatar glyph, rating, ...) come from an
injected :class:`TransformerDefaults` rather than inline literals.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Optional

import structlog

from app.config import Settings, get_settings
from app.schemas.peer import (
    ChatMessageView,
    ChatPeer,
    PeerMatch,
    PeerSummary,
    SupportRequestView,
)
from app.schemas.profile import ProfileRecord
from app.services.scoring_service import MatchScorer

logger = structlog.get_logger("kindred.transformer_service")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _field(row: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a mapping or an object."""
    if row is None:
        return default
    if isinstance(row, Mapping):
        return row.get(name, default)
    return getattr(row, name, default)


def _str_or_none(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass(frozen=True)
class TransformerDefaults:
    """Fallback values used when a profile field is missing."""

    display_name: str = "Anonymous User"
    avatar: str = "👤"
    rating: float = 4.5
    location: str = "Unknown"
    chat_support_type: str = "support-giver"
    peer_label: str = "Peer"
    active_window: timedelta = timedelta(hours=1)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "TransformerDefaults":
        settings = settings or get_settings()
        return cls(
            display_name=settings.DEFAULT_DISPLAY_NAME,
            avatar=settings.DEFAULT_AVATAR,
            rating=settings.DEFAULT_RATING,
            location=settings.DEFAULT_LOCATION,
            chat_support_type=settings.DEFAULT_CHAT_SUPPORT_TYPE,
            peer_label=settings.DEFAULT_PEER_LABEL,
            active_window=timedelta(seconds=settings.ACTIVE_WINDOW_SECONDS),
        )


class PeerTransformer:
    """Build viewer-relative view-models from raw profile rows."""

    def __init__(
        self,
        scorer: MatchScorer | None = None,
        defaults: TransformerDefaults | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.scorer = scorer or MatchScorer()
        self.defaults = defaults or TransformerDefaults()
        self.clock = clock

    # ── Boundary validation ──────────────────────────────────────────────

    @staticmethod
    def as_record(raw: Any) -> Optional[ProfileRecord]:
        """Validate ``raw`` (ORM row, mapping or record) into a
        :class:`ProfileRecord`; ``None`` passes through."""
        if raw is None or isinstance(raw, ProfileRecord):
            return raw
        if isinstance(raw, Mapping):
            return ProfileRecord.model_validate(dict(raw))
        return ProfileRecord.model_validate(raw, from_attributes=True)

    def is_active(self, last_active_at: Optional[datetime]) -> bool:
        """True when the last activity is within the active window."""
        if last_active_at is None:
            return False
        if last_active_at.tzinfo is None:
            last_active_at = last_active_at.replace(tzinfo=timezone.utc)
        return (self.clock() - last_active_at) < self.defaults.active_window

    # ── Peer cards ───────────────────────────────────────────────────────

    def to_peer_match(self, raw: Any, viewer: Any = None) -> PeerMatch:
        """Build the card for candidate ``raw`` as seen by ``viewer``.

        ``viewer`` may be ``None`` (base score); ``raw`` may not.
        """
        record = self.as_record(raw)
        if record is None:
            raise ValueError("A candidate profile row is required")
        viewer_record = self.as_record(viewer)
        d = self.defaults

        return PeerMatch(
            id=record.id,
            name=record.name or d.display_name,
            avatar=record.avatar_url or d.avatar,
            match_score=self.scorer.score(viewer_record, record),
            support_preferences=list(record.support_preferences),
            support_type=record.support_type or "",
            location=record.location or d.location,
            is_active=self.is_active(record.last_active_at),
            rating=record.rating if record.rating is not None else d.rating,
            total_ratings=record.total_ratings or 0,
            certified_mentor=bool(record.certified_mentor),
            people_supported=record.people_supported or 0,
            journey_note=record.journey_note or None,
        )

    def to_peer_matches(
        self, raws: Iterable[Any], viewer: Any = None
    ) -> list[PeerMatch]:
        """Transform a batch and order it by ``match_score`` descending.

        ``sorted`` is stable, so equal scores keep their input order.
        """
        viewer_record = self.as_record(viewer)
        peers = [self.to_peer_match(raw, viewer_record) for raw in raws]
        ranked = sorted(peers, key=lambda p: p.match_score, reverse=True)

        logger.debug(
            "peer_matches_transformed",
            count=len(ranked),
            has_viewer=viewer_record is not None,
        )
        return ranked

    # ── Messaging context ────────────────────────────────────────────────

    def to_chat_peer(self, raw: Any) -> Optional[ChatPeer]:
        record = self.as_record(raw)
        if record is None:
            return None
        d = self.defaults

        return ChatPeer(
            id=record.id,
            name=record.name or d.display_name,
            avatar=record.avatar_url or d.avatar,
            support_type=record.support_type or d.chat_support_type,
            experience_areas=list(record.support_preferences),
            location=record.location or d.location,
            is_active=self.is_active(record.last_active_at),
        )

    def format_chat_messages(
        self,
        messages: Optional[Iterable[Any]],
        viewer_id: Any,
        peer: Any = None,
    ) -> list[ChatMessageView]:
        """Label each message's sender as ``"you"`` or the peer's name."""
        if not messages:
            return []

        viewer_id = str(viewer_id)
        peer_name = _field(peer, "name") or self.defaults.peer_label

        formatted: list[ChatMessageView] = []
        for msg in messages:
            sender_id = str(_field(msg, "sender_id"))
            formatted.append(
                ChatMessageView(
                    id=str(_field(msg, "id")),
                    sender="you" if sender_id == viewer_id else peer_name,
                    message=_field(msg, "message", ""),
                    timestamp=_field(msg, "created_at"),
                    is_anonymous=bool(_field(msg, "is_anonymous", False)),
                    sender_id=sender_id,
                    receiver_id=str(_field(msg, "receiver_id")),
                )
            )
        return formatted

    # ── Support requests ─────────────────────────────────────────────────

    def format_support_requests(
        self,
        requests: Optional[Iterable[Any]],
        viewer_id: Any,
    ) -> list[SupportRequestView]:
        """Shape support-request rows for the requests panel.

        Handles both joined rows (``sender`` / ``receiver`` relations) and
        flattened view rows (``sender_name``, ``receiver_name``, ...).
        """
        if not requests:
            return []

        viewer_id = _str_or_none(viewer_id)
        formatted: list[SupportRequestView] = []
        for req in requests:
            sender_id = str(_field(req, "sender_id"))

            sender = _field(req, "sender")
            if sender is not None:
                sender_summary = PeerSummary(
                    name=_field(sender, "name"),
                    avatar_url=_field(sender, "avatar_url"),
                    support_preferences=_field(sender, "support_preferences") or [],
                    location=_field(sender, "location"),
                    journey_note=_field(sender, "journey_note"),
                )
            else:
                sender_summary = PeerSummary(
                    name=_field(req, "sender_name"),
                    avatar_url=_field(req, "sender_avatar_url"),
                    support_preferences=_field(req, "sender_support_preferences") or [],
                    location=_field(req, "sender_location"),
                    journey_note=_field(req, "sender_journey_note"),
                )

            receiver = _field(req, "receiver")
            receiver_name = (
                _field(receiver, "name")
                if receiver is not None
                else _field(req, "receiver_name")
            )

            formatted.append(
                SupportRequestView(
                    id=str(_field(req, "id")),
                    created_at=_field(req, "created_at"),
                    sender_id=sender_id,
                    receiver_id=str(_field(req, "receiver_id")),
                    message=_field(req, "message", ""),
                    status=_field(req, "status", "pending"),
                    is_anonymous=bool(_field(req, "is_anonymous", False)),
                    sender=sender_summary,
                    is_sender=sender_id == viewer_id,
                    receiver_name=receiver_name or None,
                )
            )
        return formatted
