from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

SORT_STRATEGIES: tuple[str, ...] = ("match", "rating", "peopleSupported", "availability")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PeerMatch(_CamelModel):
    id: str
    name: str
    avatar: str
    match_score: int = Field(ge=0, le=100)
    support_preferences: list[str] = []
    support_type: str = ""
    location: str
    is_active: bool = False
    rating: float
    total_ratings: int = 0
    certified_mentor: bool = False
    people_supported: int = 0
    journey_note: Optional[str] = None


class PeerListResponse(BaseModel):
    peers: list[PeerMatch]


class ChatPeer(_CamelModel):
    id: str
    name: str
    avatar: str
    support_type: str
    experience_areas: list[str] = []
    location: str
    is_active: bool = False


class ChatMessageView(_CamelModel):
    id: str
    sender: str
    message: str
    timestamp: Optional[datetime] = None
    is_anonymous: bool = False
    sender_id: str
    receiver_id: str


class ConversationResponse(BaseModel):
    messages: list[ChatMessageView]
    peer: Optional[ChatPeer] = None


class PeerSummary(_CamelModel):
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    support_preferences: list[str] = []
    location: Optional[str] = None
    journey_note: Optional[str] = None


class SupportRequestView(_CamelModel):
    id: str
    created_at: Optional[datetime] = None
    sender_id: str
    receiver_id: str
    message: str
    status: str
    is_anonymous: bool = False
    sender: PeerSummary
    is_sender: bool
    receiver_name: Optional[str] = None


class PeerFilters(BaseModel):
    """Immutable, request-scoped filter criteria.

    ``active_only`` filters only when strictly ``True``; ``sort_by`` values
    outside :data:`SORT_STRATEGIES` fall back to match ordering.
    """

    model_config = ConfigDict(frozen=True)

    support_type: Optional[str] = None
    support_preferences: tuple[str, ...] = ()
    active_only: Optional[bool] = None
    sort_by: Optional[str] = None

    @field_validator("support_preferences", mode="before")
    @classmethod
    def _drop_malformed_preferences(cls, v: Any) -> Any:
        if v is None:
            return ()
        if isinstance(v, (list, tuple)):
            return tuple(p for p in v if isinstance(p, str))
        return v
