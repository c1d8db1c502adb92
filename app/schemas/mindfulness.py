from datetime import date, datetime
from typing import Any, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

EntryType = Literal["journal", "gratitude", "strength"]
ENTRY_TYPES: tuple[str, ...] = get_args(EntryType)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _string_tags(v: Any) -> Any:
    if v is None:
        return None
    if isinstance(v, (list, tuple)):
        return [t for t in v if isinstance(t, str)]
    return v


class MindfulnessEntryCreate(_CamelModel):
    type: EntryType
    content: str = Field(min_length=1)
    mood: Optional[str] = None
    category: Optional[str] = None
    is_private: bool = True
    tags: Optional[list[str]] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _drop_malformed_tags(cls, v: Any) -> Any:
        return _string_tags(v)


class MindfulnessEntryUpdate(_CamelModel):
    """Partial update; only fields present in the payload are written."""

    id: str
    type: Optional[EntryType] = None
    content: Optional[str] = Field(None, min_length=1)
    mood: Optional[str] = None
    category: Optional[str] = None
    is_private: Optional[bool] = None
    tags: Optional[list[str]] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _drop_malformed_tags(cls, v: Any) -> Any:
        return _string_tags(v)


class MindfulnessEntryView(_CamelModel):
    id: str
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    type: str
    content: str
    mood: Optional[str] = None
    category: Optional[str] = None
    is_private: bool = True
    tags: list[str] = []


class MindfulnessEntryListResponse(BaseModel):
    entries: list[MindfulnessEntryView]


class MindfulnessImportRequest(BaseModel):
    entries: list[MindfulnessEntryCreate] = []


class MindfulnessImportResponse(BaseModel):
    message: str
    imported: int


class StreakActivity(_CamelModel):
    activity_type: str = Field(min_length=1)


class StreakView(_CamelModel):
    user_id: str
    mindfulness: int = 0
    last_updated: Optional[datetime] = None
    last_mindfulness_date: Optional[date] = None


class StreakResponse(_CamelModel):
    message: str
    data: StreakView
    streak_incremented: bool


class SuccessResponse(BaseModel):
    success: bool = True
