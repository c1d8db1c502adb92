from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ProfileRecord(BaseModel):
    """Validated view of a raw ``profiles`` row.

    Accepts an ORM ``Profile`` (``from_attributes``) or a plain mapping such
    as a JSON payload.  Unknown fields are ignored and missing optional fields
    default to ``None`` so the transformer never depends on attribute
    look-ups silently returning nothing.
    """

    model_config = ConfigDict(from_attributes=True, extra="ignore", frozen=True)

    id: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    location: Optional[str] = None
    availability: Optional[str] = None
    support_type: Optional[str] = Field(
        None, validation_alias=AliasChoices("support_type", "supportType")
    )
    support_preferences: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("support_preferences", "supportPreferences"),
    )
    last_active_at: Optional[datetime] = None
    rating: Optional[float] = None
    total_ratings: Optional[int] = None
    certified_mentor: Optional[bool] = None
    people_supported: Optional[int] = None
    journey_note: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v: Any) -> Any:
        if isinstance(v, UUID):
            return str(v)
        return v

    @field_validator("support_preferences", mode="before")
    @classmethod
    def _drop_malformed_preferences(cls, v: Any) -> list:
        if not isinstance(v, (list, tuple)):
            return []
        return [p for p in v if isinstance(p, str)]


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    dob: Optional[str] = None
    location: Optional[str] = None
    gender: Optional[str] = None
    workplace: Optional[str] = None
    job_title: Optional[str] = None
    education: Optional[str] = None
    religious_beliefs: Optional[str] = None
    availability: Optional[str] = None
    communication_style: Optional[str] = None
    avatar_url: Optional[str] = None
    support_type: Optional[str] = None
    support_seeker: Optional[bool] = None
    support_giver: Optional[bool] = None
    support_preferences: Optional[list[str]] = None
    journey_note: Optional[str] = None
    completed_setup: Optional[bool] = None
    guidelines_accepted: Optional[bool] = None


class AppProfile(BaseModel):
    """Onboarding-facing projection of the viewer's own profile."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str = ""
    date_of_birth: str = ""
    location: str = ""
    gender: str = ""
    workplace: str = ""
    job_title: str = ""
    education: str = ""
    religious_beliefs: str = ""
    communication_preferences: str = ""
    availability: str = ""
    completed_setup: bool = False
    profile_completion_percentage: int = 0
    journey: str = ""
    journey_note: str = ""
    support_preferences: list[str] = []
    support_giver: bool = False
    support_seeker: bool = False
    support_type: str = ""
