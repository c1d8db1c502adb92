from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.peer import ChatMessageView, SupportRequestView

RequestStatus = Literal["pending", "accepted", "rejected", "cancelled", "completed"]


class SupportRequestCreate(BaseModel):
    receiver_id: UUID
    message: str = Field(min_length=1)
    is_anonymous: bool = False


class SupportRequestStatusUpdate(BaseModel):
    id: UUID
    status: Literal["accepted", "rejected"]


class SupportRequestListResponse(BaseModel):
    requests: list[SupportRequestView]


class SupportRequestResponse(BaseModel):
    message: str
    request: SupportRequestView


class ChatMessageCreate(BaseModel):
    receiver_id: UUID
    message: str = Field(min_length=1)
    is_anonymous: bool = False


class ChatMessageResponse(BaseModel):
    message: str
    chat: ChatMessageView


class StatusMessage(BaseModel):
    message: str
