"""
Kindred — Peer Support API

Endpoints for the peer directory, support requests, and one-to-one chat.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_optional_viewer_id, get_viewer_id, http_error_from
from app.database import get_db
from app.schemas.peer import (
    SORT_STRATEGIES,
    ConversationResponse,
    PeerFilters,
    PeerListResponse,
)
from app.schemas.support import (
    ChatMessageCreate,
    ChatMessageResponse,
    StatusMessage,
    SupportRequestCreate,
    SupportRequestListResponse,
    SupportRequestResponse,
    SupportRequestStatusUpdate,
)
from app.services.chat_service import ChatService
from app.services.peer_directory_service import (
    PeerDirectoryService,
    parse_active_only_param,
    parse_preferences_param,
    resolve_support_type,
)
from app.services.support_service import SupportRequestService
from app.services.transformer_service import PeerTransformer, TransformerDefaults

logger = structlog.get_logger("kindred.api.peer_support")

router = APIRouter()

# ── Service singletons ────────────────────────────────────────────────────────

_directory_service: PeerDirectoryService | None = None
_support_service: SupportRequestService | None = None
_chat_service: ChatService | None = None


def _get_transformer() -> PeerTransformer:
    return PeerTransformer(defaults=TransformerDefaults.from_settings())


def _get_directory_service() -> PeerDirectoryService:
    global _directory_service
    if _directory_service is None:
        _directory_service = PeerDirectoryService(_get_transformer())
    return _directory_service


def _get_support_service() -> SupportRequestService:
    global _support_service
    if _support_service is None:
        _support_service = SupportRequestService(_get_transformer())
    return _support_service


def _get_chat_service() -> ChatService:
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService(_get_transformer())
    return _chat_service


# ──────────────────────────────────────────────────────────────────────────────
# GET / — Peer directory
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "",
    response_model=PeerListResponse,
    summary="List scored peers for the viewer",
)
async def list_peers(
    support_type: Optional[str] = Query(None, alias="supportType"),
    support_preferences: Optional[str] = Query(
        None,
        alias="supportPreferences",
        description="JSON-encoded list of journey tags",
    ),
    active_only: Optional[str] = Query(None, alias="activeOnly"),
    sort_by: Optional[str] = Query(
        None,
        alias="sortBy",
        description="One of: " + ", ".join(SORT_STRATEGIES),
    ),
    viewer_id: Optional[uuid.UUID] = Depends(get_optional_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> PeerListResponse:
    """Return peers ordered by match score (or ``sortBy``), excluding the
    viewer.  Anonymous callers get unscored (base score) cards."""
    filters = PeerFilters(
        support_type=resolve_support_type(support_type),
        support_preferences=tuple(parse_preferences_param(support_preferences)),
        active_only=parse_active_only_param(active_only),
        sort_by=sort_by,
    )
    peers = await _get_directory_service().list_peers(viewer_id, filters, db)
    return PeerListResponse(peers=peers)


# ──────────────────────────────────────────────────────────────────────────────
# /chats — Conversation with one peer
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/chats",
    response_model=ConversationResponse,
    summary="Get the conversation with a peer",
)
async def get_chat(
    peer_id: uuid.UUID = Query(..., description="Peer profile id"),
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> ConversationResponse:
    return await _get_chat_service().get_conversation(viewer_id, peer_id, db)


@router.post(
    "/chats",
    response_model=ChatMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a chat message",
)
async def send_chat_message(
    payload: ChatMessageCreate,
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> ChatMessageResponse:
    try:
        chat = await _get_chat_service().send_message(
            viewer_id,
            payload.receiver_id,
            payload.message,
            db,
            is_anonymous=payload.is_anonymous,
        )
    except (LookupError, ValueError) as exc:
        raise http_error_from(exc)
    return ChatMessageResponse(message="Message sent successfully", chat=chat)


@router.delete(
    "/chats",
    response_model=StatusMessage,
    summary="Delete the conversation with a peer",
)
async def delete_chat(
    peer_id: uuid.UUID = Query(..., description="Peer profile id"),
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> StatusMessage:
    await _get_chat_service().delete_conversation(viewer_id, peer_id, db)
    return StatusMessage(message="Chat deleted successfully")


# ──────────────────────────────────────────────────────────────────────────────
# /requests — Support requests
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/requests",
    response_model=SupportRequestListResponse,
    summary="List the viewer's support requests",
)
async def list_requests(
    request_type: str = Query("all", alias="type", pattern="^(sent|received|all)$"),
    request_status: Optional[str] = Query(None, alias="status"),
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> SupportRequestListResponse:
    requests = await _get_support_service().list_requests(
        viewer_id, db, request_type=request_type, status=request_status
    )
    return SupportRequestListResponse(requests=requests)


@router.post(
    "/requests",
    response_model=SupportRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a support request",
)
async def create_request(
    payload: SupportRequestCreate,
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> SupportRequestResponse:
    try:
        request = await _get_support_service().create_request(
            viewer_id,
            payload.receiver_id,
            payload.message,
            db,
            is_anonymous=payload.is_anonymous,
        )
    except (LookupError, ValueError) as exc:
        logger.info("create_request_rejected", viewer_id=str(viewer_id), reason=str(exc))
        raise http_error_from(exc)
    return SupportRequestResponse(
        message="Support request sent successfully", request=request
    )


@router.patch(
    "/requests",
    response_model=SupportRequestResponse,
    summary="Accept or reject a support request",
)
async def update_request(
    payload: SupportRequestStatusUpdate,
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> SupportRequestResponse:
    try:
        request = await _get_support_service().update_status(
            viewer_id, payload.id, payload.status, db
        )
    except (LookupError, PermissionError, ValueError) as exc:
        raise http_error_from(exc)
    return SupportRequestResponse(
        message=f"Support request {payload.status}", request=request
    )


@router.delete(
    "/requests",
    response_model=SupportRequestResponse,
    summary="Cancel a support request the viewer sent",
)
async def cancel_request(
    request_id: uuid.UUID = Query(..., alias="id"),
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> SupportRequestResponse:
    try:
        request = await _get_support_service().cancel_request(viewer_id, request_id, db)
    except (LookupError, PermissionError) as exc:
        raise http_error_from(exc)
    return SupportRequestResponse(
        message="Support request cancelled successfully", request=request
    )


@router.delete(
    "/requests/{request_id}",
    response_model=StatusMessage,
    summary="Withdraw a pending support request",
)
async def delete_request(
    request_id: uuid.UUID,
    viewer_id: uuid.UUID = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db),
) -> StatusMessage:
    try:
        await _get_support_service().delete_pending_request(viewer_id, request_id, db)
    except (LookupError, PermissionError, ValueError) as exc:
        raise http_error_from(exc)
    return StatusMessage(message="Support request canceled successfully")
