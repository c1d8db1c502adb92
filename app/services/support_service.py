"""
Kindred — Support request lifecycle.

  pending --(receiver)--> accepted | rejected
  pending --(sender)----> cancelled   (or deleted outright)
  accepted --(chat deleted)--> completed

At most one active (pending or accepted) request may exist between two
users, in either direction.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile import Profile
from app.models.support import SupportRequest
from app.schemas.peer import SupportRequestView
from app.services.transformer_service import PeerTransformer

logger = structlog.get_logger("kindred.support_service")

ACTIVE_STATUSES: tuple[str, ...] = ("pending", "accepted")
RECEIVER_STATUSES: frozenset[str] = frozenset({"accepted", "rejected"})
LIST_TYPES: frozenset[str] = frozenset({"sent", "received", "all"})


def between(a: uuid.UUID, b: uuid.UUID, model=SupportRequest):
    """SQL clause matching rows exchanged between ``a`` and ``b`` in either
    direction."""
    return or_(
        and_(model.sender_id == a, model.receiver_id == b),
        and_(model.sender_id == b, model.receiver_id == a),
    )


class SupportRequestService:
    def __init__(self, transformer: PeerTransformer | None = None) -> None:
        self.transformer = transformer or PeerTransformer()

    # ── Listing ──────────────────────────────────────────────────────────

    async def list_requests(
        self,
        viewer_id: uuid.UUID,
        db_session: AsyncSession,
        request_type: str = "all",
        status: Optional[str] = None,
    ) -> list[SupportRequestView]:
        """Requests sent by, received by, or involving the viewer, newest
        first."""
        if request_type not in LIST_TYPES:
            raise ValueError(
                f"Invalid request type {request_type!r}. Must be one of: "
                f"{', '.join(sorted(LIST_TYPES))}"
            )

        stmt = select(SupportRequest)
        if request_type == "sent":
            stmt = stmt.where(SupportRequest.sender_id == viewer_id)
        elif request_type == "received":
            stmt = stmt.where(SupportRequest.receiver_id == viewer_id)
        else:
            stmt = stmt.where(
                or_(
                    SupportRequest.sender_id == viewer_id,
                    SupportRequest.receiver_id == viewer_id,
                )
            )
        if status:
            stmt = stmt.where(SupportRequest.status == status)
        stmt = stmt.order_by(SupportRequest.created_at.desc())

        result = await db_session.execute(stmt)
        rows = result.scalars().all()

        logger.info(
            "support_requests_listed",
            viewer_id=str(viewer_id),
            request_type=request_type,
            status=status,
            count=len(rows),
        )
        return self.transformer.format_support_requests(rows, viewer_id)

    # ── Create ───────────────────────────────────────────────────────────

    async def create_request(
        self,
        viewer_id: uuid.UUID,
        receiver_id: uuid.UUID,
        message: str,
        db_session: AsyncSession,
        is_anonymous: bool = False,
    ) -> SupportRequestView:
        """Send a new pending request.

        Raises
        ------
        ValueError
            If the message is empty, the viewer targets themself, or an
            active request already exists between the pair.
        LookupError
            If the receiver has no profile.
        """
        log = logger.bind(viewer_id=str(viewer_id), receiver_id=str(receiver_id))

        if not message or not message.strip():
            raise ValueError("Receiver ID and message are required")
        if viewer_id == receiver_id:
            raise ValueError("You cannot send a support request to yourself")

        receiver = (
            await db_session.execute(select(Profile).where(Profile.id == receiver_id))
        ).scalar_one_or_none()
        if receiver is None:
            log.warning("support_request_receiver_missing")
            raise LookupError("Receiver not found")

        existing_stmt = select(SupportRequest).where(
            between(viewer_id, receiver_id),
            SupportRequest.status.in_(ACTIVE_STATUSES),
        )
        existing = (await db_session.execute(existing_stmt)).scalars().first()
        if existing is not None:
            log.info("support_request_duplicate", existing_status=existing.status)
            if existing.status == "pending":
                raise ValueError(
                    "There is already a pending request between you and this user"
                )
            raise ValueError("You are already connected with this user")

        request = SupportRequest(
            sender_id=viewer_id,
            receiver_id=receiver_id,
            message=message,
            status="pending",
            is_anonymous=is_anonymous,
        )
        db_session.add(request)
        await db_session.flush()
        await db_session.refresh(request, attribute_names=["sender", "receiver"])

        log.info("support_request_created", request_id=str(request.id))
        return self.transformer.format_support_requests([request], viewer_id)[0]

    # ── Status changes ───────────────────────────────────────────────────

    async def _get_request(
        self, request_id: uuid.UUID, db_session: AsyncSession
    ) -> SupportRequest:
        request = (
            await db_session.execute(
                select(SupportRequest).where(SupportRequest.id == request_id)
            )
        ).scalar_one_or_none()
        if request is None:
            raise LookupError(f"Support request {request_id} not found")
        return request

    async def update_status(
        self,
        viewer_id: uuid.UUID,
        request_id: uuid.UUID,
        status: str,
        db_session: AsyncSession,
    ) -> SupportRequestView:
        """Accept or reject a request addressed to the viewer."""
        if status not in RECEIVER_STATUSES:
            raise ValueError(
                f"Invalid status {status!r}. Must be one of: "
                f"{', '.join(sorted(RECEIVER_STATUSES))}"
            )

        request = await self._get_request(request_id, db_session)
        if request.receiver_id != viewer_id:
            raise PermissionError("You can only update requests sent to you")

        request.status = status
        await db_session.flush()

        logger.info(
            "support_request_status_updated",
            request_id=str(request_id),
            viewer_id=str(viewer_id),
            status=status,
        )
        return self.transformer.format_support_requests([request], viewer_id)[0]

    async def cancel_request(
        self,
        viewer_id: uuid.UUID,
        request_id: uuid.UUID,
        db_session: AsyncSession,
    ) -> SupportRequestView:
        """Mark a request the viewer sent as ``cancelled``."""
        request = await self._get_request(request_id, db_session)
        if request.sender_id != viewer_id:
            raise PermissionError("You can only cancel requests you sent")

        request.status = "cancelled"
        await db_session.flush()

        logger.info(
            "support_request_cancelled",
            request_id=str(request_id),
            viewer_id=str(viewer_id),
        )
        return self.transformer.format_support_requests([request], viewer_id)[0]

    async def delete_pending_request(
        self,
        viewer_id: uuid.UUID,
        request_id: uuid.UUID,
        db_session: AsyncSession,
    ) -> None:
        """Withdraw a still-pending request the viewer sent."""
        request = await self._get_request(request_id, db_session)
        if request.sender_id != viewer_id:
            raise PermissionError("You can only cancel requests you have sent")
        if request.status != "pending":
            raise ValueError("Only pending requests can be canceled")

        await db_session.delete(request)
        await db_session.flush()

        logger.info(
            "support_request_deleted",
            request_id=str(request_id),
            viewer_id=str(viewer_id),
        )
