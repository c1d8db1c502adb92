"""
Kindred — One-to-one peer chat.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile import Profile
from app.models.support import ChatMessage, SupportRequest
from app.schemas.peer import ChatMessageView, ConversationResponse
from app.services.support_service import between
from app.services.transformer_service import PeerTransformer

logger = structlog.get_logger("kindred.chat_service")


class ChatService:
    def __init__(self, transformer: PeerTransformer | None = None) -> None:
        self.transformer = transformer or PeerTransformer()

    async def get_conversation(
        self,
        viewer_id: uuid.UUID,
        peer_id: uuid.UUID,
        db_session: AsyncSession,
    ) -> ConversationResponse:
        """Return the transcript with ``peer_id`` (oldest first) and mark the
        peer's messages to the viewer as read."""
        log = logger.bind(viewer_id=str(viewer_id), peer_id=str(peer_id))

        stmt = (
            select(ChatMessage)
            .where(between(viewer_id, peer_id, ChatMessage))
            .order_by(ChatMessage.created_at.asc())
        )
        messages = list((await db_session.execute(stmt)).scalars().all())

        peer = (
            await db_session.execute(select(Profile).where(Profile.id == peer_id))
        ).scalar_one_or_none()
        if peer is None:
            log.info("chat_peer_profile_missing")

        unread_ids = [
            m.id for m in messages if m.receiver_id == viewer_id and not m.is_read
        ]
        if unread_ids:
            await db_session.execute(
                update(ChatMessage)
                .where(ChatMessage.id.in_(unread_ids))
                .values(is_read=True)
            )
            for m in messages:
                if m.id in unread_ids:
                    m.is_read = True

        log.info(
            "conversation_loaded",
            message_count=len(messages),
            marked_read=len(unread_ids),
        )
        return ConversationResponse(
            messages=self.transformer.format_chat_messages(messages, viewer_id, peer),
            peer=self.transformer.to_chat_peer(peer),
        )

    async def send_message(
        self,
        viewer_id: uuid.UUID,
        receiver_id: uuid.UUID,
        message: str,
        db_session: AsyncSession,
        is_anonymous: bool = False,
    ) -> ChatMessageView:
        """Store an unread message from the viewer to ``receiver_id``.

        Raises ``ValueError`` for an empty message and ``LookupError`` when
        the receiver has no profile.
        """
        if not message or not message.strip():
            raise ValueError("Receiver ID and message are required")

        receiver = (
            await db_session.execute(select(Profile).where(Profile.id == receiver_id))
        ).scalar_one_or_none()
        if receiver is None:
            logger.warning(
                "chat_receiver_missing",
                viewer_id=str(viewer_id),
                receiver_id=str(receiver_id),
            )
            raise LookupError("Receiver not found")

        chat = ChatMessage(
            sender_id=viewer_id,
            receiver_id=receiver_id,
            message=message,
            is_anonymous=is_anonymous,
            is_read=False,
        )
        db_session.add(chat)
        await db_session.flush()
        await db_session.refresh(chat)

        logger.info(
            "chat_message_sent",
            viewer_id=str(viewer_id),
            receiver_id=str(receiver_id),
            message_id=str(chat.id),
        )
        return self.transformer.format_chat_messages([chat], viewer_id)[0]

    async def delete_conversation(
        self,
        viewer_id: uuid.UUID,
        peer_id: uuid.UUID,
        db_session: AsyncSession,
    ) -> int:
        """Delete every message between the pair and close out their
        accepted support request.  Returns the number of deleted messages."""
        log = logger.bind(viewer_id=str(viewer_id), peer_id=str(peer_id))

        result = await db_session.execute(
            delete(ChatMessage)
            .where(between(viewer_id, peer_id, ChatMessage))
            .returning(ChatMessage.id)
        )
        deleted = len(result.all())
        if deleted == 0:
            log.warning("conversation_delete_nothing_found")

        accepted = (
            await db_session.execute(
                select(SupportRequest).where(
                    between(viewer_id, peer_id),
                    SupportRequest.status == "accepted",
                )
            )
        ).scalars().first()
        if accepted is not None:
            accepted.status = "completed"

        await db_session.flush()
        log.info(
            "conversation_deleted",
            deleted_messages=deleted,
            request_completed=accepted is not None,
        )
        return deleted
