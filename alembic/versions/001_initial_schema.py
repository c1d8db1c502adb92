"""Initial schema — profiles, support_requests, peer_support_chats.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── 1. profiles ─────────────────────────────────────────────────
    op.create_table(
        "profiles",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            comment="Identity-provider user id",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("name", sa.String, nullable=True),
        sa.Column("dob", sa.String, nullable=True),
        sa.Column("location", sa.String, nullable=True),
        sa.Column("gender", sa.String, nullable=True),
        sa.Column("workplace", sa.String, nullable=True),
        sa.Column("job_title", sa.String, nullable=True),
        sa.Column("education", sa.String, nullable=True),
        sa.Column("religious_beliefs", sa.String, nullable=True),
        sa.Column("availability", sa.String, nullable=True),
        sa.Column("communication_style", sa.String, nullable=True),
        sa.Column("avatar_url", sa.String, nullable=True),
        sa.Column("completed_setup", sa.Boolean, server_default="false", nullable=False),
        sa.Column("guidelines_accepted", sa.Boolean, server_default="false", nullable=False),
        sa.Column(
            "support_type",
            sa.String,
            nullable=True,
            comment="support-seeker / support-giver",
        ),
        sa.Column("support_seeker", sa.Boolean, server_default="false", nullable=False),
        sa.Column("support_giver", sa.Boolean, server_default="false", nullable=False),
        sa.Column(
            "support_preferences",
            postgresql.JSONB,
            nullable=True,
            comment="Array of journey tags",
        ),
        sa.Column("journey_note", sa.Text, nullable=True),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rating", sa.Float, nullable=True),
        sa.Column("total_ratings", sa.Integer, server_default="0", nullable=False),
        sa.Column("certified_mentor", sa.Boolean, server_default="false", nullable=False),
        sa.Column("people_supported", sa.Integer, server_default="0", nullable=False),
    )
    op.create_index("ix_profiles_support_type", "profiles", ["support_type"])

    # ── 2. support_requests ─────────────────────────────────────────
    op.create_table(
        "support_requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "sender_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "receiver_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column(
            "status",
            sa.String,
            server_default="pending",
            nullable=False,
            comment="pending / accepted / rejected / cancelled / completed",
        ),
        sa.Column("is_anonymous", sa.Boolean, server_default="false", nullable=False),
    )
    op.create_index(
        "ix_support_requests_pair",
        "support_requests",
        ["sender_id", "receiver_id"],
    )

    # ── 3. peer_support_chats ───────────────────────────────────────
    op.create_table(
        "peer_support_chats",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "sender_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "receiver_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("is_anonymous", sa.Boolean, server_default="false", nullable=False),
        sa.Column("is_read", sa.Boolean, server_default="false", nullable=False),
    )
    op.create_index(
        "ix_peer_support_chats_pair_created",
        "peer_support_chats",
        ["sender_id", "receiver_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_peer_support_chats_pair_created", table_name="peer_support_chats")
    op.drop_table("peer_support_chats")
    op.drop_index("ix_support_requests_pair", table_name="support_requests")
    op.drop_table("support_requests")
    op.drop_index("ix_profiles_support_type", table_name="profiles")
    op.drop_table("profiles")
