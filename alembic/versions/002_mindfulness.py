"""Mindfulness journal entries and daily streak.

Revision ID: 002_mindfulness
Revises: 001_initial
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "002_mindfulness"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── 1. mindfulness_entries ──────────────────────────────────────
    op.create_table(
        "mindfulness_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "type",
            sa.String,
            nullable=False,
            comment="journal / gratitude / strength",
        ),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("mood", sa.String, nullable=True),
        sa.Column("category", sa.String, nullable=True),
        sa.Column("is_private", sa.Boolean, server_default="true", nullable=False),
        sa.Column("tags", postgresql.JSONB, nullable=True),
    )
    op.create_index(
        "ix_mindfulness_entries_user_id", "mindfulness_entries", ["user_id"]
    )

    # ── 2. mindfulness_streaks ──────────────────────────────────────
    op.create_table(
        "mindfulness_streaks",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "mindfulness",
            sa.Integer,
            server_default="0",
            nullable=False,
            comment="Days with at least one mindfulness activity",
        ),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_mindfulness_date", sa.Date, nullable=True),
    )


def downgrade() -> None:
    op.drop_table("mindfulness_streaks")
    op.drop_index("ix_mindfulness_entries_user_id", table_name="mindfulness_entries")
    op.drop_table("mindfulness_entries")
