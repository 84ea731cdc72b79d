"""Add assistant on/off, per-mode and snooze preferences

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("assistant_preferences", sa.Column("is_enabled", sa.Boolean, server_default=sa.true(), nullable=False))
    op.add_column(
        "assistant_preferences",
        sa.Column("disabled_modes", postgresql.JSONB, server_default=sa.text("'[]'::jsonb"), nullable=False),
    )
    op.add_column("assistant_preferences", sa.Column("disabled_until", sa.DateTime(timezone=True), nullable=True))
    op.create_index(
        "ix_assistant_memory_logs_user_type", "assistant_memory_logs", ["user_id", "interaction_type"]
    )


def downgrade() -> None:
    op.drop_index("ix_assistant_memory_logs_user_type", table_name="assistant_memory_logs")
    op.drop_column("assistant_preferences", "disabled_until")
    op.drop_column("assistant_preferences", "disabled_modes")
    op.drop_column("assistant_preferences", "is_enabled")
