"""Create conversation_states table.

Revision ID: 001
Revises:
Create Date: 2026-10-19

One row per user holding the active scenario, current step, accumulated
step data and expiration time. Rows are upserted on user_id.
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the conversation state table and its lookup indexes."""
    op.create_table(
        "conversation_states",
        sa.Column("user_id", sa.Text, primary_key=True),
        sa.Column("scenario_name", sa.String(100)),
        sa.Column("step_name", sa.String(100)),
        sa.Column("data", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True)),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.CheckConstraint(
            "(scenario_name IS NULL) = (step_name IS NULL)",
            name="ck_conversation_states_scenario_step",
        ),
        sa.CheckConstraint(
            "scenario_name IS NULL OR expires_at IS NOT NULL",
            name="ck_conversation_states_active_expiry",
        ),
    )
    op.create_index(
        "idx_conversation_states_scenario", "conversation_states", ["scenario_name"]
    )
    op.create_index(
        "idx_conversation_states_expires", "conversation_states", ["expires_at"]
    )


def downgrade() -> None:
    """Drop the conversation state table."""
    op.drop_index("idx_conversation_states_expires", table_name="conversation_states")
    op.drop_index("idx_conversation_states_scenario", table_name="conversation_states")
    op.drop_table("conversation_states")
