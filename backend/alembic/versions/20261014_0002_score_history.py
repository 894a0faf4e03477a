"""add score history table

Revision ID: 20261014_0002
Revises: 20261012_0001
Create Date: 2026-10-14 00:00:02
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261014_0002"
down_revision: str | None = "20261012_0001"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "score_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("source_log_id", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("date_text", sa.String(length=128), nullable=False),
        sa.Column("time_text", sa.String(length=64), nullable=False),
        sa.Column("item_type", sa.String(length=16), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("threshold", sa.Integer(), nullable=False),
        sa.Column("factors_json", sa.JSON(), nullable=False),
        sa.Column("passed_threshold", sa.Boolean(), nullable=False),
        sa.Column("feedback", sa.String(length=32), server_default="none", nullable=False),
        sa.Column("approval_item_id", sa.String(length=128), nullable=True),
        sa.ForeignKeyConstraint(["approval_item_id"], ["approval_items.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_score_history_timestamp", "score_history", ["timestamp"], unique=False)
    op.create_index("ix_score_history_source_log_id", "score_history", ["source_log_id"], unique=False)
    op.create_index("ix_score_history_approval_item_id", "score_history", ["approval_item_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_score_history_approval_item_id", table_name="score_history")
    op.drop_index("ix_score_history_source_log_id", table_name="score_history")
    op.drop_index("ix_score_history_timestamp", table_name="score_history")
    op.drop_table("score_history")
