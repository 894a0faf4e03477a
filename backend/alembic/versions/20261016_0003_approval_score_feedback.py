"""add approval item score and feedback

Revision ID: 20261016_0003
Revises: 20261014_0002
Create Date: 2026-10-16 00:00:03
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261016_0003"
down_revision: str | None = "20261014_0002"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    with op.batch_alter_table("approval_items") as batch_op:
        batch_op.add_column(sa.Column("score", sa.Integer(), nullable=True))
        batch_op.add_column(sa.Column("feedback", sa.String(length=32), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("approval_items") as batch_op:
        batch_op.drop_column("feedback")
        batch_op.drop_column("score")
