"""add merge history ledger

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:00:02
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0002"
down_revision: str | None = "20261019_0001"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "merge_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("group_sig", sa.String(length=512), nullable=False),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("keep_type", sa.String(length=32), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("action IN ('approved', 'declined')", name="ck_merge_history_action"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("group_sig", name="uq_merge_history_group_sig"),
    )


def downgrade() -> None:
    op.drop_table("merge_history")
