"""library entities, lectures and lecture junction tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

# (table, name column, junction table, junction fk column)
_CATEGORIES: tuple[tuple[str, str, str, str], ...] = (
    ("directors", "name", "lecture_directors", "director_id"),
    ("writers", "name", "lecture_writers", "writer_id"),
    ("philosophers", "name", "lecture_philosophers", "philosopher_id"),
    ("painters", "name", "lecture_painters", "painter_id"),
    ("films", "title", "lecture_films", "film_id"),
    ("books", "title", "lecture_books", "book_id"),
    ("paintings", "title", "lecture_paintings", "painting_id"),
)


def upgrade() -> None:
    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "lectures",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=True),
        sa.Column("order_in_course", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_lectures_course_id", "lectures", ["course_id"], unique=False)

    for table, name_column, junction, fk_column in _CATEGORIES:
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column(name_column, sa.String(length=255), nullable=False),
            sa.Column("hebrew_name", sa.String(length=255), nullable=True),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(f"ix_{table}_{name_column}", table, [name_column], unique=False)

        op.create_table(
            junction,
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("lecture_id", sa.Integer(), nullable=False),
            sa.Column(fk_column, sa.Integer(), nullable=False),
            sa.Column(
                "relationship_type",
                sa.String(length=32),
                server_default=sa.text("'discussed'"),
                nullable=False,
            ),
            sa.ForeignKeyConstraint(["lecture_id"], ["lectures.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint([fk_column], [f"{table}.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("lecture_id", fk_column, name=f"uq_{junction}_lecture_{fk_column[:-3]}"),
        )
        op.create_index(f"ix_{junction}_lecture_id", junction, ["lecture_id"], unique=False)
        op.create_index(f"ix_{junction}_{fk_column}", junction, [fk_column], unique=False)


def downgrade() -> None:
    for table, name_column, junction, fk_column in reversed(_CATEGORIES):
        op.drop_index(f"ix_{junction}_{fk_column}", table_name=junction)
        op.drop_index(f"ix_{junction}_lecture_id", table_name=junction)
        op.drop_table(junction)
        op.drop_index(f"ix_{table}_{name_column}", table_name=table)
        op.drop_table(table)

    op.drop_index("ix_lectures_course_id", table_name="lectures")
    op.drop_table("lectures")
    op.drop_table("courses")
