"""Course and lecture ORM models."""

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, CreatedAtMixin, IdMixin


class Course(Base, IdMixin, CreatedAtMixin):
    """Course grouping a series of lectures."""

    __tablename__ = "courses"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Lecture(Base, IdMixin, CreatedAtMixin):
    """Single lecture that library entities are linked to."""

    __tablename__ = "lectures"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    course_id: Mapped[int | None] = mapped_column(
        ForeignKey("courses.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
    order_in_course: Mapped[int | None] = mapped_column(Integer, nullable=True)
