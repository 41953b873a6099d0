"""SQLAlchemy metadata registry import for Alembic."""

from app.models import Course, Lecture, MergeHistoryEntry
from app.models.base import Base
from app.schema.categories import CATEGORY_SPECS

__all__ = ["Base", "Course", "Lecture", "MergeHistoryEntry", "CATEGORY_SPECS"]
