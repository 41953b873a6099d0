"""Operator merge decision ledger model."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IdMixin


class MergeHistoryEntry(Base, IdMixin):
    """One approve/decline decision per duplicate-group signature."""

    __tablename__ = "merge_history"
    __table_args__ = (CheckConstraint("action IN ('approved', 'declined')", name="ck_merge_history_action"),)

    group_sig: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    action: Mapped[str] = mapped_column(String(16), nullable=False)
    keep_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
