"""Merge decision ledger keyed by duplicate-group signature."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.merge_history import MergeHistoryEntry

HistoryAction = Literal["approved", "declined"]
HISTORY_ACTIONS: tuple[str, ...] = ("approved", "declined")
_UPSERT_INSERTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}


@dataclass(frozen=True, slots=True)
class HistoryRecord:
    """One stored decision."""

    group_sig: str
    action: HistoryAction
    keep_type: str | None = None


class MergeHistoryStore(Protocol):
    """Key-value view over the decision ledger (key = group signature)."""

    def get(self, signature: str) -> HistoryRecord | None:
        """Return the decision for a signature, if any."""

    def put(self, record: HistoryRecord) -> None:
        """Insert or overwrite the decision for ``record.group_sig``."""

    def delete(self, signature: str) -> bool:
        """Remove one decision; return whether it existed."""

    def list(self) -> list[HistoryRecord]:
        """Return every stored decision."""

    def clear(self) -> int:
        """Remove every decision; return how many were removed."""


def build_history_record(signature: str, action: str, keep_type: str | None = None) -> HistoryRecord:
    """Validate and normalize one upsert payload."""

    clean_signature = signature.strip()
    if not clean_signature:
        raise ValueError("Group signature must not be empty.")
    if action not in HISTORY_ACTIONS:
        raise ValueError(f"Unknown history action: {action}")
    clean_keep = keep_type.strip() if keep_type else None
    if action == "declined":
        clean_keep = None
    return HistoryRecord(group_sig=clean_signature, action=action, keep_type=clean_keep or None)


def upsert_history(
    store: MergeHistoryStore,
    signature: str,
    action: str,
    keep_type: str | None = None,
) -> HistoryRecord:
    """Idempotent write keyed by signature; the last write wins."""

    record = build_history_record(signature, action, keep_type)
    store.put(record)
    return record


class SqlMergeHistoryStore:
    """Ledger persisted in the ``merge_history`` table."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def get(self, signature: str) -> HistoryRecord | None:
        row = self._db.scalar(select(MergeHistoryEntry).where(MergeHistoryEntry.group_sig == signature))
        return _to_record(row) if row is not None else None

    def put(self, record: HistoryRecord) -> None:
        """Single-statement upsert on ``group_sig``; concurrent writers resolve last-write-wins."""

        insert = _UPSERT_INSERTS.get(self._db.get_bind().dialect.name)
        if insert is None:
            self._put_with_retry(record)
            return
        stmt = insert(MergeHistoryEntry).values(
            group_sig=record.group_sig,
            action=record.action,
            keep_type=record.keep_type,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["group_sig"],
            set_={
                "action": stmt.excluded.action,
                "keep_type": stmt.excluded.keep_type,
                "updated_at": func.now(),
            },
        )
        self._db.execute(stmt)
        self._db.commit()

    def _put_with_retry(self, record: HistoryRecord) -> None:
        try:
            self._write_row(record)
        except IntegrityError:
            # Another writer inserted the signature first; overwrite it.
            self._db.rollback()
            self._write_row(record)

    def _write_row(self, record: HistoryRecord) -> None:
        row = self._db.scalar(select(MergeHistoryEntry).where(MergeHistoryEntry.group_sig == record.group_sig))
        if row is None:
            row = MergeHistoryEntry(group_sig=record.group_sig, action=record.action, keep_type=record.keep_type)
            self._db.add(row)
        else:
            row.action = record.action
            row.keep_type = record.keep_type
        self._db.commit()

    def delete(self, signature: str) -> bool:
        row = self._db.scalar(select(MergeHistoryEntry).where(MergeHistoryEntry.group_sig == signature))
        if row is None:
            return False
        self._db.delete(row)
        self._db.commit()
        return True

    def list(self) -> list[HistoryRecord]:
        rows = self._db.scalars(select(MergeHistoryEntry).order_by(MergeHistoryEntry.id.asc())).all()
        return [_to_record(row) for row in rows]

    def clear(self) -> int:
        result = self._db.execute(delete(MergeHistoryEntry))
        self._db.commit()
        return int(result.rowcount or 0)


class InMemoryMergeHistoryStore:
    """Process-local ledger used in tests/offline mode."""

    def __init__(self, records: list[HistoryRecord] | None = None) -> None:
        self._records: dict[str, HistoryRecord] = {}
        for record in records or []:
            self.put(record)

    def get(self, signature: str) -> HistoryRecord | None:
        return self._records.get(signature)

    def put(self, record: HistoryRecord) -> None:
        self._records[record.group_sig] = record

    def delete(self, signature: str) -> bool:
        return self._records.pop(signature, None) is not None

    def list(self) -> list[HistoryRecord]:
        return list(self._records.values())

    def clear(self) -> int:
        removed = len(self._records)
        self._records.clear()
        return removed


def _to_record(row: MergeHistoryEntry) -> HistoryRecord:
    return HistoryRecord(group_sig=row.group_sig, action=row.action, keep_type=row.keep_type)  # type: ignore[arg-type]
