"""Tests for the merge decision ledger and its request contracts."""

from __future__ import annotations

import tempfile
import unittest
from unittest.mock import patch

from pydantic import ValidationError
from sqlalchemy import create_engine, delete, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.entity_resolution.types import CatalogEntity, DuplicateGroup
from app.models.base import Base
from app.models.merge_history import MergeHistoryEntry
from app.routers.errors import http_error_for
from app.schemas.duplicates import (
    DuplicateGroupPayload,
    DuplicateGroupRead,
    ManualMergeRequest,
    MergeDecisionRequest,
)
from app.schemas.merge_history import MergeHistoryUpsertRequest
from app.services.errors import (
    CatalogReadError,
    EntityNotFoundError,
    MergeValidationError,
    RelationshipMigrationError,
)
from app.services import merge_history as merge_history_module
from app.services.merge_history import (
    HistoryRecord,
    InMemoryMergeHistoryStore,
    SqlMergeHistoryStore,
    build_history_record,
    upsert_history,
)


class SqlMergeHistoryStoreTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(cls.engine)

    @classmethod
    def tearDownClass(cls) -> None:
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        self.db: Session = self.SessionLocal()
        self.db.execute(delete(MergeHistoryEntry))
        self.db.commit()
        self.store = SqlMergeHistoryStore(self.db)

    def tearDown(self) -> None:
        self.db.close()

    def test_upsert_overwrites_by_signature(self) -> None:
        signature = "solaris|books,films"
        upsert_history(self.store, signature, "approved", "films")
        upsert_history(self.store, signature, "declined", "films")

        rows = self.db.scalars(select(MergeHistoryEntry)).all()
        self.assertEqual(len(rows), 1)
        self.assertEqual(self.store.get(signature), HistoryRecord(group_sig=signature, action="declined"))

        upsert_history(self.store, signature, "approved", "books")
        self.assertEqual(self.store.get(signature).keep_type, "books")  # type: ignore[union-attr]

    def test_delete_list_and_clear(self) -> None:
        upsert_history(self.store, "a|directors,directors", "declined")
        upsert_history(self.store, "b|films,writers", "approved", "writers")

        self.assertEqual(
            [record.group_sig for record in self.store.list()],
            ["a|directors,directors", "b|films,writers"],
        )
        self.assertTrue(self.store.delete("a|directors,directors"))
        self.assertFalse(self.store.delete("a|directors,directors"))
        self.assertEqual(self.store.clear(), 1)
        self.assertEqual(self.store.list(), [])


class ConcurrentHistoryWriteTests(unittest.TestCase):
    """Two sessions on one file database racing to record the same signature."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.engine = create_engine(f"sqlite+pysqlite:///{self._tmp.name}/history.db", future=True)
        Base.metadata.create_all(self.engine)
        SessionLocal = sessionmaker(bind=self.engine, autoflush=False, autocommit=False, future=True)
        self.first_db: Session = SessionLocal()
        self.second_db: Session = SessionLocal()
        self.first = SqlMergeHistoryStore(self.first_db)
        self.second = SqlMergeHistoryStore(self.second_db)

    def tearDown(self) -> None:
        self.first_db.close()
        self.second_db.close()
        self.engine.dispose()
        self._tmp.cleanup()

    def _rows(self) -> list[MergeHistoryEntry]:
        return list(self.first_db.scalars(select(MergeHistoryEntry)).all())

    def test_interleaved_writers_upsert_without_conflict(self) -> None:
        signature = "stalker|books,films"
        self.assertIsNone(self.second.get(signature))

        self.first.put(HistoryRecord(group_sig=signature, action="approved", keep_type="films"))
        self.second.put(HistoryRecord(group_sig=signature, action="declined"))

        self.first_db.expire_all()
        self.assertEqual(len(self._rows()), 1)
        self.assertEqual(self.first.get(signature), HistoryRecord(group_sig=signature, action="declined"))

    def test_fallback_write_retries_after_losing_the_insert_race(self) -> None:
        signature = "stalker|books,films"
        real_commit = self.second_db.commit
        rival_done: list[bool] = []

        def commit_after_rival() -> None:
            if not rival_done:
                rival_done.append(True)
                self.first.put(HistoryRecord(group_sig=signature, action="approved", keep_type="films"))
            real_commit()

        with patch.dict(merge_history_module._UPSERT_INSERTS, clear=True):
            with patch.object(self.second_db, "commit", side_effect=commit_after_rival):
                self.second.put(HistoryRecord(group_sig=signature, action="declined"))

        self.first_db.expire_all()
        self.assertEqual(len(self._rows()), 1)
        self.assertEqual(self.first.get(signature), HistoryRecord(group_sig=signature, action="declined"))


class HistoryRecordTests(unittest.TestCase):
    def test_build_record_validates_and_normalizes(self) -> None:
        self.assertEqual(
            build_history_record("  kant|philosophers,writers ", "approved", " philosophers "),
            HistoryRecord(group_sig="kant|philosophers,writers", action="approved", keep_type="philosophers"),
        )
        with self.assertRaises(ValueError):
            build_history_record("   ", "approved", "films")
        with self.assertRaises(ValueError):
            build_history_record("x|films,films", "merged")

    def test_in_memory_store_matches_sql_semantics(self) -> None:
        store = InMemoryMergeHistoryStore(
            [HistoryRecord(group_sig="x|films,films", action="approved", keep_type="films")]
        )
        upsert_history(store, "x|films,films", "declined", "films")

        self.assertEqual(store.get("x|films,films"), HistoryRecord(group_sig="x|films,films", action="declined"))
        self.assertEqual(store.clear(), 1)
        self.assertIsNone(store.get("x|films,films"))


class RequestContractTests(unittest.TestCase):
    def test_approved_upsert_requires_keep_type(self) -> None:
        with self.assertRaises(ValidationError):
            MergeHistoryUpsertRequest(group_sig="x|films,films", action="approved")
        request = MergeHistoryUpsertRequest(group_sig="x|films,films", action="declined")
        self.assertIsNone(request.keep_type)

    def test_decision_indexes_must_be_distinct_and_in_range(self) -> None:
        group = {
            "name": "Kafka",
            "entities": [
                {"id": 1, "category": "writers", "display_name": "Kafka"},
                {"id": 2, "category": "writers", "display_name": "Kafke"},
            ],
            "match_type": "similar",
            "similarity": 0.8,
        }
        with self.assertRaises(ValidationError):
            MergeDecisionRequest(section="similar", group=group, keep_index=0, delete_index=0)
        with self.assertRaises(ValidationError):
            MergeDecisionRequest(section="similar", group=group, keep_index=0, delete_index=2)
        request = MergeDecisionRequest(section="similar", group=group, keep_index=1, delete_index=0)
        self.assertEqual(request.group.to_group().signature, "kafka|writers,writers")

    def test_echoed_group_folds_category_case(self) -> None:
        payload = DuplicateGroupPayload(
            name=" Kafka",
            entities=[
                {"id": 1, "category": "Writers", "display_name": "Kafka"},
                {"id": 2, "category": " writers ", "display_name": "Kafke"},
            ],
            match_type="similar",
            similarity=0.8,
        )

        group = payload.to_group()

        self.assertEqual([entity.category for entity in group.entities], ["writers", "writers"])
        self.assertEqual(group.signature, "kafka|writers,writers")

    def test_blank_named_group_serializes(self) -> None:
        group = DuplicateGroup(
            name="",
            entities=[
                CatalogEntity(id=1, category="directors", display_name=""),
                CatalogEntity(id=2, category="directors", display_name=" "),
            ],
            match_type="exact",
            similarity=1.0,
        )

        read = DuplicateGroupRead.model_validate(group)

        self.assertEqual(read.name, "")
        self.assertEqual(read.signature, "|directors,directors")

    def test_manual_merge_rejects_self_merge(self) -> None:
        with self.assertRaises(ValidationError):
            ManualMergeRequest(keep={"id": 4, "category": "Films"}, delete={"id": 4, "category": "films"})

    def test_service_errors_map_to_http_statuses(self) -> None:
        self.assertEqual(http_error_for(MergeValidationError("bad")).status_code, 400)
        self.assertEqual(http_error_for(EntityNotFoundError("gone")).status_code, 404)
        self.assertEqual(http_error_for(RelationshipMigrationError("links")).status_code, 409)
        self.assertEqual(http_error_for(CatalogReadError("read")).status_code, 503)


if __name__ == "__main__":
    unittest.main()
