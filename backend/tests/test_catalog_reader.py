"""Service-level tests for the catalog snapshot reader."""

from __future__ import annotations

import unittest

from sqlalchemy import create_engine, delete
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models.base import Base
from app.models.lecture import Lecture
from app.models.lecture_link import LectureDirector, LectureFilm
from app.models.library_entity import Director, Film
from app.services.catalog import load_catalog
from app.services.errors import CatalogReadError
from app.services.images import ImageStoreError, InMemoryImageStore


class _BrokenListingStore(InMemoryImageStore):
    def list_keys(self, prefix: str) -> list[str]:
        raise ImageStoreError(f"listing {prefix} refused")


class CatalogReaderTests(unittest.TestCase):
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
        for table in reversed(Base.metadata.sorted_tables):
            self.db.execute(delete(table))
        self.db.commit()

    def tearDown(self) -> None:
        self.db.close()

    def test_counts_links_and_flags_images(self) -> None:
        linked = Director(name="Akira Kurosawa")
        unlinked = Director(name="Yasujiro Ozu", hebrew_name="יסוג'ירו אוזו")
        film = Film(title="Rashomon")
        lectures = [Lecture(title="Japanese cinema I"), Lecture(title="Japanese cinema II")]
        self.db.add_all([linked, unlinked, film, *lectures])
        self.db.flush()
        self.db.add_all(
            [
                LectureDirector(lecture_id=lectures[0].id, director_id=linked.id),
                LectureDirector(lecture_id=lectures[1].id, director_id=linked.id),
                LectureFilm(lecture_id=lectures[0].id, film_id=film.id),
            ]
        )
        self.db.commit()

        store = InMemoryImageStore()
        store.put(f"images/directors/{unlinked.id}.jpeg")
        store.put("images/directors/cover.jpeg")
        store.put(f"images/films/{film.id}.jpeg")

        catalog = load_catalog(self.db, store, categories=("directors", "films"))

        by_key = {entity.key: entity for entity in catalog}
        self.assertEqual([entity.category for entity in catalog], ["directors", "directors", "films"])
        self.assertEqual(by_key[f"directors:{linked.id}"].connection_count, 2)
        self.assertFalse(by_key[f"directors:{linked.id}"].has_image)
        self.assertEqual(by_key[f"directors:{unlinked.id}"].connection_count, 0)
        self.assertTrue(by_key[f"directors:{unlinked.id}"].has_image)
        self.assertEqual(by_key[f"directors:{unlinked.id}"].hebrew_name, "יסוג'ירו אוזו")
        self.assertEqual(by_key[f"films:{film.id}"].display_name, "Rashomon")
        self.assertEqual(by_key[f"films:{film.id}"].connection_count, 1)
        self.assertTrue(by_key[f"films:{film.id}"].has_image)

    def test_image_listing_failure_aborts_read(self) -> None:
        self.db.add(Director(name="Agnes Varda"))
        self.db.commit()

        with self.assertRaises(CatalogReadError):
            load_catalog(self.db, _BrokenListingStore(), categories=("directors",))

    def test_unknown_category_is_rejected(self) -> None:
        with self.assertRaises(CatalogReadError):
            load_catalog(self.db, InMemoryImageStore(), categories=("directors", "lectures"))


if __name__ == "__main__":
    unittest.main()
