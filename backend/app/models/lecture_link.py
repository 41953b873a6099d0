"""Lecture-to-entity junction ORM models."""

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from app.models.base import Base, IdMixin


class LectureLinkMixin(IdMixin):
    """Columns shared by every lecture junction table."""

    @declared_attr
    def lecture_id(cls) -> Mapped[int]:
        return mapped_column(ForeignKey("lectures.id", ondelete="CASCADE"), index=True, nullable=False)

    relationship_type: Mapped[str] = mapped_column(String(32), default="discussed", nullable=False)


class LectureDirector(Base, LectureLinkMixin):
    __tablename__ = "lecture_directors"
    __table_args__ = (
        UniqueConstraint("lecture_id", "director_id", name="uq_lecture_directors_lecture_director"),
    )

    director_id: Mapped[int] = mapped_column(
        ForeignKey("directors.id", ondelete="CASCADE"), index=True, nullable=False
    )


class LectureWriter(Base, LectureLinkMixin):
    __tablename__ = "lecture_writers"
    __table_args__ = (
        UniqueConstraint("lecture_id", "writer_id", name="uq_lecture_writers_lecture_writer"),
    )

    writer_id: Mapped[int] = mapped_column(
        ForeignKey("writers.id", ondelete="CASCADE"), index=True, nullable=False
    )


class LecturePhilosopher(Base, LectureLinkMixin):
    __tablename__ = "lecture_philosophers"
    __table_args__ = (
        UniqueConstraint("lecture_id", "philosopher_id", name="uq_lecture_philosophers_lecture_philosopher"),
    )

    philosopher_id: Mapped[int] = mapped_column(
        ForeignKey("philosophers.id", ondelete="CASCADE"), index=True, nullable=False
    )


class LecturePainter(Base, LectureLinkMixin):
    __tablename__ = "lecture_painters"
    __table_args__ = (
        UniqueConstraint("lecture_id", "painter_id", name="uq_lecture_painters_lecture_painter"),
    )

    painter_id: Mapped[int] = mapped_column(
        ForeignKey("painters.id", ondelete="CASCADE"), index=True, nullable=False
    )


class LectureFilm(Base, LectureLinkMixin):
    __tablename__ = "lecture_films"
    __table_args__ = (
        UniqueConstraint("lecture_id", "film_id", name="uq_lecture_films_lecture_film"),
    )

    film_id: Mapped[int] = mapped_column(
        ForeignKey("films.id", ondelete="CASCADE"), index=True, nullable=False
    )


class LectureBook(Base, LectureLinkMixin):
    __tablename__ = "lecture_books"
    __table_args__ = (
        UniqueConstraint("lecture_id", "book_id", name="uq_lecture_books_lecture_book"),
    )

    book_id: Mapped[int] = mapped_column(
        ForeignKey("books.id", ondelete="CASCADE"), index=True, nullable=False
    )


class LecturePainting(Base, LectureLinkMixin):
    __tablename__ = "lecture_paintings"
    __table_args__ = (
        UniqueConstraint("lecture_id", "painting_id", name="uq_lecture_paintings_lecture_painting"),
    )

    painting_id: Mapped[int] = mapped_column(
        ForeignKey("paintings.id", ondelete="CASCADE"), index=True, nullable=False
    )
