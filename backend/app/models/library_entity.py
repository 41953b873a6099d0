"""Mergeable library entity ORM models (people and works)."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, CreatedAtMixin, IdMixin


class LibraryEntityMixin(IdMixin, CreatedAtMixin):
    """Columns shared by every mergeable category table."""

    hebrew_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Director(Base, LibraryEntityMixin):
    """Film director."""

    __tablename__ = "directors"

    name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)


class Writer(Base, LibraryEntityMixin):
    """Writer or author."""

    __tablename__ = "writers"

    name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)


class Philosopher(Base, LibraryEntityMixin):
    __tablename__ = "philosophers"

    name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)


class Painter(Base, LibraryEntityMixin):
    __tablename__ = "painters"

    name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)


class Film(Base, LibraryEntityMixin):
    """Film title discussed in lectures."""

    __tablename__ = "films"

    title: Mapped[str] = mapped_column(String(255), index=True, nullable=False)


class Book(Base, LibraryEntityMixin):
    __tablename__ = "books"

    title: Mapped[str] = mapped_column(String(255), index=True, nullable=False)


class Painting(Base, LibraryEntityMixin):
    __tablename__ = "paintings"

    title: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
