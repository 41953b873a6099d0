"""ORM models package exports."""

from app.models.lecture import Course, Lecture
from app.models.lecture_link import (
    LectureBook,
    LectureDirector,
    LectureFilm,
    LecturePainter,
    LecturePainting,
    LecturePhilosopher,
    LectureWriter,
)
from app.models.library_entity import Book, Director, Film, Painter, Painting, Philosopher, Writer
from app.models.merge_history import MergeHistoryEntry

__all__ = [
    "Course",
    "Lecture",
    "Director",
    "Writer",
    "Philosopher",
    "Painter",
    "Film",
    "Book",
    "Painting",
    "LectureDirector",
    "LectureWriter",
    "LecturePhilosopher",
    "LecturePainter",
    "LectureFilm",
    "LectureBook",
    "LecturePainting",
    "MergeHistoryEntry",
]
