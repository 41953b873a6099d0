"""Mergeable entity category registry and comparability policy."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from functools import partial
from typing import Any

from app.config import get_settings
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


@dataclass(frozen=True, slots=True)
class CategorySpec:
    """Schema facts for one mergeable category."""

    key: str
    label: str
    name_field: str
    model: type[Any]
    link_model: type[Any] | None
    link_fk: str | None

    @property
    def link_table(self) -> str | None:
        if self.link_model is None:
            return None
        return self.link_model.__tablename__

    @property
    def name_column(self) -> Any:
        return getattr(self.model, self.name_field)

    @property
    def link_fk_column(self) -> Any:
        if self.link_model is None or self.link_fk is None:
            return None
        return getattr(self.link_model, self.link_fk)


# Order matters: scans enumerate categories in this order.
MERGEABLE_CATEGORIES: tuple[str, ...] = (
    "directors",
    "writers",
    "philosophers",
    "films",
    "books",
    "painters",
    "paintings",
)

CATEGORY_SPECS: dict[str, CategorySpec] = {
    "directors": CategorySpec("directors", "Directors", "name", Director, LectureDirector, "director_id"),
    "films": CategorySpec("films", "Films", "title", Film, LectureFilm, "film_id"),
    "writers": CategorySpec("writers", "Writers", "name", Writer, LectureWriter, "writer_id"),
    "books": CategorySpec("books", "Books", "title", Book, LectureBook, "book_id"),
    "painters": CategorySpec("painters", "Painters", "name", Painter, LecturePainter, "painter_id"),
    "paintings": CategorySpec("paintings", "Paintings", "title", Painting, LecturePainting, "painting_id"),
    "philosophers": CategorySpec(
        "philosophers", "Philosophers", "name", Philosopher, LecturePhilosopher, "philosopher_id"
    ),
}

COMPARABILITY_POLICIES: tuple[str, ...] = ("open", "same_category", "families")


def get_category_spec(category: str | None) -> CategorySpec | None:
    """Return the registry entry for a mergeable category key."""

    if not category:
        return None
    return CATEGORY_SPECS.get(category.strip().lower())


def is_mergeable_category(category: str | None) -> bool:
    return get_category_spec(category) is not None


def can_compare(
    category_a: str,
    category_b: str,
    *,
    policy: str | None = None,
    families: Mapping[str, Sequence[str]] | None = None,
) -> bool:
    """Return whether two categories may appear in the same duplicate group.

    ``open`` lets any two mergeable categories meet and leaves the call to the
    operator. ``same_category`` only pairs identical categories. ``families``
    also pairs categories listed together under one family name.
    """

    if not is_mergeable_category(category_a) or not is_mergeable_category(category_b):
        return False
    if category_a == category_b:
        return True

    settings = get_settings()
    resolved_policy = policy or settings.merge_comparability
    if resolved_policy == "open":
        return True
    if resolved_policy == "same_category":
        return False
    if resolved_policy == "families":
        resolved_families = families if families is not None else settings.merge_category_families
        return any(
            category_a in members and category_b in members
            for members in resolved_families.values()
        )
    raise ValueError(f"Unknown comparability policy: {resolved_policy}")


def comparability_predicate(
    policy: str | None = None,
    families: Mapping[str, Sequence[str]] | None = None,
) -> Callable[[str, str], bool]:
    """Bind a policy into a two-argument ``can_compare`` predicate."""

    if policy is not None and policy not in COMPARABILITY_POLICIES:
        raise ValueError(f"Unknown comparability policy: {policy}")
    return partial(can_compare, policy=policy, families=families)
