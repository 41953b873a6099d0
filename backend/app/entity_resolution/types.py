"""Typed duplicate-detection values independent of persistence."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from app.entity_resolution.similarity import normalize_display_name

MatchType = Literal["exact", "similar"]


@dataclass(frozen=True, slots=True)
class EntityRef:
    """Identity of one row: ids are only unique within a category."""

    id: int
    category: str

    @property
    def key(self) -> str:
        return f"{self.category}:{self.id}"


@dataclass(slots=True)
class CatalogEntity:
    """Catalog row enriched with relationship and image facts."""

    id: int
    category: str
    display_name: str
    hebrew_name: str | None = None
    connection_count: int = 0
    has_image: bool = False

    @property
    def key(self) -> str:
        return f"{self.category}:{self.id}"

    @property
    def ref(self) -> EntityRef:
        return EntityRef(id=self.id, category=self.category)


@dataclass(slots=True)
class DuplicateGroup:
    """Candidate duplicates found by one scan."""

    name: str
    entities: list[CatalogEntity]
    match_type: MatchType
    similarity: float

    @property
    def signature(self) -> str:
        return group_signature(self.name, [entity.category for entity in self.entities])

    @property
    def member_key(self) -> str:
        """Id-sensitive identity used to track one group inside a pending set."""

        return "|".join(sorted(entity.key for entity in self.entities))


@dataclass(slots=True)
class DuplicateGroups:
    """Exact and similar groups; no entity appears in both lists."""

    exact: list[DuplicateGroup] = field(default_factory=list)
    similar: list[DuplicateGroup] = field(default_factory=list)


def group_signature(name: str, categories: list[str]) -> str:
    """Stable group identity: normalized name plus sorted member categories.

    Entity ids never take part, so the value is unchanged across id churn.
    """

    return f"{normalize_display_name(name)}|{','.join(sorted(categories))}"


def manual_merge_signature(keep: EntityRef, delete: EntityRef) -> str:
    """Synthetic signature recorded for merges picked outside any group."""

    return f"custom:{keep.category}:{keep.id}:{delete.category}:{delete.id}"
