"""Duplicate detection package."""

from app.entity_resolution.grouping import DisjointSet, build_duplicate_groups
from app.entity_resolution.similarity import (
    FUZZY_THRESHOLD,
    levenshtein_distance,
    name_similarity,
    normalize_display_name,
)
from app.entity_resolution.types import (
    CatalogEntity,
    DuplicateGroup,
    DuplicateGroups,
    EntityRef,
    group_signature,
    manual_merge_signature,
)

__all__ = [
    "FUZZY_THRESHOLD",
    "CatalogEntity",
    "DisjointSet",
    "DuplicateGroup",
    "DuplicateGroups",
    "EntityRef",
    "build_duplicate_groups",
    "group_signature",
    "levenshtein_distance",
    "manual_merge_signature",
    "name_similarity",
    "normalize_display_name",
]
