"""Mergeable category registry."""

from app.schema.categories import (
    CATEGORY_SPECS,
    MERGEABLE_CATEGORIES,
    CategorySpec,
    can_compare,
    comparability_predicate,
    get_category_spec,
)

__all__ = [
    "CATEGORY_SPECS",
    "MERGEABLE_CATEGORIES",
    "CategorySpec",
    "can_compare",
    "comparability_predicate",
    "get_category_spec",
]
