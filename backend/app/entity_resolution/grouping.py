"""Exact and fuzzy duplicate group construction over a catalog snapshot."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from app.entity_resolution.similarity import is_similar_candidate, name_similarity, normalize_display_name
from app.entity_resolution.types import CatalogEntity, DuplicateGroup, DuplicateGroups
from app.schema.categories import can_compare as default_can_compare

ComparePredicate = Callable[[str, str], bool]


class DisjointSet:
    """Union-find keyed by ``category:id`` with path compression and union by rank."""

    def __init__(self) -> None:
        self._parent: dict[str, str] = {}
        self._rank: dict[str, int] = {}

    def add(self, item: str) -> None:
        if item not in self._parent:
            self._parent[item] = item
            self._rank[item] = 0

    def find(self, item: str) -> str:
        self.add(item)
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, left: str, right: str) -> str:
        root_left = self.find(left)
        root_right = self.find(right)
        if root_left == root_right:
            return root_left
        if self._rank[root_left] < self._rank[root_right]:
            root_left, root_right = root_right, root_left
        self._parent[root_right] = root_left
        if self._rank[root_left] == self._rank[root_right]:
            self._rank[root_left] += 1
        return root_left


def build_duplicate_groups(
    entities: Iterable[CatalogEntity],
    *,
    can_compare: ComparePredicate | None = None,
) -> DuplicateGroups:
    """Split a catalog into exact-name groups and chain-connected similar groups."""

    compare = can_compare or default_can_compare
    catalog = list(entities)
    exact = build_exact_groups(catalog, can_compare=compare)
    exact_keys = {entity.key for group in exact for entity in group.entities}
    candidates = [entity for entity in catalog if entity.key not in exact_keys]
    similar = build_similar_groups(candidates, can_compare=compare)
    return DuplicateGroups(exact=exact, similar=similar)


def build_exact_groups(
    entities: list[CatalogEntity],
    *,
    can_compare: ComparePredicate,
) -> list[DuplicateGroup]:
    """Bucket by normalized display name, admitting comparable members only."""

    buckets: dict[str, list[CatalogEntity]] = {}
    for entity in entities:
        buckets.setdefault(normalize_display_name(entity.display_name), []).append(entity)

    groups: list[DuplicateGroup] = []
    for bucket in buckets.values():
        if len(bucket) < 2:
            continue
        admitted: list[CatalogEntity] = []
        for entity in bucket:
            if not admitted or any(can_compare(member.category, entity.category) for member in admitted):
                admitted.append(entity)
        if len(admitted) < 2:
            continue
        groups.append(
            DuplicateGroup(
                name=admitted[0].display_name,
                entities=admitted,
                match_type="exact",
                similarity=1.0,
            )
        )
    return groups


def build_similar_groups(
    candidates: list[CatalogEntity],
    *,
    can_compare: ComparePredicate,
) -> list[DuplicateGroup]:
    """Union every above-threshold comparable pair; components become groups.

    Members of a component are chain-connected above the threshold, not
    necessarily pairwise similar. The pair scan is quadratic in the candidate
    count.
    """

    components = DisjointSet()
    pair_scores: list[tuple[str, str, float]] = []
    for i, left in enumerate(candidates):
        for right in candidates[i + 1:]:
            if not can_compare(left.category, right.category):
                continue
            score = name_similarity(left.display_name, right.display_name)
            if not is_similar_candidate(score):
                continue
            components.union(left.key, right.key)
            pair_scores.append((left.key, right.key, score))

    if not pair_scores:
        return []

    best_score: dict[str, float] = {}
    for left_key, _, score in pair_scores:
        root = components.find(left_key)
        best_score[root] = max(best_score.get(root, 0.0), score)

    members_by_root: dict[str, list[CatalogEntity]] = {}
    for entity in candidates:
        root = components.find(entity.key)
        if root not in best_score:
            continue
        members_by_root.setdefault(root, []).append(entity)

    groups: list[DuplicateGroup] = []
    for root, members in members_by_root.items():
        if len(members) < 2:
            continue
        groups.append(
            DuplicateGroup(
                name=members[0].display_name,
                entities=members,
                match_type="similar",
                similarity=best_score[root],
            )
        )
    return groups
