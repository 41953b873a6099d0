"""Unit tests for exact/similar duplicate group construction."""

import unittest

from app.entity_resolution.grouping import DisjointSet, build_duplicate_groups
from app.entity_resolution.types import CatalogEntity, EntityRef, group_signature, manual_merge_signature
from app.schema.categories import can_compare, comparability_predicate

_OPEN = comparability_predicate("open")


def _entity(entity_id: int, category: str, name: str) -> CatalogEntity:
    return CatalogEntity(id=entity_id, category=category, display_name=name)


class DisjointSetTests(unittest.TestCase):
    def test_union_joins_components_transitively(self) -> None:
        components = DisjointSet()
        components.union("a", "b")
        components.union("c", "d")
        self.assertNotEqual(components.find("a"), components.find("c"))

        components.union("b", "d")
        self.assertEqual(components.find("a"), components.find("c"))
        self.assertEqual(components.find("e"), "e")


class DuplicateGroupTests(unittest.TestCase):
    def test_three_identical_names_form_one_exact_group(self) -> None:
        catalog = [
            _entity(1, "directors", "Stanley Kubrick"),
            _entity(7, "directors", "stanley kubrick"),
            _entity(3, "writers", "  Stanley Kubrick"),
            _entity(4, "films", "Barry Lyndon"),
        ]

        groups = build_duplicate_groups(catalog, can_compare=_OPEN)

        self.assertEqual(len(groups.exact), 1)
        self.assertEqual(groups.similar, [])
        group = groups.exact[0]
        self.assertEqual(group.match_type, "exact")
        self.assertEqual(group.similarity, 1.0)
        self.assertEqual(group.name, "Stanley Kubrick")
        self.assertEqual([entity.key for entity in group.entities], ["directors:1", "directors:7", "writers:3"])

    def test_boundary_pair_lands_in_similar_group(self) -> None:
        catalog = [_entity(1, "writers", "Kafka"), _entity(2, "writers", "Kafke")]

        groups = build_duplicate_groups(catalog, can_compare=_OPEN)

        self.assertEqual(groups.exact, [])
        self.assertEqual(len(groups.similar), 1)
        self.assertAlmostEqual(groups.similar[0].similarity, 0.8)
        self.assertEqual(groups.similar[0].name, "Kafka")

    def test_exact_members_are_excluded_from_similar_pass(self) -> None:
        catalog = [
            _entity(1, "philosophers", "Immanuel Kant"),
            _entity(2, "philosophers", "Immanuel Kant"),
            _entity(3, "writers", "Kant"),
        ]

        groups = build_duplicate_groups(catalog, can_compare=_OPEN)

        self.assertEqual(len(groups.exact), 1)
        self.assertEqual(groups.similar, [])

    def test_similar_groups_are_chain_connected(self) -> None:
        catalog = [
            _entity(1, "directors", "Fellini"),
            _entity(2, "directors", "Felini"),
            _entity(3, "directors", "Felin"),
            _entity(4, "directors", "Antonioni"),
        ]

        groups = build_duplicate_groups(catalog, can_compare=_OPEN)

        self.assertEqual(len(groups.similar), 1)
        group = groups.similar[0]
        self.assertEqual([entity.id for entity in group.entities], [1, 2, 3])
        self.assertEqual(group.name, "Fellini")
        self.assertAlmostEqual(group.similarity, 1.0 - 1 / 7)

    def test_same_category_policy_keeps_categories_apart(self) -> None:
        catalog = [
            _entity(1, "directors", "Ingmar Bergman"),
            _entity(1, "writers", "Ingmar Bergman"),
        ]

        groups = build_duplicate_groups(catalog, can_compare=comparability_predicate("same_category"))

        self.assertEqual(groups.exact, [])
        self.assertEqual(groups.similar, [])

    def test_families_policy_pairs_people_but_not_works(self) -> None:
        families = {"person": ["directors", "writers"], "work": ["films", "books"]}
        compare = comparability_predicate("families", families)

        self.assertTrue(compare("directors", "writers"))
        self.assertFalse(compare("directors", "films"))
        self.assertTrue(compare("films", "films"))
        self.assertFalse(can_compare("directors", "courses", policy="open"))
        with self.assertRaises(ValueError):
            comparability_predicate("nearest")

        catalog = [
            _entity(2, "films", "Solaris"),
            _entity(1, "directors", "Solaris"),
            _entity(3, "books", "Solaris"),
        ]
        groups = build_duplicate_groups(catalog, can_compare=compare)
        self.assertEqual(len(groups.exact), 1)
        self.assertEqual([entity.key for entity in groups.exact[0].entities], ["films:2", "books:3"])
        self.assertEqual(groups.similar, [])

    def test_signature_ignores_ids_but_tracks_categories(self) -> None:
        first = build_duplicate_groups(
            [_entity(1, "directors", "Andrei Tarkovsky"), _entity(2, "writers", "Andrei Tarkovsky")],
            can_compare=_OPEN,
        ).exact[0]
        renumbered = build_duplicate_groups(
            [_entity(41, "directors", "Andrei Tarkovsky"), _entity(99, "writers", "Andrei Tarkovsky")],
            can_compare=_OPEN,
        ).exact[0]
        recategorized = build_duplicate_groups(
            [_entity(1, "directors", "Andrei Tarkovsky"), _entity(2, "directors", "Andrei Tarkovsky")],
            can_compare=_OPEN,
        ).exact[0]

        self.assertEqual(first.signature, "andrei tarkovsky|directors,writers")
        self.assertEqual(first.signature, renumbered.signature)
        self.assertNotEqual(first.member_key, renumbered.member_key)
        self.assertNotEqual(first.signature, recategorized.signature)
        self.assertEqual(group_signature("X", ["writers", "books"]), "x|books,writers")

    def test_signature_trims_and_folds_the_group_name(self) -> None:
        self.assertEqual(
            group_signature("  Stanley Kubrick ", ["writers", "directors"]),
            group_signature("stanley kubrick", ["directors", "writers"]),
        )
        self.assertEqual(group_signature("   ", ["films", "books"]), "|books,films")

    def test_manual_merge_signature_format(self) -> None:
        signature = manual_merge_signature(EntityRef(id=3, category="films"), EntityRef(id=9, category="books"))
        self.assertEqual(signature, "custom:films:3:books:9")


if __name__ == "__main__":
    unittest.main()
