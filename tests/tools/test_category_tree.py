"""Tests for category hierarchy tools."""

import logging

from tests.helpers import root, leaf
from tools.category_tree import build_category_tree, find_orphans, flatten_tree


class TestBuildCategoryTree:
    """Tests for build_category_tree function."""

    def test_empty_input(self):
        """Test that no categories give an empty forest."""
        assert build_category_tree([]) == []

    def test_attaches_children_to_parents(self):
        """Test that leaves end up under their root."""
        categories = [
            root("A"),
            root("B", sort_order=1),
            leaf("A1", "A"),
            leaf("B1", "B"),
            leaf("A2", "A", sort_order=1),
        ]

        tree = build_category_tree(categories)

        assert [r.id for r in tree] == ["A", "B"]
        assert [c.id for c in tree[0].children] == ["A1", "A2"]
        assert [c.id for c in tree[1].children] == ["B1"]

    def test_sorts_both_levels_by_sort_order(self):
        """Test ordering by sort_order at the top level and among children."""
        categories = [
            root("late", sort_order=5),
            root("early", sort_order=1),
            leaf("c2", "early", sort_order=9),
            leaf("c1", "early", sort_order=3),
        ]

        tree = build_category_tree(categories)

        assert [r.id for r in tree] == ["early", "late"]
        assert [c.id for c in tree[0].children] == ["c1", "c2"]

    def test_equal_sort_order_keeps_input_order(self):
        """Test that the sort is stable."""
        tree = build_category_tree([root("X"), root("Y")])
        assert [r.id for r in tree] == ["X", "Y"]

        tree = build_category_tree([root("Y"), root("X")])
        assert [r.id for r in tree] == ["Y", "X"]

    def test_children_order_stable_on_ties(self):
        """Test that tied children keep their input order."""
        categories = [root("P"), leaf("b", "P"), leaf("a", "P"), leaf("c", "P")]

        tree = build_category_tree(categories)

        assert [c.id for c in tree[0].children] == ["b", "a", "c"]

    def test_every_record_appears_exactly_once(self):
        """Test that roots and attached leaves appear once each."""
        categories = [root("A"), root("B"), leaf("A1", "A"), leaf("B1", "B")]

        flat = flatten_tree(build_category_tree(categories))

        assert sorted(c.id for c in flat) == ["A", "A1", "B", "B1"]

    def test_does_not_mutate_input(self):
        """Test that input categories keep empty children lists."""
        parent = root("A")
        child = leaf("A1", "A")

        tree = build_category_tree([parent, child])

        assert parent.children == []
        assert tree[0] is not parent
        assert tree[0].children[0] is not child

    def test_orphans_dropped_with_warning(self, caplog):
        """Test that leaves with a missing parent are left out and logged."""
        categories = [root("A"), leaf("A1", "A"), leaf("lost", "missing")]

        with caplog.at_level(logging.WARNING, logger="wellness"):
            tree = build_category_tree(categories)

        assert [c.id for c in flatten_tree(tree)] == ["A", "A1"]
        assert "lost" in caplog.text

    def test_leaf_pointing_at_leaf_is_orphan(self):
        """Test that a leaf cannot hang under another leaf."""
        categories = [root("A"), leaf("A1", "A"), leaf("deep", "A1")]

        tree = build_category_tree(categories)

        assert [c.id for c in tree[0].children] == ["A1"]
        assert tree[0].children[0].children == []


class TestFindOrphans:
    """Tests for find_orphans function."""

    def test_no_orphans(self):
        """Test a consistent hierarchy has no orphans."""
        assert find_orphans([root("A"), leaf("A1", "A")]) == []

    def test_finds_orphans(self):
        """Test orphans are returned in input order."""
        categories = [leaf("x", "gone"), root("A"), leaf("y", "also-gone")]

        orphans = find_orphans(categories)

        assert [c.id for c in orphans] == ["x", "y"]
