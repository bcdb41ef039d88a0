"""Category hierarchy tools.

Turns the flat category rows of one user into the two-level forest used
by the dashboard and the activity summary.
"""

from dataclasses import replace
from typing import List, Sequence

from models.category import Category, ROOT_LEVEL, LEAF_LEVEL
from logger import get_logger

logger = get_logger()


def _sort_key(category: Category) -> int:
    return category.sort_order


def build_category_tree(categories: Sequence[Category]) -> List[Category]:
    """Build a forest of root categories with their children attached.

    Root categories are returned as copies whose ``children`` list holds the
    leaf categories pointing at them. Both levels are sorted by
    ``sort_order``; Python's sort is stable, so ties keep their input order.
    The input categories are left untouched.

    Leaf categories whose parent is not among the roots are orphans. They
    are left out of the tree and reported in a warning.

    Args:
        categories: Flat list of categories for a single user.

    Returns:
        List of root Category copies, each with ``children`` populated.
    """
    roots = []
    roots_by_id = {}

    for category in categories:
        if category.level == ROOT_LEVEL:
            root = replace(category, children=[])
            roots.append(root)
            roots_by_id[root.id] = root

    orphan_ids = []
    for category in categories:
        if category.level != LEAF_LEVEL:
            continue
        parent = roots_by_id.get(category.parent_id)
        if parent is None:
            orphan_ids.append(category.id)
            continue
        parent.children.append(replace(category, children=[]))

    if orphan_ids:
        logger.warning(
            f"Dropped {len(orphan_ids)} orphaned category(ies) "
            f"without a root parent: {', '.join(orphan_ids)}"
        )

    roots.sort(key=_sort_key)
    for root in roots:
        root.children.sort(key=_sort_key)

    return roots


def find_orphans(categories: Sequence[Category]) -> List[Category]:
    """Find leaf categories whose parent is not a root in the list.

    Args:
        categories: Flat list of categories for a single user.

    Returns:
        Orphaned leaf categories, in input order.
    """
    root_ids = {c.id for c in categories if c.level == ROOT_LEVEL}
    return [
        c
        for c in categories
        if c.level == LEAF_LEVEL and c.parent_id not in root_ids
    ]


def flatten_tree(tree: Sequence[Category]) -> List[Category]:
    """Flatten a category forest back into roots followed by their children."""
    flat = []
    for root in tree:
        flat.append(root)
        flat.extend(root.children)
    return flat
