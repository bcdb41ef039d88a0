import logging
from dataclasses import dataclass, asdict
from typing import List, Optional

from ingestion.text_log import ParsedEntry
from models.category import Category, ROOT_LEVEL, LEAF_LEVEL
from models.category_mapping import CategoryMapping

logger = logging.getLogger(__name__)

NAME_MATCH_CONFIDENCE = 0.8
FUZZY_MATCH_CONFIDENCE = 0.6


@dataclass
class CategoryMatch:
    category_id: str
    subcategory_id: str
    confidence_score: float

    def to_dict(self) -> dict:
        return asdict(self)


def _contains_either_way(a: str, b: str) -> bool:
    a, b = a.lower(), b.lower()
    return a in b or b in a


def find_category_mapping(
    entry: ParsedEntry,
    categories: List[Category],
    mappings: List[CategoryMapping],
) -> Optional[CategoryMatch]:
    """
    Suggest a root/leaf category pair for a parsed log entry.

    Tries, in order:
    1. A stored mapping for the entry's category (or activity) text.
    2. Category and subcategory names containing, or contained in, the
       entry's category and subcategory.
    3. Any word of the activity overlapping a word of a category name.
    """
    key = (entry.category or entry.activity).lower()
    for mapping in mappings:
        if mapping.text_input.lower() == key:
            return CategoryMatch(
                category_id=mapping.category_id,
                subcategory_id=mapping.subcategory_id,
                confidence_score=mapping.confidence_score,
            )

    roots = [c for c in categories if c.level == ROOT_LEVEL]
    leaves = [c for c in categories if c.level == LEAF_LEVEL]

    if entry.category and entry.subcategory:
        root = next(
            (c for c in roots if _contains_either_way(c.name, entry.category)), None
        )
        if root is not None:
            leaf = next(
                (
                    c
                    for c in leaves
                    if c.parent_id == root.id
                    and _contains_either_way(c.name, entry.subcategory)
                ),
                None,
            )
            if leaf is not None:
                return CategoryMatch(root.id, leaf.id, NAME_MATCH_CONFIDENCE)

    activity_words = entry.activity.lower().split()
    for category in roots + leaves:
        category_words = category.name.lower().split()
        if not any(
            word in cat_word or cat_word in word
            for word in activity_words
            for cat_word in category_words
        ):
            continue

        # Only the first overlapping category is considered
        if category.level == ROOT_LEVEL:
            first_child = next((c for c in leaves if c.parent_id == category.id), None)
            if first_child is None:
                return None
            return CategoryMatch(category.id, first_child.id, FUZZY_MATCH_CONFIDENCE)
        return CategoryMatch(category.parent_id, category.id, FUZZY_MATCH_CONFIDENCE)

    logger.debug(f"No category match for: {entry.raw_text}")
    return None
