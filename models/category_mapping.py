"""CategoryMapping model linking free text to a category pair."""

from dataclasses import dataclass


@dataclass
class CategoryMapping:
    """A learned mapping from free text to a root/leaf category pair.

    Attributes:
        user_id: Owner of the mapping.
        text_input: Lower-cased activity text the mapping applies to.
        category_id: Root category ID.
        subcategory_id: Leaf category ID.
        confidence_score: 1.0 for user-confirmed mappings.
    """

    user_id: str
    text_input: str
    category_id: str
    subcategory_id: str
    confidence_score: float = 1.0

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "text_input": self.text_input,
            "category_id": self.category_id,
            "subcategory_id": self.subcategory_id,
            "confidence_score": self.confidence_score,
        }
