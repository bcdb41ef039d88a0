"""Category model for the two-level activity hierarchy."""

from dataclasses import dataclass, field
from typing import List, Optional

ROOT_LEVEL = 0
LEAF_LEVEL = 1


@dataclass
class Category:
    """Represents a user-defined activity category.

    Attributes:
        id: Unique identifier (uuid string).
        user_id: Owner of the category.
        name: Display name.
        color: Hex color, e.g. "#10B981".
        parent_id: Parent category ID; set only for level 1 categories.
        level: 0 for root categories, 1 for leaf categories.
        sort_order: Display order among siblings.
        daily_time_goal_minutes: Optional daily time goal.
        weekly_time_goal_minutes: Optional weekly time goal.
        goal_type: One of "time", "boolean" or "both".
        is_boolean_goal: Whether completion is tracked as a yes/no goal.
        boolean_goal_label: Label shown for the completion goal.
        description: Optional description.
        is_active: False once the category has been soft-deleted.
        children: Leaf categories, filled in by the tree builder only.
    """

    id: str
    user_id: str
    name: str
    color: str = "#10B981"
    parent_id: Optional[str] = None
    level: int = ROOT_LEVEL
    sort_order: int = 0
    daily_time_goal_minutes: Optional[int] = None
    weekly_time_goal_minutes: Optional[int] = None
    goal_type: str = "time"
    is_boolean_goal: bool = False
    boolean_goal_label: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    children: List["Category"] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.level == ROOT_LEVEL

    def to_dict(self, include_children: bool = True) -> dict:
        """Convert category to a JSON-friendly dictionary."""
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "color": self.color,
            "parent_id": self.parent_id,
            "level": self.level,
            "sort_order": self.sort_order,
            "daily_time_goal_minutes": self.daily_time_goal_minutes,
            "weekly_time_goal_minutes": self.weekly_time_goal_minutes,
            "goal_type": self.goal_type,
            "is_boolean_goal": self.is_boolean_goal,
            "boolean_goal_label": self.boolean_goal_label,
            "description": self.description,
            "is_active": self.is_active,
        }
        if include_children:
            data["children"] = [child.to_dict() for child in self.children]
        return data
