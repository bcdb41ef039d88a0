"""Derived per-category activity summary."""

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class CategoryActivitySummary:
    """Time logged against a root category and its children.

    Attributes:
        category_id: Root category ID.
        total_time: All minutes logged against the root and its children.
        subcategory_times: Minutes keyed by the logged category's ID.
        daily_time: Minutes logged today.
        weekly_time: Minutes logged in the current calendar week.
        daily_goal_progress: Percent of the daily goal met, 0 to 100.
        weekly_goal_progress: Percent of the weekly goal met, 0 to 100.
        today_remaining: Minutes still needed to meet today's goal.
    """

    category_id: str
    total_time: int = 0
    subcategory_times: Dict[str, int] = field(default_factory=dict)
    daily_time: int = 0
    weekly_time: int = 0
    daily_goal_progress: float = 0.0
    weekly_goal_progress: float = 0.0
    today_remaining: int = 0

    def to_dict(self) -> dict:
        return {
            "categoryId": self.category_id,
            "totalTime": self.total_time,
            "subcategoryTimes": dict(self.subcategory_times),
            "dailyTime": self.daily_time,
            "weeklyTime": self.weekly_time,
            "dailyGoalProgress": self.daily_goal_progress,
            "weeklyGoalProgress": self.weekly_goal_progress,
            "todayRemaining": self.today_remaining,
        }
