"""Activity aggregation tools.

Buckets logged minutes per root category, per child category, per
calendar day and per calendar week, and computes goal progress.
"""

from datetime import datetime
from typing import Dict, Iterable, Sequence

from dateutil.relativedelta import relativedelta, MO, TU, WE, TH, FR, SA, SU

from models.activity import Activity
from models.category import Category
from models.summary import CategoryActivitySummary
from logger import get_logger

logger = get_logger()

WEEK_START_DAYS = {
    "monday": MO,
    "tuesday": TU,
    "wednesday": WE,
    "thursday": TH,
    "friday": FR,
    "saturday": SA,
    "sunday": SU,
}


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=23, minute=59, second=59, microsecond=999999)


def start_of_week(moment: datetime, week_start: str = "sunday") -> datetime:
    """Get the first instant of the week containing ``moment``.

    Args:
        moment: Reference instant.
        week_start: Lower-case name of the first day of the week.

    Raises:
        ValueError: If ``week_start`` is not a day name.
    """
    try:
        weekday = WEEK_START_DAYS[week_start.lower()]
    except KeyError:
        raise ValueError(f"Unknown week start day: {week_start}")
    return start_of_day(moment + relativedelta(weekday=weekday(-1)))


def end_of_week(moment: datetime, week_start: str = "sunday") -> datetime:
    """Get the last instant of the week containing ``moment``."""
    return end_of_day(start_of_week(moment, week_start) + relativedelta(days=6))


def summarize_category_activity(
    tree: Sequence[Category],
    activities: Iterable[Activity],
    now: datetime,
    week_start: str = "sunday",
) -> Dict[str, CategoryActivitySummary]:
    """Summarize logged time per root category.

    Every activity is attributed to a root category: a root owns its own
    activities and a leaf hands them to its parent. Activities whose
    category is not in the tree are skipped.

    Minutes are added to the root's total and to ``subcategory_times`` under
    the activity's own category ID. They also count toward ``daily_time``
    and ``weekly_time`` when the activity starts within today or this week,
    both bounds inclusive.

    Goal progress is only computed for positive goals and is clamped to
    100. Progress values are left unrounded.

    Args:
        tree: Root categories with children, from ``build_category_tree``.
        activities: Activities to aggregate.
        now: Reference instant for the day and week windows.
        week_start: First day of the week, "sunday" by default.

    Returns:
        Dictionary mapping root category ID to its CategoryActivitySummary.

    Example:
        {
            "root-id": CategoryActivitySummary(
                category_id="root-id",
                total_time=30,
                subcategory_times={"leaf-id": 30},
                daily_time=30,
                weekly_time=30,
                daily_goal_progress=50.0,
                weekly_goal_progress=0.0,
                today_remaining=30,
            )
        }
    """
    day_start, day_end = start_of_day(now), end_of_day(now)
    week_begin = start_of_week(now, week_start)
    week_finish = end_of_week(now, week_start)

    summaries: Dict[str, CategoryActivitySummary] = {}
    root_for_category: Dict[str, str] = {}

    for root in tree:
        summaries[root.id] = CategoryActivitySummary(category_id=root.id)
        root_for_category[root.id] = root.id
        for child in root.children:
            root_for_category[child.id] = root.id

    skipped = 0
    for activity in activities:
        root_id = root_for_category.get(activity.category_id)
        if root_id is None:
            skipped += 1
            continue

        summary = summaries[root_id]
        duration = activity.duration_minutes

        summary.total_time += duration
        summary.subcategory_times[activity.category_id] = (
            summary.subcategory_times.get(activity.category_id, 0) + duration
        )

        if day_start <= activity.date_time <= day_end:
            summary.daily_time += duration

        if week_begin <= activity.date_time <= week_finish:
            summary.weekly_time += duration

    if skipped:
        logger.debug(f"Skipped {skipped} activities with unknown categories")

    for root in tree:
        summary = summaries[root.id]

        daily_goal = root.daily_time_goal_minutes
        if daily_goal and daily_goal > 0:
            summary.daily_goal_progress = min(
                100.0, summary.daily_time / daily_goal * 100
            )
            summary.today_remaining = max(0, daily_goal - summary.daily_time)

        weekly_goal = root.weekly_time_goal_minutes
        if weekly_goal and weekly_goal > 0:
            summary.weekly_goal_progress = min(
                100.0, summary.weekly_time / weekly_goal * 100
            )

    return summaries
