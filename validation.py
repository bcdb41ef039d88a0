"""Field validation and sanitising for category writes.

Validators return a list of human readable problems rather than raising,
so a caller can report every problem with a request at once.
"""

import re
from typing import Any, List

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")
GOAL_TYPES = ("time", "boolean", "both")

MAX_DAILY_GOAL_MINUTES = 1440
MAX_WEEKLY_GOAL_MINUTES = 10080
MAX_SORT_ORDER = 999

# Parent values that clear a category's parent
NO_PARENT_VALUES = ("none", "", None)


def is_hex_color(value: Any) -> bool:
    return isinstance(value, str) and bool(HEX_COLOR_PATTERN.match(value))


def is_valid_string(value: Any, min_length: int = 1, max_length: int = 100) -> bool:
    return (
        isinstance(value, str) and min_length <= len(value.strip()) <= max_length
    )


def is_valid_number(value: Any, minimum: float = 0, maximum: float = float("inf")) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return minimum <= value <= maximum


def validate_category_fields(fields: dict) -> List[str]:
    """Validate the category fields present in ``fields``.

    Only keys that are present are checked, so the same rules serve both
    creation (all fields) and partial updates.

    Args:
        fields: Mapping of category field name to proposed value.

    Returns:
        List of error messages; empty when everything is valid.
    """
    errors = []

    if "name" in fields and not is_valid_string(fields["name"], 1, 100):
        errors.append("Name must be between 1 and 100 characters")

    if "color" in fields and not is_hex_color(fields["color"]):
        errors.append("Color must be a valid 6-digit hex code (e.g., #FF0000)")

    if "goal_type" in fields and fields["goal_type"] not in GOAL_TYPES:
        errors.append("Goal type must be one of: time, boolean, both")

    description = fields.get("description")
    if description is not None and not is_valid_string(description, 0, 500):
        errors.append("Description must be no more than 500 characters")

    label = fields.get("boolean_goal_label")
    if label is not None and not is_valid_string(label, 0, 100):
        errors.append("Boolean goal label must be no more than 100 characters")

    daily = fields.get("daily_time_goal_minutes")
    if daily is not None and not is_valid_number(daily, 0, MAX_DAILY_GOAL_MINUTES):
        errors.append("Daily time goal must be between 0 and 1440 minutes")

    weekly = fields.get("weekly_time_goal_minutes")
    if weekly is not None and not is_valid_number(weekly, 0, MAX_WEEKLY_GOAL_MINUTES):
        errors.append("Weekly time goal must be between 0 and 10080 minutes")

    sort_order = fields.get("sort_order")
    if sort_order is not None and not is_valid_number(sort_order, 0, MAX_SORT_ORDER):
        errors.append("Sort order must be between 0 and 999")

    level = fields.get("level")
    if level is not None and level not in (0, 1):
        errors.append("Level must be 0 (top-level) or 1 (subcategory)")

    return errors


def sanitize_category_changes(fields: dict) -> dict:
    """Normalise a partial category update.

    Strings are trimmed, blank names and colors are ignored, colors are
    upper-cased, and "none" or an empty parent clears the parent.

    Args:
        fields: Raw update fields.

    Returns:
        Dictionary holding only the fields that should be written.
    """
    changes = {}

    name = fields.get("name")
    if name is not None and name.strip():
        changes["name"] = name.strip()

    color = fields.get("color")
    if color is not None and color.strip():
        changes["color"] = color.strip().upper()

    for key in ("description", "boolean_goal_label"):
        if key in fields:
            value = fields[key]
            changes[key] = None if value is None else value.strip()

    if fields.get("goal_type") is not None:
        changes["goal_type"] = fields["goal_type"]

    for key in ("is_boolean_goal", "is_active"):
        if fields.get(key) is not None:
            changes[key] = bool(fields[key])

    for key in ("daily_time_goal_minutes", "weekly_time_goal_minutes"):
        if key in fields:
            value = fields[key]
            changes[key] = None if value is None else int(value)

    for key in ("sort_order", "level"):
        if fields.get(key) is not None:
            changes[key] = int(fields[key])

    if "parent_id" in fields:
        parent_id = fields["parent_id"]
        changes["parent_id"] = None if parent_id in NO_PARENT_VALUES else parent_id

    return changes
