"""Category service for database operations."""

import json
import uuid
from datetime import datetime
from typing import List, Optional, Tuple

from config import get_seed_dir
from events import CATEGORY_CHANGED
from models.category import Category, ROOT_LEVEL, LEAF_LEVEL
from tools.category_tree import build_category_tree
from validation import validate_category_fields, sanitize_category_changes
from logger import get_logger

logger = get_logger()

_CATEGORY_SELECT_FIELDS = """id, user_id, name, color, parent_id, level, sort_order,
       daily_time_goal_minutes, weekly_time_goal_minutes, goal_type, is_boolean_goal,
       boolean_goal_label, description, is_active"""

# Columns an update may touch
_UPDATABLE_FIELDS = (
    "name",
    "color",
    "description",
    "boolean_goal_label",
    "goal_type",
    "is_boolean_goal",
    "is_active",
    "daily_time_goal_minutes",
    "weekly_time_goal_minutes",
    "sort_order",
    "level",
    "parent_id",
)


class CategoryNotFoundError(LookupError):
    """Raised when a category does not exist or belongs to another user."""


class CategoryValidationError(ValueError):
    """Raised when category fields fail validation.

    Attributes:
        errors: Every validation message for the request.
    """

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db_manager, event_bus=None):
        """Initialize the category service.

        Args:
            db_manager: Database manager instance for database operations.
            event_bus: Optional EventBus notified after every write.
        """
        self.db_manager = db_manager
        self.event_bus = event_bus

    def find_all(self, user_id: str, active_only: bool = True) -> List[Category]:
        """Get a user's categories.

        Args:
            user_id: Owner of the categories.
            active_only: If True, skip soft-deleted categories.

        Returns:
            List of Category objects, ordered by level then sort order.
        """
        query = f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE user_id = ?"
        if active_only:
            query += " AND is_active = 1"
        query += " ORDER BY level, sort_order, rowid"

        with self.db_manager.connect() as conn:
            cursor = conn.execute(query, (user_id,))
            return [self._row_to_category(row) for row in cursor.fetchall()]

    def find(self, user_id: str, category_id: str) -> Optional[Category]:
        """Get a single category owned by ``user_id``.

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE id = ? AND user_id = ?",
                (category_id, user_id),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_category(row)
            return None

    def find_by_name(
        self, user_id: str, name: str, parent_id: Optional[str] = None
    ) -> Optional[Category]:
        """Get an active category by name among the siblings under ``parent_id``.

        Name comparison is case-insensitive.

        Returns:
            Category object if found, None otherwise.
        """
        query = f"""
            SELECT {_CATEGORY_SELECT_FIELDS}
            FROM categories
            WHERE user_id = ? AND lower(name) = lower(?) AND is_active = 1
        """
        params = [user_id, name]
        if parent_id is None:
            query += " AND parent_id IS NULL"
        else:
            query += " AND parent_id = ?"
            params.append(parent_id)

        with self.db_manager.connect() as conn:
            row = conn.execute(query, params).fetchone()
            return self._row_to_category(row) if row else None

    def create(
        self,
        user_id: str,
        name: str,
        color: str = "#10B981",
        parent_id: Optional[str] = None,
        sort_order: int = 0,
        daily_time_goal_minutes: Optional[int] = None,
        weekly_time_goal_minutes: Optional[int] = None,
        goal_type: str = "time",
        is_boolean_goal: bool = False,
        boolean_goal_label: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Category:
        """Create a new category.

        A category with a parent becomes a level 1 category; the parent must
        be an active root category of the same user.

        Returns:
            The created Category object with id populated.

        Raises:
            CategoryValidationError: If any field is invalid.
            ValueError: If the parent is unknown or not a root category.
        """
        fields = {
            "name": name,
            "color": color,
            "sort_order": sort_order,
            "daily_time_goal_minutes": daily_time_goal_minutes,
            "weekly_time_goal_minutes": weekly_time_goal_minutes,
            "goal_type": goal_type,
            "boolean_goal_label": boolean_goal_label,
            "description": description,
        }
        errors = validate_category_fields(fields)
        if errors:
            raise CategoryValidationError(errors)

        level = ROOT_LEVEL
        if parent_id is not None:
            self._validate_parent(user_id, parent_id)
            level = LEAF_LEVEL

        category = Category(
            id=str(uuid.uuid4()),
            user_id=user_id,
            name=name.strip(),
            color=color.upper(),
            parent_id=parent_id,
            level=level,
            sort_order=sort_order,
            daily_time_goal_minutes=daily_time_goal_minutes,
            weekly_time_goal_minutes=weekly_time_goal_minutes,
            goal_type=goal_type,
            is_boolean_goal=is_boolean_goal,
            boolean_goal_label=boolean_goal_label,
            description=description,
        )

        with self.db_manager.connect() as conn:
            conn.execute(
                f"""
                INSERT INTO categories ({_CATEGORY_SELECT_FIELDS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    category.id,
                    category.user_id,
                    category.name,
                    category.color,
                    category.parent_id,
                    category.level,
                    category.sort_order,
                    category.daily_time_goal_minutes,
                    category.weekly_time_goal_minutes,
                    category.goal_type,
                    int(category.is_boolean_goal),
                    category.boolean_goal_label,
                    category.description,
                    int(category.is_active),
                ),
            )
            conn.commit()

        logger.debug(f"Created category '{category.name}' ({category.id})")
        self._publish(user_id, category.id, "created")
        return category

    def update(
        self, user_id: str, category_id: str, fields: dict
    ) -> Tuple[Category, List[str]]:
        """Apply a partial update to a category.

        Fields are validated, then sanitised. Changing ``parent_id`` also
        moves the category to the matching level unless ``level`` is given.

        Args:
            user_id: Owner of the category.
            category_id: The category ID to update.
            fields: Raw field values keyed by column name.

        Returns:
            Tuple of the updated Category and the names of the changed fields.

        Raises:
            CategoryValidationError: If any field is invalid.
            CategoryNotFoundError: If the category is unknown.
            ValueError: If nothing updatable was given or the change would
                break the two-level hierarchy.
        """
        errors = validate_category_fields(fields)
        if errors:
            raise CategoryValidationError(errors)

        existing = self.find(user_id, category_id)
        if existing is None:
            raise CategoryNotFoundError(f"Category with ID {category_id} not found")

        changes = {
            key: value
            for key, value in sanitize_category_changes(fields).items()
            if key in _UPDATABLE_FIELDS
        }
        if not changes:
            raise ValueError("No valid fields to update")

        if "parent_id" in changes:
            new_parent = changes["parent_id"]
            if new_parent is not None:
                if new_parent == category_id:
                    raise ValueError("A category cannot be its own parent")
                self._validate_parent(user_id, new_parent)
            changes.setdefault("level", LEAF_LEVEL if new_parent else ROOT_LEVEL)

        parent_after = changes.get("parent_id", existing.parent_id)
        level_after = changes.get("level", existing.level)
        if (level_after == LEAF_LEVEL) != (parent_after is not None):
            raise ValueError("Subcategories need a parent and top-level categories cannot have one")
        if level_after == LEAF_LEVEL and existing.level == ROOT_LEVEL:
            if self._has_children(category_id):
                raise ValueError("A category with subcategories cannot become a subcategory")

        fields_updated = list(changes)
        row_values = dict(changes)
        for key in ("is_boolean_goal", "is_active"):
            if key in row_values:
                row_values[key] = int(row_values[key])
        row_values["updated_at"] = datetime.now().isoformat()

        set_clause = ", ".join(f"{key} = ?" for key in row_values)
        with self.db_manager.connect() as conn:
            try:
                conn.execute(
                    f"UPDATE categories SET {set_clause} WHERE id = ? AND user_id = ?",
                    (*row_values.values(), category_id, user_id),
                )
                # Deactivating a root deactivates its subcategories too
                if changes.get("is_active") is False:
                    conn.execute(
                        """
                        UPDATE categories SET is_active = 0, updated_at = ?
                        WHERE user_id = ? AND parent_id = ?
                        """,
                        (row_values["updated_at"], user_id, category_id),
                    )
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        logger.info(
            f"Updated category {category_id}: {', '.join(fields_updated)}"
        )
        self._publish(user_id, category_id, "updated")
        return self.find(user_id, category_id), fields_updated

    def deactivate(self, user_id: str, category_id: str) -> int:
        """Soft-delete a category and its children.

        Returns:
            Number of categories deactivated; 0 if the category is unknown.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                UPDATE categories
                SET is_active = 0, updated_at = ?
                WHERE user_id = ? AND (id = ? OR parent_id = ?)
                """,
                (datetime.now().isoformat(), user_id, category_id, category_id),
            )
            conn.commit()
            count = cursor.rowcount

        if count:
            self._publish(user_id, category_id, "deactivated")
        return count

    def cascade_delete(self, user_id: str, category_id: str) -> bool:
        """Delete a category, its children and every activity logged on them.

        All deletes run in one transaction.

        Returns:
            True if the category was deleted, False if not found.
        """
        with self.db_manager.connect() as conn:
            try:
                ids = [
                    row[0]
                    for row in conn.execute(
                        """
                        SELECT id FROM categories
                        WHERE user_id = ? AND (id = ? OR parent_id = ?)
                        """,
                        (user_id, category_id, category_id),
                    ).fetchall()
                ]
                if category_id not in ids:
                    return False

                placeholders = ", ".join(["?"] * len(ids))
                activity_count = conn.execute(
                    f"DELETE FROM activities WHERE user_id = ? AND category_id IN ({placeholders})",
                    (user_id, *ids),
                ).rowcount
                # Children first, their parent is referenced by foreign key
                conn.execute(
                    "DELETE FROM categories WHERE user_id = ? AND parent_id = ?",
                    (user_id, category_id),
                )
                conn.execute(
                    "DELETE FROM categories WHERE user_id = ? AND id = ?",
                    (user_id, category_id),
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        logger.info(
            f"Deleted category {category_id} with {len(ids) - 1} subcategories "
            f"and {activity_count} activities"
        )
        self._publish(user_id, category_id, "deleted")
        return True

    def seed_defaults(self, user_id: str) -> Tuple[int, int]:
        """Create the default category set for a user.

        Categories that already exist by name are skipped, so seeding twice
        is harmless.

        Returns:
            Tuple of (created count, skipped count).
        """
        seed_file = get_seed_dir() / "default_categories.json"
        with open(seed_file, "r") as f:
            seed_data = json.load(f)

        created = 0
        skipped = 0
        for sort_order, root_data in enumerate(seed_data):
            root = self.find_by_name(user_id, root_data["name"])
            if root:
                skipped += 1
            else:
                root = self.create(
                    user_id,
                    root_data["name"],
                    color=root_data.get("color", "#10B981"),
                    sort_order=sort_order,
                    daily_time_goal_minutes=root_data.get("daily_time_goal_minutes"),
                    weekly_time_goal_minutes=root_data.get("weekly_time_goal_minutes"),
                    description=root_data.get("description"),
                )
                created += 1

            for child_order, child_data in enumerate(root_data.get("children", [])):
                if self.find_by_name(user_id, child_data["name"], parent_id=root.id):
                    skipped += 1
                    continue
                self.create(
                    user_id,
                    child_data["name"],
                    color=child_data.get("color", root.color),
                    parent_id=root.id,
                    sort_order=child_order,
                    description=child_data.get("description"),
                )
                created += 1

        logger.info(f"Seeded default categories for {user_id}: {created} created, {skipped} skipped")
        return created, skipped

    def tree(self, user_id: str) -> List[Category]:
        """Get the user's active categories as a two-level tree."""
        return build_category_tree(self.find_all(user_id))

    def _validate_parent(self, user_id: str, parent_id: str) -> Category:
        parent = self.find(user_id, parent_id)
        if parent is None or not parent.is_active:
            raise ValueError("Parent category not found or access denied")
        if parent.level != ROOT_LEVEL:
            raise ValueError("Parent category must be a top-level category (level 0)")
        return parent

    def _has_children(self, category_id: str) -> bool:
        with self.db_manager.connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM categories WHERE parent_id = ? LIMIT 1", (category_id,)
            ).fetchone()
            return row is not None

    def _publish(self, user_id: str, category_id: str, action: str) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(
                CATEGORY_CHANGED,
                {"user_id": user_id, "category_id": category_id, "action": action},
            )

    def _row_to_category(self, row: tuple) -> Category:
        """Convert a database row to a Category object."""
        return Category(
            id=row[0],
            user_id=row[1],
            name=row[2],
            color=row[3],
            parent_id=row[4],
            level=row[5],
            sort_order=row[6],
            daily_time_goal_minutes=row[7],
            weekly_time_goal_minutes=row[8],
            goal_type=row[9],
            is_boolean_goal=bool(row[10]),
            boolean_goal_label=row[11],
            description=row[12],
            is_active=bool(row[13]),
        )
