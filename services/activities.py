"""Activity service for database operations."""

from datetime import datetime
from typing import Dict, List, Optional

from events import ACTIVITY_LOGGED, ACTIVITY_DELETED
from models.activity import Activity
from models.summary import CategoryActivitySummary
from tools.activity_summary import summarize_category_activity
from tools.category_tree import build_category_tree

_ACTIVITY_FIELDS = """id, user_id, category_id, name, date_time, duration_minutes,
       notes, is_completed"""

_ACTIVITY_INSERT_PLACEHOLDERS = (
    f"({', '.join(['?'] * len(_ACTIVITY_FIELDS.split(',')))})"
)

DEFAULT_BATCH_SIZE = 100


class ActivityService:
    """Service for managing logged activities."""

    def __init__(self, db_manager, categories=None, event_bus=None):
        """Initialize the activity service.

        Args:
            db_manager: Database manager instance for database operations.
            categories: CategoryService used to build summaries.
            event_bus: Optional EventBus notified after every write.
        """
        self.db_manager = db_manager
        self.categories = categories
        self.event_bus = event_bus

    def create(self, activity: Activity) -> Activity:
        """Insert a single activity.

        Raises:
            ValueError: If the duration is negative.
            sqlite3.IntegrityError: If the category does not exist.
        """
        self.bulk_create([activity])
        return activity

    def bulk_create(
        self, activities: List[Activity], batch_size: int = DEFAULT_BATCH_SIZE
    ) -> int:
        """Insert activities in batches.

        Each batch commits on its own. If a batch fails, earlier batches
        stay inserted and the error propagates.

        Args:
            activities: Activities to insert.
            batch_size: Number of rows per transaction.

        Returns:
            Number of activities inserted.
        """
        if not activities:
            return 0

        for activity in activities:
            if activity.duration_minutes < 0:
                raise ValueError("Duration cannot be negative")

        inserted = 0
        with self.db_manager.connect() as conn:
            for start in range(0, len(activities), batch_size):
                batch = activities[start : start + batch_size]
                try:
                    conn.executemany(
                        f"""
                        INSERT INTO activities ({_ACTIVITY_FIELDS})
                        VALUES {_ACTIVITY_INSERT_PLACEHOLDERS}
                        """,
                        [self._activity_to_row(a) for a in batch],
                    )
                    conn.commit()
                except Exception:
                    conn.rollback()
                    raise
                inserted += len(batch)

        per_user: Dict[str, int] = {}
        for activity in activities:
            per_user[activity.user_id] = per_user.get(activity.user_id, 0) + 1
        for user_id, count in per_user.items():
            self._publish(ACTIVITY_LOGGED, user_id, inserted=count)

        return inserted

    def find(self, user_id: str, activity_id: str) -> Optional[Activity]:
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"SELECT {_ACTIVITY_FIELDS} FROM activities WHERE id = ? AND user_id = ?",
                (activity_id, user_id),
            ).fetchone()
            return self._row_to_activity(row) if row else None

    def find_by_user(self, user_id: str, limit: Optional[int] = None) -> List[Activity]:
        """Get a user's activities, newest first.

        Args:
            user_id: Owner of the activities.
            limit: Optional maximum number of activities.
        """
        query = f"""
            SELECT {_ACTIVITY_FIELDS}
            FROM activities
            WHERE user_id = ?
            ORDER BY date_time DESC, id
        """
        params: list = [user_id]
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        with self.db_manager.connect() as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_activity(row) for row in rows]

    def find_by_date_range(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        category_ids: Optional[List[str]] = None,
    ) -> List[Activity]:
        """Get activities starting within ``[start, end]``, newest first.

        Args:
            user_id: Owner of the activities.
            start: Inclusive lower bound.
            end: Inclusive upper bound.
            category_ids: Optional list of category IDs to filter by.
        """
        query = f"""
            SELECT {_ACTIVITY_FIELDS}
            FROM activities
            WHERE user_id = ? AND date_time >= ? AND date_time <= ?
        """
        params = [user_id, start.isoformat(), end.isoformat()]

        if category_ids:
            placeholders = ", ".join(["?"] * len(category_ids))
            query += f" AND category_id IN ({placeholders})"
            params.extend(category_ids)

        query += " ORDER BY date_time DESC, id"

        with self.db_manager.connect() as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_activity(row) for row in rows]

    def delete(self, user_id: str, activity_id: str) -> bool:
        """Delete an activity.

        Returns:
            True if the activity was deleted, False if not found.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM activities WHERE id = ? AND user_id = ?",
                (activity_id, user_id),
            )
            conn.commit()
            deleted = cursor.rowcount > 0

        if deleted:
            self._publish(ACTIVITY_DELETED, user_id, activity_id=activity_id)
        return deleted

    def summary(
        self, user_id: str, now: datetime, week_start: str = "sunday"
    ) -> Dict[str, CategoryActivitySummary]:
        """Summarize the user's logged time per root category."""
        tree = build_category_tree(self.categories.find_all(user_id))
        return summarize_category_activity(
            tree, self.find_by_user(user_id), now, week_start
        )

    def _publish(self, name: str, user_id: str, **payload) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(name, {"user_id": user_id, **payload})

    def _activity_to_row(self, activity: Activity) -> tuple:
        return (
            activity.id,
            activity.user_id,
            activity.category_id,
            activity.name,
            activity.date_time.isoformat(),
            activity.duration_minutes,
            activity.notes,
            int(activity.is_completed),
        )

    def _row_to_activity(self, row: tuple) -> Activity:
        """Convert a database row to an Activity object."""
        return Activity(
            id=row[0],
            user_id=row[1],
            category_id=row[2],
            name=row[3],
            date_time=datetime.fromisoformat(row[4]),
            duration_minutes=row[5],
            notes=row[6],
            is_completed=bool(row[7]),
        )
