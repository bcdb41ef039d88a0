"""Helper utilities for tests."""

from datetime import datetime
from pathlib import Path
import sqlite3

from models.activity import Activity
from models.category import Category, ROOT_LEVEL, LEAF_LEVEL

# Wednesday; the week starting Sunday runs 2024-03-03 to 2024-03-09
NOW = datetime(2024, 3, 6, 12, 0)


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Run all SQL migrations in order.

    Args:
        conn: SQLite connection to run migrations against.
        migrations_dir: Path to directory containing .sql migration files.
    """
    for migration_file in sorted(migrations_dir.glob("*.sql")):
        with open(migration_file, "r") as f:
            conn.executescript(f.read())

    conn.commit()


def root(id, sort_order=0, daily=None, weekly=None, name=None):
    """Build an in-memory root category."""
    return Category(
        id=id,
        user_id="user-1",
        name=name or id,
        level=ROOT_LEVEL,
        sort_order=sort_order,
        daily_time_goal_minutes=daily,
        weekly_time_goal_minutes=weekly,
    )


def leaf(id, parent_id, sort_order=0, name=None):
    """Build an in-memory leaf category."""
    return Category(
        id=id,
        user_id="user-1",
        name=name or id,
        parent_id=parent_id,
        level=LEAF_LEVEL,
        sort_order=sort_order,
    )


def activity(category_id, minutes, when: datetime, id=None):
    """Build an in-memory activity."""
    return Activity(
        id=id or f"{category_id}-{when.isoformat()}-{minutes}",
        user_id="user-1",
        category_id=category_id,
        date_time=when,
        duration_minutes=minutes,
    )
