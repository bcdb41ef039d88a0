"""Shared pytest fixtures for all tests."""

import sqlite3
import pytest
from pathlib import Path

from cache import MemoryCache
from config import Config, get_migrations_dir
from services.base import Services
from tests.helpers import NOW, run_migrations



@pytest.fixture
def test_db():
    """Create an in-memory SQLite database for testing.

    The connection may be used from the worker threads FastAPI runs
    endpoints on.

    Yields:
        sqlite3.Connection: Connection to in-memory database.
    """
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.execute("PRAGMA foreign_keys = ON")
    yield conn
    conn.close()


@pytest.fixture
def test_config(tmp_path):
    """Create a test configuration pointing to a temporary directory.

    Args:
        tmp_path: pytest tmp_path fixture for temporary directory.

    Returns:
        Config: Test configuration object.
    """
    return Config(
        base_dir=tmp_path / "wellness",
        db_data_dir=tmp_path / "wellness" / "db",
        db_filename="test.db",
        log_level="DEBUG",
        log_dir=tmp_path / "wellness" / "logs",
        user_id="user-1",
        api_allowed_origins=["http://localhost:5173"],
        api_tokens={"token-1": "user-1", "token-2": "user-2"},
    )


@pytest.fixture
def db_manager_with_schema(test_db):
    """Create a DatabaseManager with schema already set up.

    This fixture provides a DatabaseManager that uses an in-memory database
    with all migrations already applied.

    Args:
        test_db: In-memory database connection fixture.

    Returns:
        DatabaseManager: Database manager with schema ready.
    """
    run_migrations(test_db, get_migrations_dir())

    class TestDatabaseManager:
        """Test database manager that uses in-memory connection."""

        def __init__(self, conn):
            self.conn = conn

        def connect(self):
            """Return a context manager for the test connection."""
            return _TestConnectionContext(self.conn)

        def get_db_path(self):
            """Return a fake path for the test database."""
            return Path(":memory:")

        def get_migrations_dir(self):
            """Get the migrations directory path."""
            return get_migrations_dir()

    class _TestConnectionContext:
        """Context manager for test database connections."""

        def __init__(self, conn):
            self.conn = conn

        def __enter__(self):
            return self.conn

        def __exit__(self, exc_type, exc_val, exc_tb):
            # Don't close the connection - let the fixture handle it
            pass

    return TestDatabaseManager(test_db)


@pytest.fixture
def services(test_config, db_manager_with_schema):
    """Create a Services container with test database and a fixed clock.

    Args:
        test_config: Test configuration fixture.
        db_manager_with_schema: Database manager with schema set up.

    Returns:
        Services: Services container for testing.
    """
    return Services(
        test_config,
        db_manager=db_manager_with_schema,
        cache=MemoryCache(),
        clock=lambda: NOW,
    )


@pytest.fixture
def tree(services):
    """Create a small category tree for user-1.

    Returns:
        Dict of the created categories keyed by a short name.
    """
    faith = services.categories.create(
        "user-1", "Faith", color="#8B5CF6", daily_time_goal_minutes=60, sort_order=0
    )
    prayer = services.categories.create("user-1", "Prayer", parent_id=faith.id)
    study = services.categories.create(
        "user-1", "Scripture Study", parent_id=faith.id, sort_order=1
    )
    work = services.categories.create(
        "user-1", "Work", weekly_time_goal_minutes=600, sort_order=1
    )
    meeting = services.categories.create("user-1", "Meeting", parent_id=work.id)
    return {
        "faith": faith,
        "prayer": prayer,
        "study": study,
        "work": work,
        "meeting": meeting,
    }
