import sqlite3
import pytest

from cli.migrate import apply_pending, migration_status
from config import get_migrations_dir


class StubDatabaseManager:
    """Only provides the migrations directory."""

    def __init__(self, migrations_dir):
        self.migrations_dir = migrations_dir

    def get_migrations_dir(self):
        return self.migrations_dir


@pytest.fixture
def conn():
    conn = sqlite3.connect(":memory:")
    yield conn
    conn.close()


class TestMigrations:
    """Tests for applying schema migrations."""

    def test_fresh_database_is_pending(self, conn):
        status = migration_status(conn, StubDatabaseManager(get_migrations_dir()))

        assert status == [("001_initial_schema.sql", False)]

    def test_apply_creates_schema(self, conn):
        """Test that the initial migration creates every table."""
        db_manager = StubDatabaseManager(get_migrations_dir())

        applied = apply_pending(conn, db_manager)

        assert applied == ["001_initial_schema.sql"]
        tables = {
            row[0]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        }
        assert {"categories", "activities", "category_mappings"} <= tables
        assert migration_status(conn, db_manager) == [("001_initial_schema.sql", True)]

    def test_apply_is_idempotent(self, conn):
        db_manager = StubDatabaseManager(get_migrations_dir())
        apply_pending(conn, db_manager)

        assert apply_pending(conn, db_manager) == []

    def test_applies_in_file_order(self, conn, tmp_path):
        (tmp_path / "002_second.sql").write_text("CREATE TABLE second (id TEXT);")
        (tmp_path / "001_first.sql").write_text("CREATE TABLE first (id TEXT);")

        applied = apply_pending(conn, StubDatabaseManager(tmp_path))

        assert applied == ["001_first.sql", "002_second.sql"]

    def test_failure_stops_run(self, conn, tmp_path):
        """Test that a broken migration raises and is not recorded."""
        (tmp_path / "001_broken.sql").write_text("CREATE TABLE oops (;")
        (tmp_path / "002_later.sql").write_text("CREATE TABLE later (id TEXT);")
        db_manager = StubDatabaseManager(tmp_path)

        with pytest.raises(sqlite3.OperationalError):
            apply_pending(conn, db_manager)

        assert migration_status(conn, db_manager) == [
            ("001_broken.sql", False),
            ("002_later.sql", False),
        ]

    def test_missing_directory(self, conn, tmp_path):
        assert migration_status(conn, StubDatabaseManager(tmp_path / "missing")) == []
