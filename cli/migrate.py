#!/usr/bin/env python3

from logger import get_logger

logger = get_logger()


def ensure_migrations_table(conn):
    conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            migration_file TEXT PRIMARY KEY,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)
    conn.commit()


def migration_status(conn, db_manager):
    """Pair every migration file with whether it has been applied.

    Returns:
        List of (file name, applied) tuples in file name order.
    """
    ensure_migrations_table(conn)
    applied = {
        row[0] for row in conn.execute("SELECT migration_file FROM schema_migrations")
    }

    migrations_dir = db_manager.get_migrations_dir()
    files = sorted(p.name for p in migrations_dir.glob("*.sql")) if migrations_dir.exists() else []
    return [(name, name in applied) for name in files]


def apply_pending(conn, db_manager):
    """Apply every pending migration in order.

    Each file runs as a script and is recorded in schema_migrations. The
    first failure stops the run.

    Returns:
        Names of the migrations applied.
    """
    pending = [name for name, applied in migration_status(conn, db_manager) if not applied]
    migrations_dir = db_manager.get_migrations_dir()

    for name in pending:
        sql = (migrations_dir / name).read_text()
        try:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_migrations (migration_file) VALUES (?)", (name,)
            )
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Error applying migration {name}: {e}")
            raise
        logger.info(f"Applied migration: {name}")

    return pending


def cmd_status(args, db_manager):
    """Show migration status."""
    if not db_manager.get_db_path().exists():
        logger.info(
            "Database does not exist. Run 'python -m cli migrate apply' to create it."
        )
        return

    with db_manager.connect() as conn:
        status = migration_status(conn, db_manager)

    if not status:
        logger.info("No migrations found.")
        return

    logger.info("Migration Status:")
    logger.info("================")
    for name, applied in status:
        logger.info(f"{name}: {'APPLIED' if applied else 'PENDING'}")

    pending_count = sum(1 for _, applied in status if not applied)
    logger.info(f"\nTotal migrations: {len(status)}")
    logger.info(f"Pending: {pending_count}")


def cmd_apply(args, db_manager):
    """Apply pending migrations."""
    with db_manager.connect() as conn:
        applied = apply_pending(conn, db_manager)

    if applied:
        logger.info(f"Successfully applied {len(applied)} migration(s).")
    else:
        logger.info("No pending migrations.")


def setup_parser(subparsers):
    """Setup migrate subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "migrate",
        help="Database migrations",
        description="Manage database schema migrations",
    )

    migrate_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available migration commands",
        dest="subcommand",
        required=True,
    )

    status_parser = migrate_subparsers.add_parser("status", help="Show migration status")
    status_parser.set_defaults(func=cmd_status)

    apply_parser = migrate_subparsers.add_parser("apply", help="Apply pending migrations")
    apply_parser.set_defaults(func=cmd_apply)
