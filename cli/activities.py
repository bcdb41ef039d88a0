#!/usr/bin/env python3

import sys
from datetime import datetime, date
from pathlib import Path
from cli.categories import resolve_category
from ingestion import get_ingestion_module
from ingestion.matching import find_category_mapping
from services.entries import BulkEntry, EntryRules
from tools.activity_summary import start_of_day, end_of_day
from logger import get_logger

logger = get_logger()


def _report_result(result):
    """Log a BulkInsertResult and exit non-zero when it failed."""
    for warning in result.warnings:
        logger.warning(f"  Entry {warning['entry']}: {warning['warning']}")

    if result.success:
        logger.info(f"✓ Successfully inserted {result.inserted} of {result.total} entries")
        return

    if result.message:
        logger.error(result.message)
    for error in result.errors:
        if isinstance(error, dict):
            logger.error(f"  Entry {error['entry']}: {'; '.join(error['errors'])}")
        else:
            logger.error(f"  {error}")
    sys.exit(1)


def cmd_log(args, services):
    """Log a single activity."""
    user_id = services.config.user_id

    root = resolve_category(services, user_id, args.category)
    if not root or not root.is_root:
        logger.error(f"Category '{args.category}' not found.")
        sys.exit(1)

    leaf = resolve_category(services, user_id, args.subcategory, parent_id=root.id)
    if not leaf or leaf.parent_id != root.id:
        logger.error(f"Subcategory '{args.subcategory}' not found under '{root.name}'.")
        sys.exit(1)

    entry = BulkEntry(
        date=args.date or services.clock().date().isoformat(),
        start_time=args.time,
        duration_minutes=args.minutes,
        activity=args.name or leaf.name,
        category_id=root.id,
        subcategory_id=leaf.id,
        notes=args.notes,
    )
    result = services.entries.process(
        user_id, [entry], EntryRules.from_config(services.config)
    )
    _report_result(result)


def cmd_list(args, services):
    """List logged activities, newest first."""
    user_id = services.config.user_id

    if args.start or args.end:
        try:
            start = start_of_day(datetime.fromisoformat(args.start or "1970-01-01"))
            end = end_of_day(
                datetime.fromisoformat(args.end) if args.end else services.clock()
            )
        except ValueError as e:
            logger.error(f"Invalid date: {e}")
            sys.exit(1)
        activities = services.activities.find_by_date_range(user_id, start, end)
    else:
        activities = services.activities.find_by_user(user_id, limit=args.limit)

    if not activities:
        logger.info("No activities found.")
        return

    names = {c.id: c.name for c in services.categories.find_all(user_id, active_only=False)}

    logger.info(f"\n{'Date':<17} {'Minutes':>7}  {'Category':<20} Activity")
    logger.info("-" * 80)
    for activity in activities:
        category_name = names.get(activity.category_id, "Unknown")
        logger.info(
            f"{activity.date_time.strftime('%Y-%m-%d %H:%M'):<17} "
            f"{activity.duration_minutes:>7}  {category_name[:20]:<20} "
            f"{activity.name or ''}"
        )
        if args.verbose:
            logger.info(f"{'':<17} ID: {activity.id}")
            if activity.notes:
                logger.info(f"{'':<17} Notes: {activity.notes}")

    logger.info("-" * 80)
    logger.info(f"Total: {len(activities)} activities")


def cmd_delete(args, services):
    """Delete a logged activity by ID."""
    if services.activities.delete(services.config.user_id, args.activity_id):
        logger.info("✓ Activity deleted.")
    else:
        logger.error(f"Activity with ID '{args.activity_id}' not found.")
        sys.exit(1)


def cmd_summary(args, services):
    """Show time logged per category today, this week and overall."""
    user_id = services.config.user_id
    tree = services.categories.tree(user_id)

    if not tree:
        logger.info("No categories found.")
        return

    summaries = services.activities.summary(
        user_id, services.clock(), services.config.week_start
    )
    names = {child.id: child.name for root in tree for child in root.children}

    logger.info(f"\n{'Category':<20} {'Today':>7} {'Week':>7} {'Total':>7}  Daily goal")
    logger.info("=" * 80)
    for root in tree:
        summary = summaries[root.id]
        goal = ""
        if root.daily_time_goal_minutes:
            goal = (
                f"{summary.daily_goal_progress:.0f}% "
                f"({summary.today_remaining}m remaining)"
            )
        logger.info(
            f"{root.name[:20]:<20} {summary.daily_time:>7} {summary.weekly_time:>7} "
            f"{summary.total_time:>7}  {goal}"
        )
        for category_id, minutes in summary.subcategory_times.items():
            logger.info(f"  └─ {names.get(category_id, root.name)[:16]:<16} {minutes:>23}")


def cmd_import_text(args, services):
    """Parse a free-text log and optionally insert the matched entries."""
    user_id = services.config.user_id

    path = Path(args.file)
    if not path.exists():
        logger.error(f"File not found: {args.file}")
        sys.exit(1)

    base_date = args.date or services.clock().date().isoformat()
    text_log = get_ingestion_module("text")
    with open(path, "r") as f:
        parsed = text_log.parse_text_log(f.read(), base_date)

    categories = services.categories.find_all(user_id)
    mappings = services.category_mappings.find_all(user_id)

    entries = []
    for entry in parsed:
        match = find_category_mapping(entry, categories, mappings)
        if match is None or entry.duration_minutes == 0:
            logger.warning(f"  ? {entry.raw_text} (needs manual review)")
            continue

        logger.info(
            f"  ✓ {entry.raw_text} -> {entry.duration_minutes}m "
            f"(confidence {match.confidence_score:.1f})"
        )
        entries.append(
            BulkEntry(
                date=entry.date,
                start_time=entry.start_time,
                end_time=entry.end_time,
                duration_minutes=entry.duration_minutes,
                activity=entry.activity,
                category_id=match.category_id,
                subcategory_id=match.subcategory_id,
            )
        )

    logger.info(f"\nMatched {len(entries)} of {len(parsed)} lines")

    if not args.apply:
        logger.info("Dry run; use --apply to insert the matched entries.")
        return
    if not entries:
        logger.info("No entries to import.")
        return

    result = services.entries.process(
        user_id, entries, EntryRules.from_config(services.config)
    )
    _report_result(result)


def cmd_import_csv(args, services):
    """Insert entries from a CSV file."""
    user_id = services.config.user_id

    path = Path(args.file)
    if not path.exists():
        logger.error(f"File not found: {args.file}")
        sys.exit(1)

    bulk_csv = get_ingestion_module("csv")
    with open(path, "r", newline="") as f:
        entries = bulk_csv.ingest(f, services.categories.find_all(user_id))

    logger.info(f"\nParsed {len(entries)} entries from CSV")
    if not entries:
        logger.info("No entries to import.")
        return

    result = services.entries.process(
        user_id, entries, EntryRules.from_config(services.config)
    )
    _report_result(result)


def _iso_date(value):
    date.fromisoformat(value)
    return value


def setup_parser(subparsers):
    """Setup activities subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "activities",
        help="Log and review activities",
        description="Log, list, import and summarize activities",
    )

    activities_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available activity commands",
        dest="subcommand",
        required=True,
    )

    # activities log
    log_parser = activities_subparsers.add_parser("log", help="Log an activity")
    log_parser.add_argument("category", help="Category ID or name")
    log_parser.add_argument("subcategory", help="Subcategory ID or name")
    log_parser.add_argument("minutes", type=int, help="Duration in minutes")
    log_parser.add_argument("--date", type=_iso_date, help="YYYY-MM-DD, default today")
    log_parser.add_argument("--time", help="Start time HH:MM, default now")
    log_parser.add_argument("--name", help="Activity name, default the subcategory")
    log_parser.add_argument("--notes")
    log_parser.set_defaults(func=cmd_log)

    # activities list
    list_parser = activities_subparsers.add_parser("list", help="List activities")
    list_parser.add_argument("--limit", type=int, default=20)
    list_parser.add_argument("--from", dest="start", help="Start date YYYY-MM-DD")
    list_parser.add_argument("--to", dest="end", help="End date YYYY-MM-DD")
    list_parser.add_argument("-v", "--verbose", action="store_true")
    list_parser.set_defaults(func=cmd_list)

    # activities delete
    delete_parser = activities_subparsers.add_parser("delete", help="Delete an activity")
    delete_parser.add_argument("activity_id")
    delete_parser.set_defaults(func=cmd_delete)

    # activities summary
    summary_parser = activities_subparsers.add_parser(
        "summary", help="Show time and goal progress per category"
    )
    summary_parser.set_defaults(func=cmd_summary)

    # activities import-text
    text_parser = activities_subparsers.add_parser(
        "import-text", help="Import a free-text activity log"
    )
    text_parser.add_argument("file", help="Text file, one activity per line")
    text_parser.add_argument("--date", type=_iso_date, help="Date of the log, default today")
    text_parser.add_argument("--apply", action="store_true", help="Insert matched entries")
    text_parser.set_defaults(func=cmd_import_text)

    # activities import-csv
    csv_parser = activities_subparsers.add_parser(
        "import-csv", help="Import entries from a CSV file"
    )
    csv_parser.add_argument("file", help="CSV file to import")
    csv_parser.set_defaults(func=cmd_import_csv)
