#!/usr/bin/env python3

import sys
from cli.categories import resolve_category
from timer import Timer
from logger import get_logger

logger = get_logger()


def _timer(services):
    return Timer(services.config.timer_state_path, services.activities, services.clock)


def _format_elapsed(seconds):
    hours, remainder = divmod(seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def cmd_start(args, services):
    """Start timing an activity."""
    user_id = services.config.user_id

    root = resolve_category(services, user_id, args.category)
    if not root or not root.is_root:
        logger.error(f"Category '{args.category}' not found.")
        sys.exit(1)
    leaf = resolve_category(services, user_id, args.subcategory, parent_id=root.id)
    if not leaf or leaf.parent_id != root.id:
        logger.error(f"Subcategory '{args.subcategory}' not found under '{root.name}'.")
        sys.exit(1)

    try:
        _timer(services).start(
            user_id, root.id, leaf.id, root.name, leaf.name, notes=args.notes or ""
        )
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info(f"⏱ Timer started: {root.name} - {leaf.name}")


def cmd_pause(args, services):
    """Pause the running timer."""
    try:
        session = _timer(services).pause()
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)
    logger.info(f"Timer paused: {session.category_name} - {session.subcategory_name}")


def cmd_resume(args, services):
    """Resume the paused timer."""
    try:
        session = _timer(services).resume()
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)
    logger.info(f"Timer resumed: {session.category_name} - {session.subcategory_name}")


def cmd_stop(args, services):
    """Stop the timer and log the activity."""
    timer = _timer(services)
    try:
        if args.notes is not None:
            timer.update_notes(args.notes)
        activity = timer.stop()
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)
    logger.info(f"✓ Logged {activity.duration_minutes} minute(s) of {activity.name}")


def cmd_cancel(args, services):
    """Discard the timer without logging."""
    if _timer(services).cancel():
        logger.info("Timer cancelled.")
    else:
        logger.info("No timer is running.")


def cmd_status(args, services):
    """Show the running timer."""
    timer = _timer(services)
    session = timer.current()
    if session is None:
        logger.info("No timer is running.")
        return

    state = "paused" if session.is_paused else "running"
    logger.info(f"{session.category_name} - {session.subcategory_name} ({state})")
    logger.info(f"  Started: {session.start_time.strftime('%Y-%m-%d %H:%M')}")
    logger.info(f"  Elapsed: {_format_elapsed(timer.elapsed_seconds(session))}")
    if session.notes:
        logger.info(f"  Notes: {session.notes}")


def setup_parser(subparsers):
    """Setup timer subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "timer",
        help="Time an activity as it happens",
        description="Start, pause, resume and stop the activity timer",
    )

    timer_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available timer commands",
        dest="subcommand",
        required=True,
    )

    start_parser = timer_subparsers.add_parser("start", help="Start the timer")
    start_parser.add_argument("category", help="Category ID or name")
    start_parser.add_argument("subcategory", help="Subcategory ID or name")
    start_parser.add_argument("--notes")
    start_parser.set_defaults(func=cmd_start)

    pause_parser = timer_subparsers.add_parser("pause", help="Pause the timer")
    pause_parser.set_defaults(func=cmd_pause)

    resume_parser = timer_subparsers.add_parser("resume", help="Resume the timer")
    resume_parser.set_defaults(func=cmd_resume)

    stop_parser = timer_subparsers.add_parser("stop", help="Stop and log the activity")
    stop_parser.add_argument("--notes", help="Replace the session notes")
    stop_parser.set_defaults(func=cmd_stop)

    cancel_parser = timer_subparsers.add_parser("cancel", help="Discard the timer")
    cancel_parser.set_defaults(func=cmd_cancel)

    status_parser = timer_subparsers.add_parser("status", help="Show the running timer")
    status_parser.set_defaults(func=cmd_status)
