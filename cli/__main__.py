#!/usr/bin/env python3
"""
Wellness CLI - log activities against your categories and track goals.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    categories   Manage the category tree
    activities   Log, list, import and summarize activities
    timer        Time an activity as it happens
    migrate      Database migrations
    serve        Run the HTTP API

Examples:
    python -m cli migrate apply
    python -m cli categories seed
    python -m cli activities log Faith Prayer 30 --time 07:00
    python -m cli activities import-text today.txt --apply
    python -m cli timer start Work "Deep Work"
    python -m cli activities summary
"""

import sys
import argparse
from cli import activities, categories, migrate, serve, timer
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from logger import setup_logging


def main():
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Wellness - Activity logging and goal tracking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    # Register each command's subparser
    categories.setup_parser(subparsers)
    activities.setup_parser(subparsers)
    timer.setup_parser(subparsers)
    migrate.setup_parser(subparsers)
    serve.setup_parser(subparsers)

    args = parser.parse_args()

    if hasattr(args, "func"):
        try:
            config = load_config()
            setup_logging(config)

            # migrate works on the raw database, everything else on services
            if args.command == "migrate":
                args.func(args, DatabaseManager(config))
            else:
                args.func(args, Services(config))
        except Exception as e:
            print(f"Error: {e}")
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
