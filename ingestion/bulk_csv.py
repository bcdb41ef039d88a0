import csv
import logging
from typing import List, TextIO

from models.category import Category, ROOT_LEVEL
from services.entries import BulkEntry

logger = logging.getLogger(__name__)

EXPECTED_HEADER = [
    "date",
    "start_time",
    "duration_minutes",
    "activity",
    "category",
    "subcategory",
    "notes",
]


def ingest(source: TextIO, categories: List[Category]) -> List[BulkEntry]:
    """
    Ingest a CSV export of activity entries.

    Expected format:
    - Header row (line 1): date,start_time,duration_minutes,activity,category,subcategory,notes
    - Entry rows (line 2+): e.g. 2024-03-01,07:00,30,Morning prayer,Faith,Prayer,

    Category and subcategory are matched by name (case-insensitive) against
    ``categories``. Rows that cannot be resolved are logged and skipped.
    """
    entries = []
    reader = csv.reader(source)

    roots = {c.name.lower(): c for c in categories if c.level == ROOT_LEVEL}
    leaves = {
        (c.parent_id, c.name.lower()): c
        for c in categories
        if c.level != ROOT_LEVEL
    }

    # Read and validate header
    try:
        header = [column.strip().lower() for column in next(reader)]
        if header[: len(EXPECTED_HEADER) - 1] != EXPECTED_HEADER[:-1]:
            logger.error(f"Invalid header format: {header}")
            return entries
        logger.info("Found entry CSV header")
    except StopIteration:
        logger.error("Empty CSV file")
        return entries

    line_num = 1
    for row in reader:
        line_num += 1

        if not row or len(row) < 6:
            logger.warning(f"Skipping malformed line {line_num}: {row}")
            continue

        try:
            date_str = row[0].strip()
            start_time = row[1].strip() or None
            duration = int(row[2].strip())
            activity = row[3].strip()
            category_name = row[4].strip()
            subcategory_name = row[5].strip()
            notes = row[6].strip() if len(row) > 6 else ""

            root = roots.get(category_name.lower())
            if root is None:
                logger.warning(
                    f"Skipping line {line_num} with unknown category: {category_name}"
                )
                continue

            leaf = leaves.get((root.id, subcategory_name.lower()))
            if leaf is None:
                logger.warning(
                    f"Skipping line {line_num} with unknown subcategory: "
                    f"{category_name} - {subcategory_name}"
                )
                continue

            entries.append(
                BulkEntry(
                    date=date_str,
                    start_time=start_time,
                    duration_minutes=duration,
                    activity=activity,
                    category_id=root.id,
                    subcategory_id=leaf.id,
                    notes=notes or None,
                )
            )

        except ValueError as e:
            logger.error(f"Error processing line {line_num}: {row} - {e}")
            continue

    logger.info(f"Successfully ingested {len(entries)} entries")
    return entries
