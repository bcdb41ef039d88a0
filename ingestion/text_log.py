import logging
import re
from dataclasses import dataclass, asdict
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 30
MINUTES_PER_DAY = 24 * 60

# "9:00-10:30 Faith - Prayer", "09:00 AM - 10:30 AM Work - Meeting"
TIME_RANGE_PATTERN = re.compile(
    r"^(\d{1,2}):(\d{2})(?:\s*(AM|PM))?\s*-\s*(\d{1,2}):(\d{2})(?:\s*(AM|PM))?\s+(.+)$",
    re.IGNORECASE,
)

# "2h 15m Faith - Prayer", "90m Reading"
DURATION_PATTERN = re.compile(r"^(?:(\d+)h\s*)?(?:(\d+)m\s*)?(.+)$")

# "Faith - Prayer"
SIMPLE_PATTERN = re.compile(r"^([A-Za-z]+(?:\s+[A-Za-z]+)*)\s*-\s*(.+)$")


@dataclass
class ParsedEntry:
    """One line of a free-text activity log.

    Attributes:
        duration_minutes: Parsed duration; 0 for lines that did not parse.
        activity: Activity text.
        raw_text: The original line.
        date: Date the log was written for, if given.
        start_time: "HH:MM" start, for time range lines.
        end_time: "HH:MM" end, for time range lines.
        category: Root category name, if the line named one.
        subcategory: Leaf category name, if the line named one.
    """

    duration_minutes: int
    activity: str
    raw_text: str
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def parse_text_log(text: str, base_date: Optional[str] = None) -> List[ParsedEntry]:
    """
    Parse a free-text activity log, one entry per non-blank line.

    Supported line formats, tried in order:
    - Time range: "9:00-10:30 Faith - Prayer" (optional AM/PM on each side)
    - Duration: "2h 15m Work - Meeting" or "90m Reading"
    - Simple: "Faith - Prayer", logged as 30 minutes

    Lines matching none of these are kept with a duration of 0 so they can
    be reviewed by hand.
    """
    entries = []

    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue

        parsed = (
            _parse_time_range(line, base_date)
            or _parse_duration(line, base_date)
            or _parse_simple(line, base_date)
        )
        if parsed is None:
            logger.warning(f"Could not parse line: {line}")
            parsed = ParsedEntry(
                duration_minutes=0, activity=line, raw_text=line, date=base_date
            )
        entries.append(parsed)

    logger.info(f"Parsed {len(entries)} entries from text log")
    return entries


def split_activity(text: str):
    """Split "Category - Sub - Detail" into (category, subcategory, activity).

    The activity keeps everything after the category, so the example gives
    ("Category", "Sub", "Sub - Detail"). Text without a separator is all
    activity.
    """
    parts = [part.strip() for part in text.split(" - ")]
    if len(parts) >= 2:
        return parts[0], parts[1], " - ".join(parts[1:])
    return None, None, text.strip()


def _to_24_hour(hour: int, period: Optional[str]) -> int:
    period = (period or "").lower()
    if period == "pm" and hour != 12:
        return hour + 12
    if period == "am" and hour == 12:
        return 0
    return hour


def _parse_time_range(line: str, base_date: Optional[str]) -> Optional[ParsedEntry]:
    match = TIME_RANGE_PATTERN.match(line)
    if not match:
        return None

    start_hour, start_min, start_period, end_hour, end_min, end_period, rest = (
        match.groups()
    )
    start_24 = _to_24_hour(int(start_hour), start_period)
    end_24 = _to_24_hour(int(end_hour), end_period)

    duration = (end_24 * 60 + int(end_min)) - (start_24 * 60 + int(start_min))
    # Ranges past midnight
    if duration < 0:
        duration += MINUTES_PER_DAY

    category, subcategory, activity = split_activity(rest)
    return ParsedEntry(
        duration_minutes=duration,
        activity=activity,
        raw_text=line,
        date=base_date,
        start_time=f"{start_24:02d}:{start_min}",
        end_time=f"{end_24:02d}:{end_min}",
        category=category,
        subcategory=subcategory,
    )


def _parse_duration(line: str, base_date: Optional[str]) -> Optional[ParsedEntry]:
    match = DURATION_PATTERN.match(line)
    if not match:
        return None

    hours, minutes, rest = match.groups()
    total = int(hours or 0) * 60 + int(minutes or 0)
    if total == 0:
        return None

    category, subcategory, activity = split_activity(rest)
    return ParsedEntry(
        duration_minutes=total,
        activity=activity,
        raw_text=line,
        date=base_date,
        category=category,
        subcategory=subcategory,
    )


def _parse_simple(line: str, base_date: Optional[str]) -> Optional[ParsedEntry]:
    match = SIMPLE_PATTERN.match(line)
    if not match:
        return None

    category, activity = match.groups()
    return ParsedEntry(
        duration_minutes=DEFAULT_DURATION_MINUTES,
        activity=activity.strip(),
        raw_text=line,
        date=base_date,
        category=category.strip(),
    )
