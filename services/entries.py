"""Bulk entry processing: validation, business rules and insertion.

Entries arrive from the bulk entry endpoint or a CSV import. Every entry
is checked before anything is written, so an invalid batch is rejected as a
whole. Valid batches are inserted in chunks that each commit, so a database
error can leave earlier chunks saved.
"""

import sqlite3
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple, Union

from models.activity import Activity, MAX_DURATION_MINUTES
from models.category import Category, ROOT_LEVEL
from models.category_mapping import CategoryMapping
from services.activities import DEFAULT_BATCH_SIZE
from logger import get_logger

logger = get_logger()

INCREMENT_MINUTES = 15


@dataclass
class EntryRules:
    """Business rules applied to bulk entries.

    Attributes:
        enforce_15_min_increments: Durations must be multiples of 15.
        auto_round_15_min: Round offending durations instead of rejecting.
        sleep_cutoff_hour: Entries starting before this hour belong to the
            previous day.
    """

    enforce_15_min_increments: bool = True
    auto_round_15_min: bool = True
    sleep_cutoff_hour: int = 4

    @classmethod
    def from_config(cls, config) -> "EntryRules":
        return cls(
            enforce_15_min_increments=config.enforce_15_min_increments,
            auto_round_15_min=config.auto_round_15_min,
            sleep_cutoff_hour=config.sleep_cutoff_hour,
        )


@dataclass
class BulkEntry:
    """One entry of a bulk insert request."""

    date: Optional[Union[date, str]]
    duration_minutes: int
    activity: str
    category_id: str
    subcategory_id: str
    start_time: Optional[str] = None  # "HH:MM"
    end_time: Optional[str] = None
    notes: Optional[str] = None
    is_completed: bool = False


@dataclass
class BulkInsertResult:
    success: bool
    total: int
    inserted: int = 0
    processed: int = 0
    warnings: List[dict] = field(default_factory=list)
    errors: List = field(default_factory=list)
    message: Optional[str] = None
    entries: List[Activity] = field(default_factory=list)
    # True when validation passed but the database write failed
    insert_failed: bool = False

    def to_dict(self) -> dict:
        data = {"success": self.success, "total": self.total}
        if self.success:
            data["inserted"] = self.inserted
            data["entries"] = [a.to_dict() for a in self.entries]
            if self.warnings:
                data["warnings"] = self.warnings
        else:
            data["errors"] = self.errors
            data["processed"] = self.processed
            data["inserted"] = self.inserted
            if self.message:
                data["message"] = self.message
        return data


def round_to_increment(minutes: int, increment: int = INCREMENT_MINUTES) -> int:
    """Round half up to the nearest multiple of ``increment``."""
    return int(minutes / increment + 0.5) * increment


class EntryService:
    """Validates and inserts bulk activity entries."""

    def __init__(
        self,
        activities,
        categories,
        mappings,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the entry service.

        Args:
            activities: ActivityService used for inserts.
            categories: CategoryService used to resolve categories.
            mappings: CategoryMappingService updated after each insert.
            clock: Returns the current time; used for entries without a
                start time.
        """
        self.activities = activities
        self.categories = categories
        self.mappings = mappings
        self.clock = clock

    def process(
        self,
        user_id: str,
        entries: List[BulkEntry],
        rules: Optional[EntryRules] = None,
    ) -> BulkInsertResult:
        """Validate, check guardrails and insert a batch of entries.

        Args:
            user_id: User the entries are logged for.
            entries: Entries to insert.
            rules: Business rules; defaults to EntryRules().

        Returns:
            BulkInsertResult describing the outcome.
        """
        rules = rules or EntryRules()
        total = len(entries)
        logger.info(f"Processing bulk entry for {total} entries")

        categories = {c.id: c for c in self.categories.find_all(user_id)}

        processed: List[Activity] = []
        warnings: List[dict] = []
        errors: List[dict] = []

        for index, entry in enumerate(entries):
            activity, entry_errors, entry_warnings = self.validate_entry(
                user_id, entry, rules, categories
            )
            if entry_errors:
                errors.append({"entry": index, "errors": entry_errors})
                continue
            processed.append(activity)
            warnings.extend({"entry": index, "warning": w} for w in entry_warnings)

        if errors:
            return BulkInsertResult(
                success=False,
                total=total,
                processed=len(processed),
                errors=errors,
            )

        guardrail_errors = self.check_guardrails(entries, processed, categories)
        if guardrail_errors:
            return BulkInsertResult(
                success=False,
                total=total,
                processed=len(processed),
                errors=guardrail_errors,
                message="Category daily goal limits exceeded",
            )

        inserted = 0
        try:
            for start in range(0, len(processed), DEFAULT_BATCH_SIZE):
                inserted += self.activities.bulk_create(
                    processed[start : start + DEFAULT_BATCH_SIZE]
                )
        except sqlite3.Error as e:
            logger.error(f"Error inserting batch: {e}")
            return BulkInsertResult(
                success=False,
                total=total,
                inserted=inserted,
                processed=len(processed),
                errors=[f"Failed to insert entries: {e}"],
                insert_failed=True,
            )

        self._update_mappings(user_id, entries)

        return BulkInsertResult(
            success=True,
            total=total,
            inserted=inserted,
            processed=len(processed),
            warnings=warnings,
            entries=processed,
        )

    def validate_entry(
        self,
        user_id: str,
        entry: BulkEntry,
        rules: EntryRules,
        categories: Dict[str, Category],
    ) -> Tuple[Optional[Activity], List[str], List[str]]:
        """Check one entry and turn it into an Activity.

        Returns:
            Tuple of (activity or None, errors, warnings).
        """
        errors = []
        warnings = []

        if not entry.activity or not entry.category_id or not entry.subcategory_id:
            errors.append("Missing required fields: activity, category_id, subcategory_id")

        if not entry.date:
            errors.append("Date is required")

        duration = entry.duration_minutes
        if duration < 0:
            errors.append("Duration cannot be negative")
        if duration > MAX_DURATION_MINUTES:
            errors.append("Duration cannot exceed 24 hours")

        root = categories.get(entry.category_id)
        leaf = categories.get(entry.subcategory_id)
        if (
            root is None
            or leaf is None
            or root.level != ROOT_LEVEL
            or leaf.parent_id != root.id
        ):
            errors.append("Invalid category or subcategory")

        if errors:
            return None, errors, warnings

        if rules.enforce_15_min_increments and duration % INCREMENT_MINUTES != 0:
            if rules.auto_round_15_min:
                rounded = round_to_increment(duration)
                warnings.append(
                    f"Duration rounded from {duration}m to {rounded}m for 15-minute compliance"
                )
                duration = rounded
            else:
                return None, [f"Duration must be in 15-minute increments (got {duration}m)"], warnings

        try:
            effective_date = (
                entry.date
                if isinstance(entry.date, date)
                else date.fromisoformat(entry.date)
            )
            if entry.start_time:
                start = datetime.strptime(entry.start_time, "%H:%M").time()
            else:
                now = self.clock()
                start = now.time().replace(second=0, microsecond=0)
        except ValueError as e:
            return None, [f"Invalid date or time: {e}"], warnings

        if entry.start_time and start.hour < rules.sleep_cutoff_hour:
            effective_date -= timedelta(days=1)
            warnings.append(
                "Entry moved to previous day due to sleep cutoff rule "
                f"(before {rules.sleep_cutoff_hour}:00)"
            )

        activity = Activity.create(
            user_id=user_id,
            category_id=leaf.id,
            date_time=datetime.combine(effective_date, start),
            duration_minutes=duration,
            name=entry.activity,
            notes=entry.notes or None,
            is_completed=entry.is_completed,
        )
        return activity, [], warnings

    def check_guardrails(
        self,
        entries: List[BulkEntry],
        activities: List[Activity],
        categories: Dict[str, Category],
    ) -> List[str]:
        """Reject batches that log more than a root's daily goal on one day.

        Args:
            entries: The original entries, parallel to ``activities``.
            activities: Validated activities.
            categories: The user's categories keyed by ID.

        Returns:
            List of error messages, one per date and category over its goal.
        """
        totals: Dict[Tuple[date, str], int] = {}
        for entry, activity in zip(entries, activities):
            key = (activity.date_time.date(), entry.category_id)
            totals[key] = totals.get(key, 0) + activity.duration_minutes

        errors = []
        for (day, category_id), minutes in totals.items():
            goal = categories[category_id].daily_time_goal_minutes
            if goal and minutes > goal:
                errors.append(
                    f'Category "{categories[category_id].name}" on {day.isoformat()}: '
                    f"{minutes}m exceeds daily goal of {goal}m"
                )
        return errors

    def _update_mappings(self, user_id: str, entries: List[BulkEntry]) -> None:
        """Remember which categories each activity text was logged under.

        A failure here is logged and never fails the insert.
        """
        mappings = [
            CategoryMapping(
                user_id=user_id,
                text_input=entry.activity.lower(),
                category_id=entry.category_id,
                subcategory_id=entry.subcategory_id,
                confidence_score=1.0,
            )
            for entry in entries
            if entry.activity and entry.category_id and entry.subcategory_id
        ]
        try:
            self.mappings.upsert_many(mappings)
        except Exception as e:
            logger.warning(f"Error updating category mappings (entries were saved): {e}")
