import pytest
import sqlite3
from datetime import datetime

from services.entries import BulkEntry, EntryRules, round_to_increment


def _entry(tree, minutes=30, date="2024-03-06", start_time="07:00", **kwargs):
    fields = {
        "date": date,
        "start_time": start_time,
        "duration_minutes": minutes,
        "activity": "Morning prayer",
        "category_id": tree["faith"].id,
        "subcategory_id": tree["prayer"].id,
    }
    fields.update(kwargs)
    return BulkEntry(**fields)


class TestRoundToIncrement:
    """Tests for round_to_increment function."""

    @pytest.mark.parametrize(
        "minutes, expected",
        [(0, 0), (7, 0), (8, 15), (20, 15), (23, 30), (45, 45), (1439, 1440)],
    )
    def test_rounds_half_up(self, minutes, expected):
        """Test rounding to the nearest quarter hour."""
        assert round_to_increment(minutes) == expected


class TestEntryService:
    """Tests for EntryService.process."""

    def test_inserts_valid_entries(self, tree, services):
        """Test a clean batch is inserted as leaf activities."""
        result = services.entries.process(
            "user-1",
            [
                _entry(tree, 30),
                _entry(
                    tree,
                    60,
                    start_time="09:00",
                    activity="Standup",
                    category_id=tree["work"].id,
                    subcategory_id=tree["meeting"].id,
                    notes="weekly sync",
                ),
            ],
        )

        assert result.success is True
        assert result.inserted == 2
        assert result.warnings == []

        stored = services.activities.find_by_user("user-1")
        assert [(a.category_id, a.duration_minutes) for a in stored] == [
            (tree["meeting"].id, 60),
            (tree["prayer"].id, 30),
        ]
        assert stored[0].date_time == datetime(2024, 3, 6, 9, 0)
        assert stored[0].notes == "weekly sync"
        assert stored[1].name == "Morning prayer"

    def test_rounds_duration_with_warning(self, tree, services):
        """Test auto-rounding to 15 minute increments."""
        result = services.entries.process("user-1", [_entry(tree, 20)])

        assert result.success is True
        assert result.entries[0].duration_minutes == 15
        assert result.warnings == [
            {
                "entry": 0,
                "warning": "Duration rounded from 20m to 15m for 15-minute compliance",
            }
        ]

    def test_rejects_unrounded_duration_when_rounding_off(self, tree, services):
        """Test enforcement without auto-rounding."""
        rules = EntryRules(auto_round_15_min=False)

        result = services.entries.process("user-1", [_entry(tree, 20)], rules)

        assert result.success is False
        assert result.errors == [
            {"entry": 0, "errors": ["Duration must be in 15-minute increments (got 20m)"]}
        ]

    def test_keeps_duration_when_not_enforced(self, tree, services):
        """Test that any duration is kept when increments are not enforced."""
        rules = EntryRules(enforce_15_min_increments=False)

        result = services.entries.process("user-1", [_entry(tree, 20)], rules)

        assert result.entries[0].duration_minutes == 20

    def test_sleep_cutoff_moves_to_previous_day(self, tree, services):
        """Test that an entry before the cutoff hour belongs to yesterday."""
        result = services.entries.process(
            "user-1", [_entry(tree, 30, start_time="02:30")]
        )

        assert result.entries[0].date_time == datetime(2024, 3, 5, 2, 30)
        assert "sleep cutoff" in result.warnings[0]["warning"]

    def test_cutoff_hour_itself_stays(self, tree, services):
        """Test that an entry starting at the cutoff hour keeps its date."""
        result = services.entries.process(
            "user-1", [_entry(tree, 30, start_time="04:00")]
        )

        assert result.entries[0].date_time == datetime(2024, 3, 6, 4, 0)
        assert result.warnings == []

    def test_missing_start_time_uses_clock(self, tree, services):
        """Test that an entry without a start time starts now on its date."""
        result = services.entries.process(
            "user-1", [_entry(tree, 30, date="2024-03-01", start_time=None)]
        )

        assert result.entries[0].date_time == datetime(2024, 3, 1, 12, 0)

    def test_one_invalid_entry_rejects_batch(self, tree, services):
        """Test that nothing is inserted when any entry is invalid."""
        result = services.entries.process(
            "user-1", [_entry(tree, 30), _entry(tree, 1500), _entry(tree, -15)]
        )

        assert result.success is False
        assert result.processed == 1
        assert result.total == 3
        assert result.errors == [
            {"entry": 1, "errors": ["Duration cannot exceed 24 hours"]},
            {"entry": 2, "errors": ["Duration cannot be negative"]},
        ]
        assert services.activities.find_by_user("user-1") == []

    def test_missing_fields(self, tree, services):
        """Test required field errors."""
        result = services.entries.process(
            "user-1", [_entry(tree, 30, date=None, activity="")]
        )

        assert result.errors[0]["errors"][:2] == [
            "Missing required fields: activity, category_id, subcategory_id",
            "Date is required",
        ]

    def test_subcategory_must_belong_to_category(self, tree, services):
        """Test that the pair must be a root and one of its children."""
        result = services.entries.process(
            "user-1", [_entry(tree, 30, subcategory_id=tree["meeting"].id)]
        )

        assert result.errors == [{"entry": 0, "errors": ["Invalid category or subcategory"]}]

    def test_other_users_categories_rejected(self, tree, services):
        """Test that entries cannot use another user's categories."""
        result = services.entries.process("user-2", [_entry(tree, 30)])

        assert result.success is False
        assert result.errors[0]["errors"] == ["Invalid category or subcategory"]

    def test_invalid_time_format(self, tree, services):
        """Test that an unparseable start time is reported."""
        result = services.entries.process(
            "user-1", [_entry(tree, 30, start_time="7am")]
        )

        assert result.success is False
        assert result.errors[0]["errors"][0].startswith("Invalid date or time")

    def test_daily_goal_guardrail(self, tree, services):
        """Test that a day over the root's daily goal rejects the batch."""
        result = services.entries.process(
            "user-1",
            [
                _entry(tree, 45),
                _entry(tree, 30, start_time="08:00", subcategory_id=tree["study"].id),
            ],
        )

        assert result.success is False
        assert result.message == "Category daily goal limits exceeded"
        assert result.errors == [
            'Category "Faith" on 2024-03-06: 75m exceeds daily goal of 60m'
        ]
        assert services.activities.find_by_user("user-1") == []

    def test_guardrail_counts_each_day_separately(self, tree, services):
        """Test that the goal applies per date."""
        result = services.entries.process(
            "user-1",
            [_entry(tree, 45), _entry(tree, 45, date="2024-03-05")],
        )

        assert result.success is True
        assert result.inserted == 2

    def test_category_without_daily_goal_is_unlimited(self, tree, services):
        """Test that a root without a daily goal has no guardrail."""
        meeting = {
            "activity": "Planning",
            "category_id": tree["work"].id,
            "subcategory_id": tree["meeting"].id,
        }
        result = services.entries.process(
            "user-1",
            [_entry(tree, 600, **meeting), _entry(tree, 600, start_time="17:00", **meeting)],
        )

        assert result.success is True

    def test_learns_mappings(self, tree, services):
        """Test that inserted activity text is remembered for matching."""
        services.entries.process("user-1", [_entry(tree, 30, activity="Morning Prayer")])

        mappings = services.category_mappings.find_all("user-1")

        assert len(mappings) == 1
        assert mappings[0].text_input == "morning prayer"
        assert mappings[0].category_id == tree["faith"].id
        assert mappings[0].subcategory_id == tree["prayer"].id
        assert mappings[0].confidence_score == 1.0

    def test_mapping_failure_does_not_fail_insert(self, tree, services, monkeypatch):
        """Test that entries stay saved when the mapping update fails."""

        def broken_upsert(mappings):
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(services.category_mappings, "upsert_many", broken_upsert)

        result = services.entries.process("user-1", [_entry(tree, 30)])

        assert result.success is True
        assert len(services.activities.find_by_user("user-1")) == 1

    def test_insert_failure_reported(self, tree, services, monkeypatch):
        """Test that a database error during insert is returned, not raised."""

        def broken_bulk_create(activities):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(services.activities, "bulk_create", broken_bulk_create)

        result = services.entries.process("user-1", [_entry(tree, 30)])

        assert result.success is False
        assert result.insert_failed is True
        assert result.errors == ["Failed to insert entries: disk I/O error"]

    def test_to_dict(self, tree, services):
        """Test the JSON shape of a successful result."""
        result = services.entries.process("user-1", [_entry(tree, 20)])

        data = result.to_dict()

        assert data["success"] is True
        assert data["inserted"] == 1
        assert data["total"] == 1
        assert data["entries"][0]["duration_minutes"] == 15
        assert data["warnings"][0]["entry"] == 0
