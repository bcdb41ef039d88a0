"""Request bodies accepted by the HTTP API."""

from typing import List, Optional, Union

from pydantic import BaseModel, Field

from services.entries import BulkEntry, EntryRules


class ValidationRules(BaseModel):
    """Business rules sent with a bulk entry request."""

    enforce_15_min_increments: bool = True
    auto_round_15_min: bool = True
    sleep_cutoff_hour: int = Field(4, ge=0, le=23)

    def to_rules(self) -> EntryRules:
        return EntryRules(**self.model_dump())


class BulkEntryIn(BaseModel):
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration_minutes: int = 0
    activity: str = ""
    category_id: str = ""
    subcategory_id: str = ""
    notes: Optional[str] = Field(None, max_length=1000)
    is_completed: bool = False

    def to_entry(self) -> BulkEntry:
        return BulkEntry(**self.model_dump())


class BulkEntriesRequest(BaseModel):
    entries: Optional[List[BulkEntryIn]] = None
    validation_rules: Optional[ValidationRules] = None


class TextLogRequest(BaseModel):
    text_log: str = ""
    date: Optional[str] = None


class UpdateCategoryRequest(BaseModel):
    """Partial category update; only the fields sent are changed."""

    id: Optional[str] = None
    name: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None
    goal_type: Optional[str] = None
    is_boolean_goal: Optional[bool] = None
    boolean_goal_label: Optional[str] = None
    daily_time_goal_minutes: Optional[Union[int, float]] = None
    weekly_time_goal_minutes: Optional[Union[int, float]] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None
    parent_id: Optional[str] = None
    level: Optional[int] = None
