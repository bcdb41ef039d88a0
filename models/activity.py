"""Activity model representing time logged against a category."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import uuid

MAX_DURATION_MINUTES = 1440


@dataclass
class Activity:
    id: str
    user_id: str
    category_id: str  # usually a level 1 category
    date_time: datetime  # start of the activity
    duration_minutes: int
    name: Optional[str] = None
    notes: Optional[str] = None
    is_completed: bool = False

    @classmethod
    def create(
        cls,
        user_id: str,
        category_id: str,
        date_time: datetime,
        duration_minutes: int,
        name: Optional[str] = None,
        notes: Optional[str] = None,
        is_completed: bool = False,
    ) -> "Activity":
        """Create an Activity with a freshly generated ID."""
        return cls(
            id=str(uuid.uuid4()),
            user_id=user_id,
            category_id=category_id,
            date_time=date_time,
            duration_minutes=duration_minutes,
            name=name,
            notes=notes,
            is_completed=is_completed,
        )

    def to_dict(self) -> dict:
        """Convert activity to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "category_id": self.category_id,
            "name": self.name,
            "date_time": self.date_time.isoformat(),
            "duration_minutes": self.duration_minutes,
            "notes": self.notes,
            "is_completed": self.is_completed,
        }
