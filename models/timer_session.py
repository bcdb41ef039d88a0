"""TimerSession model for the running stopwatch."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class TimerSession:
    """A running or paused stopwatch session.

    Attributes:
        id: Session identifier.
        user_id: User the activity will be logged for.
        category_id: Root category ID.
        subcategory_id: Leaf category ID the activity is logged against.
        category_name: Root category name, for display.
        subcategory_name: Leaf category name, for display.
        start_time: When the session started.
        paused_seconds: Seconds spent paused before the current pause.
        paused_at: Start of the current pause, None when running.
        notes: Free-text notes carried onto the logged activity.
    """

    id: str
    user_id: str
    category_id: str
    subcategory_id: str
    category_name: str
    subcategory_name: str
    start_time: datetime
    paused_seconds: int = 0
    paused_at: Optional[datetime] = None
    notes: str = ""

    @property
    def is_paused(self) -> bool:
        return self.paused_at is not None

    def to_dict(self) -> dict:
        """Convert session to a dictionary for JSON storage."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "category_id": self.category_id,
            "subcategory_id": self.subcategory_id,
            "category_name": self.category_name,
            "subcategory_name": self.subcategory_name,
            "start_time": self.start_time.isoformat(),
            "paused_seconds": self.paused_seconds,
            "paused_at": self.paused_at.isoformat() if self.paused_at else None,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TimerSession":
        """Rebuild a session from its stored dictionary."""
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            category_id=data["category_id"],
            subcategory_id=data["subcategory_id"],
            category_name=data["category_name"],
            subcategory_name=data["subcategory_name"],
            start_time=datetime.fromisoformat(data["start_time"]),
            paused_seconds=int(data.get("paused_seconds", 0)),
            paused_at=(
                datetime.fromisoformat(data["paused_at"])
                if data.get("paused_at")
                else None
            ),
            notes=data.get("notes", ""),
        )
