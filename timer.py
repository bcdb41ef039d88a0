"""Stopwatch for logging an activity as it happens.

The running session is kept in a JSON state file, so a timer started in
one command can be paused, resumed or stopped from a later one.
"""

import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from models.activity import Activity
from models.timer_session import TimerSession
from logger import get_logger

logger = get_logger()

MIN_LOGGED_MINUTES = 1


class Timer:
    """Start, pause, resume and stop a single stopwatch session.

    Args:
        state_path: JSON file holding the current session.
        activities: ActivityService the finished session is logged with.
        clock: Returns the current datetime; defaults to datetime.now.
    """

    def __init__(
        self,
        state_path: Path,
        activities,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.state_path = Path(state_path)
        self.activities = activities
        self.clock = clock

    def current(self) -> Optional[TimerSession]:
        """Load the stored session, or None when no timer is running.

        A state file that cannot be read back is logged and removed.
        """
        if not self.state_path.exists():
            return None

        try:
            with open(self.state_path, "r") as f:
                return TimerSession.from_dict(json.load(f))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable timer state {self.state_path}: {e}")
            self._clear()
            return None

    def start(
        self,
        user_id: str,
        category_id: str,
        subcategory_id: str,
        category_name: str,
        subcategory_name: str,
        notes: str = "",
    ) -> TimerSession:
        """Start a new session.

        Raises:
            ValueError: If a session is already running.
        """
        if self.current() is not None:
            raise ValueError("A timer is already running; stop or cancel it first")

        session = TimerSession(
            id=str(uuid.uuid4()),
            user_id=user_id,
            category_id=category_id,
            subcategory_id=subcategory_id,
            category_name=category_name,
            subcategory_name=subcategory_name,
            start_time=self.clock(),
            notes=notes,
        )
        self._save(session)
        logger.info(f"Timer started for {category_name} - {subcategory_name}")
        return session

    def pause(self) -> TimerSession:
        session = self._require_session()
        if session.is_paused:
            raise ValueError("Timer is already paused")
        session.paused_at = self.clock()
        self._save(session)
        return session

    def resume(self) -> TimerSession:
        session = self._require_session()
        if not session.is_paused:
            raise ValueError("Timer is not paused")
        session.paused_seconds += int((self.clock() - session.paused_at).total_seconds())
        session.paused_at = None
        self._save(session)
        return session

    def update_notes(self, notes: str) -> TimerSession:
        session = self._require_session()
        session.notes = notes
        self._save(session)
        return session

    def elapsed_seconds(self, session: Optional[TimerSession] = None) -> int:
        """Seconds the session has been running, excluding paused time.

        While paused the elapsed time stays frozen at the pause.
        """
        session = session or self._require_session()
        until = session.paused_at or self.clock()
        elapsed = int((until - session.start_time).total_seconds()) - session.paused_seconds
        return max(0, elapsed)

    def stop(self) -> Activity:
        """Stop the session and log it as an activity on the subcategory.

        The activity starts at the session start and lasts the elapsed time
        rounded to whole minutes, at least one minute.

        Raises:
            ValueError: If no session is running.
        """
        session = self._require_session()
        minutes = max(MIN_LOGGED_MINUTES, int(self.elapsed_seconds(session) / 60 + 0.5))

        activity = Activity.create(
            user_id=session.user_id,
            category_id=session.subcategory_id,
            date_time=session.start_time,
            duration_minutes=minutes,
            name=session.subcategory_name,
            notes=session.notes or None,
        )
        self.activities.create(activity)
        self._clear()

        logger.info(
            f"Logged {minutes}m for {session.category_name} - {session.subcategory_name}"
        )
        return activity

    def cancel(self) -> bool:
        """Discard the session without logging anything.

        Returns:
            True if a session was discarded.
        """
        if self.current() is None:
            return False
        self._clear()
        logger.info("Timer cancelled")
        return True

    def _require_session(self) -> TimerSession:
        session = self.current()
        if session is None:
            raise ValueError("No timer is running")
        return session

    def _save(self, session: TimerSession) -> None:
        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.state_path, "w") as f:
            json.dump(session.to_dict(), f, indent=2)

    def _clear(self) -> None:
        self.state_path.unlink(missing_ok=True)
