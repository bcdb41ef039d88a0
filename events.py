"""Change notifications published by the data layer.

Services publish after a write commits; views and caches subscribe to
refresh or drop stale data.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, NamedTuple

ACTIVITY_LOGGED = "ACTIVITY_LOGGED"
ACTIVITY_DELETED = "ACTIVITY_DELETED"
CATEGORY_CHANGED = "CATEGORY_CHANGED"


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event], Any]


class EventBus:
    """Synchronous publish/subscribe hub.

    Handlers run in subscription order on the publishing thread, so by the
    time ``publish`` returns every subscriber has seen the change.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._subscribers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, name: str, payload: dict) -> List[Any]:
        """Deliver an event to every subscriber of ``name``.

        Args:
            name: Event name, e.g. ACTIVITY_LOGGED.
            payload: Event data; includes at least ``user_id``.

        Returns:
            The handlers' return values, in subscription order.
        """
        handlers = list(self._subscribers.get(name, []))
        if not handlers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event) for handler in handlers]
