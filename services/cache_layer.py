"""Read-through cache over the user's categories, activities and summaries.

Every entry is keyed by domain and user, so an entry is only ever served
back to the user it was loaded for.
"""

import random
from datetime import datetime
from typing import Callable, Dict, Optional

from cache import Cache
from events import ACTIVITY_LOGGED, ACTIVITY_DELETED, CATEGORY_CHANGED, Event
from logger import get_logger

logger = get_logger()

# Seconds each domain stays cached
DEFAULT_TTLS = {
    "activities": 5 * 60,
    "categories": 30 * 60,
    "category-tree": 30 * 60,
    "category-activity-data": 10 * 60,
    "category-mappings": 30 * 60,
}

# Domains holding data derived from each kind of change
_ACTIVITY_DOMAINS = ("activities", "category-activity-data")
_CATEGORY_DOMAINS = (
    "categories",
    "category-tree",
    "category-activity-data",
    "activities",
)

PURGE_PROBABILITY = 0.1


class UnsupportedCacheDomain(ValueError):
    """Raised for a cache type the layer does not know how to load."""

    def __init__(self, domain: str):
        super().__init__(f"Unsupported cache type: {domain}")
        self.domain = domain


def cache_key(domain: str, user_id: str, params: Optional[str] = None) -> str:
    """Build the cache key ``{domain}:{user_id}:{params or "default"}``."""
    return f"{domain}:{user_id}:{params or 'default'}"


class CacheLayer:
    """Caches per-user query results and drops them when data changes.

    Args:
        cache: Backing Cache implementation.
        categories: CategoryService used to load category domains.
        activities: ActivityService used to load activity domains.
        mappings: CategoryMappingService used to load stored mappings.
        ttl_overrides: Per-domain TTLs in seconds replacing the defaults.
        week_start: First day of the week for summaries.
        clock: Returns the current datetime for summaries.
        rng: Returns a float in [0, 1); decides when to purge.
    """

    def __init__(
        self,
        cache: Cache,
        categories,
        activities,
        mappings,
        ttl_overrides: Optional[Dict[str, int]] = None,
        week_start: str = "sunday",
        clock: Callable[[], datetime] = datetime.now,
        rng: Callable[[], float] = random.random,
    ):
        self.cache = cache
        self.categories = categories
        self.activities = activities
        self.mappings = mappings
        self.week_start = week_start
        self.clock = clock
        self.rng = rng

        self.ttls = dict(DEFAULT_TTLS)
        for domain, ttl in (ttl_overrides or {}).items():
            if domain not in DEFAULT_TTLS:
                logger.warning(f"Ignoring TTL override for unknown cache type: {domain}")
                continue
            self.ttls[domain] = ttl

        self._loaders = {
            "activities": self._load_activities,
            "categories": self._load_categories,
            "category-tree": self._load_category_tree,
            "category-activity-data": self._load_category_activity_data,
            "category-mappings": self._load_category_mappings,
        }

    def subscribe(self, event_bus) -> None:
        """Drop a user's cached data whenever the data layer reports a change."""
        event_bus.subscribe(ACTIVITY_LOGGED, self._on_activity_change)
        event_bus.subscribe(ACTIVITY_DELETED, self._on_activity_change)
        event_bus.subscribe(CATEGORY_CHANGED, self._on_category_change)

    def read(self, domain: str, user_id: str, params: Optional[str] = None) -> dict:
        """Return cached data for a domain, loading it on a miss.

        Args:
            domain: Cache type, e.g. "categories".
            user_id: User the data belongs to.
            params: Optional opaque key suffix.

        Returns:
            Dictionary with ``data``, ``cached``, ``cacheKey`` and
            ``cacheExpiry`` (ISO timestamp).

        Raises:
            UnsupportedCacheDomain: If the domain is unknown.
        """
        loader = self._loaders.get(domain)
        if loader is None:
            raise UnsupportedCacheDomain(domain)

        self._maybe_purge()

        key = cache_key(domain, user_id, params)
        entry = self.cache.get(key)
        if entry is not None:
            logger.debug(f"Cache hit: {key}")
            return self._response(key, entry.value, entry.expires_at, cached=True)

        logger.debug(f"Cache miss: {key}")
        data = loader(user_id)
        entry = self.cache.set(key, data, self.ttls[domain])
        return self._response(key, data, entry.expires_at, cached=False)

    def invalidate(
        self, domain: str, user_id: str, params: Optional[str] = None
    ) -> dict:
        """Remove cached data for a domain.

        ``params == "all"`` removes every entry of the domain for the user;
        anything else removes the single matching key.

        Raises:
            UnsupportedCacheDomain: If the domain is unknown.
        """
        if domain not in self._loaders:
            raise UnsupportedCacheDomain(domain)

        if params == "all":
            removed = self.cache.delete_prefix(f"{domain}:{user_id}:")
        else:
            removed = int(self.cache.delete(cache_key(domain, user_id, params)))

        logger.debug(f"Invalidated {removed} cache entries for {domain}:{user_id}")
        return {"success": True, "message": "Cache invalidated"}

    def invalidate_user(self, user_id: str, domains=None) -> int:
        """Remove every entry of ``domains`` (default all) for a user."""
        removed = 0
        for domain in domains or self._loaders:
            removed += self.cache.delete_prefix(f"{domain}:{user_id}:")
        return removed

    def _maybe_purge(self) -> None:
        if self.rng() < PURGE_PROBABILITY:
            purged = self.cache.purge_expired()
            if purged:
                logger.debug(f"Purged {purged} expired cache entries")

    def _on_activity_change(self, event: Event) -> int:
        return self.invalidate_user(event.payload["user_id"], _ACTIVITY_DOMAINS)

    def _on_category_change(self, event: Event) -> int:
        return self.invalidate_user(event.payload["user_id"], _CATEGORY_DOMAINS)

    def _response(self, key: str, data, expires_at: float, cached: bool) -> dict:
        return {
            "data": data,
            "cached": cached,
            "cacheKey": key,
            "cacheExpiry": datetime.fromtimestamp(expires_at).isoformat(),
        }

    def _load_activities(self, user_id: str) -> list:
        return [a.to_dict() for a in self.activities.find_by_user(user_id)]

    def _load_categories(self, user_id: str) -> list:
        return [
            c.to_dict(include_children=False)
            for c in self.categories.find_all(user_id)
        ]

    def _load_category_tree(self, user_id: str) -> list:
        return [root.to_dict() for root in self.categories.tree(user_id)]

    def _load_category_activity_data(self, user_id: str) -> dict:
        summaries = self.activities.summary(user_id, self.clock(), self.week_start)
        return {
            category_id: summary.to_dict()
            for category_id, summary in summaries.items()
        }

    def _load_category_mappings(self, user_id: str) -> list:
        return [m.to_dict() for m in self.mappings.find_all(user_id)]
