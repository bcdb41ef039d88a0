"""Base services container for dependency injection."""

from datetime import datetime

from cache import MemoryCache
from config import Config
from db.manager import DatabaseManager
from events import EventBus
from rate_limiter import FixedWindowRateLimiter


class Services:
    """Container for all application services.

    This class provides a centralized way to access all services and makes
    it easy to inject test doubles.

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing.
        cache: Optional Cache implementation; defaults to a MemoryCache.
        clock: Returns the current datetime; defaults to datetime.now.
    """

    def __init__(self, config: Config, db_manager=None, cache=None, clock=None):
        """Initialize services with configuration.

        Args:
            config: Config object containing application configuration.
            db_manager: Optional database manager for dependency injection (testing).
                       If None, creates DatabaseManager from config.
            cache: Optional cache for dependency injection (testing).
            clock: Optional clock for dependency injection (testing).
        """
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)
        self.clock = clock or datetime.now
        self.event_bus = EventBus()
        self.cache = cache if cache is not None else MemoryCache()

        # Lazy import to avoid circular dependencies
        from services.categories import CategoryService
        from services.activities import ActivityService
        from services.category_mappings import CategoryMappingService
        from services.entries import EntryService
        from services.cache_layer import CacheLayer

        self.categories = CategoryService(self.db_manager, self.event_bus)
        self.activities = ActivityService(
            self.db_manager, self.categories, self.event_bus
        )
        self.category_mappings = CategoryMappingService(self.db_manager)
        self.entries = EntryService(
            self.activities, self.categories, self.category_mappings, clock=self.clock
        )
        self.cache_layer = CacheLayer(
            self.cache,
            self.categories,
            self.activities,
            self.category_mappings,
            ttl_overrides=config.cache_ttl_overrides,
            week_start=config.week_start,
            clock=self.clock,
        )
        self.cache_layer.subscribe(self.event_bus)
        self.rate_limiter = FixedWindowRateLimiter(
            max_requests=config.rate_limit_max_requests,
            window_seconds=config.rate_limit_window_seconds,
        )
