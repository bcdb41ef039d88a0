"""Configuration management for the wellness tracker.

Reads configuration from ~/.config/wellness.toml and creates default config if needed.
"""

from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, List
import tomllib
import tomli_w


@dataclass
class Config:
    """Application configuration."""

    base_dir: Path
    db_data_dir: Path
    db_filename: str
    log_level: str
    log_dir: Path
    user_id: str = "local"
    week_start: str = "sunday"
    enforce_15_min_increments: bool = True
    auto_round_15_min: bool = True
    sleep_cutoff_hour: int = 4
    cache_ttl_overrides: Dict[str, int] = field(default_factory=dict)
    rate_limit_max_requests: int = 120
    rate_limit_window_seconds: int = 60
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    api_allowed_origins: List[str] = field(default_factory=list)
    api_tokens: Dict[str, str] = field(default_factory=dict)
    timer_state_file: str = "timer.json"

    @property
    def db_path(self) -> Path:
        """Get the full database path (data_dir/filename)."""
        return self.db_data_dir / self.db_filename

    @property
    def timer_state_path(self) -> Path:
        """Get the path of the persisted timer session."""
        return self.base_dir / self.timer_state_file

    @classmethod
    def default(cls) -> "Config":
        """Create a Config with default values."""
        home = Path.home()
        base_dir = home / "data" / "wellness"
        return cls(
            base_dir=base_dir,
            db_data_dir=base_dir / "db",
            db_filename="wellness.db",
            log_level="INFO",
            log_dir=base_dir / "logs",
        )


def get_config_path() -> Path:
    """Get the path to the config file."""
    return Path.home() / ".config" / "wellness.toml"


def get_migrations_dir() -> Path:
    """Get the path to the migrations directory.

    This is always relative to the code location, not configurable.
    """
    return Path(__file__).parent / "db" / "migrations"


def get_seed_dir() -> Path:
    """Get the path to the seed data directory."""
    return Path(__file__).parent / "db" / "seed"


def load_config() -> Config:
    """Load configuration from file, creating default if it doesn't exist.

    Returns:
        Config object with loaded or default values.
    """
    config_path = get_config_path()

    # If config doesn't exist, create it with defaults
    if not config_path.exists():
        config = Config.default()
        _write_config(config)
        return config

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    return parse_config(data)


def parse_config(data: dict) -> Config:
    """Build a Config from parsed TOML data, filling in defaults.

    Args:
        data: Dictionary loaded from the TOML config file.

    Returns:
        Config object.
    """
    defaults = Config.default()
    base_dir = Path(data.get("base_dir", defaults.base_dir))

    db_config = data.get("database", {})
    db_data_dir = Path(db_config.get("data_dir", base_dir / "db"))
    db_filename = db_config.get("filename", defaults.db_filename)

    log_config = data.get("logging", {})
    log_level = log_config.get("level", defaults.log_level)
    log_dir = Path(log_config.get("log_dir", base_dir / "logs"))

    user_config = data.get("user", {})
    validation_config = data.get("validation", {})
    cache_config = data.get("cache", {})
    rate_config = data.get("rate_limit", {})
    api_config = data.get("api", {})
    timer_config = data.get("timer", {})

    return Config(
        base_dir=base_dir,
        db_data_dir=db_data_dir,
        db_filename=db_filename,
        log_level=log_level,
        log_dir=log_dir,
        user_id=user_config.get("id", defaults.user_id),
        week_start=user_config.get("week_start", defaults.week_start),
        enforce_15_min_increments=validation_config.get(
            "enforce_15_min_increments", defaults.enforce_15_min_increments
        ),
        auto_round_15_min=validation_config.get(
            "auto_round_15_min", defaults.auto_round_15_min
        ),
        sleep_cutoff_hour=validation_config.get(
            "sleep_cutoff_hour", defaults.sleep_cutoff_hour
        ),
        cache_ttl_overrides=dict(cache_config.get("ttl_seconds", {})),
        rate_limit_max_requests=rate_config.get(
            "max_requests", defaults.rate_limit_max_requests
        ),
        rate_limit_window_seconds=rate_config.get(
            "window_seconds", defaults.rate_limit_window_seconds
        ),
        api_host=api_config.get("host", defaults.api_host),
        api_port=api_config.get("port", defaults.api_port),
        api_allowed_origins=list(api_config.get("allowed_origins", [])),
        api_tokens=dict(api_config.get("tokens", {})),
        timer_state_file=timer_config.get("state_file", defaults.timer_state_file),
    )


def _write_config(config: Config) -> None:
    """Write config to the config file.

    Args:
        config: Config object to write.
    """
    config_path = get_config_path()

    # Ensure config directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "base_dir": str(config.base_dir),
        "database": {
            "data_dir": str(config.db_data_dir),
            "filename": config.db_filename,
        },
        "logging": {
            "level": config.log_level,
            "log_dir": str(config.log_dir),
        },
        "user": {
            "id": config.user_id,
            "week_start": config.week_start,
        },
        "validation": {
            "enforce_15_min_increments": config.enforce_15_min_increments,
            "auto_round_15_min": config.auto_round_15_min,
            "sleep_cutoff_hour": config.sleep_cutoff_hour,
        },
        "cache": {
            "ttl_seconds": config.cache_ttl_overrides,
        },
        "rate_limit": {
            "max_requests": config.rate_limit_max_requests,
            "window_seconds": config.rate_limit_window_seconds,
        },
        "api": {
            "host": config.api_host,
            "port": config.api_port,
            "allowed_origins": config.api_allowed_origins,
            "tokens": config.api_tokens,
        },
        "timer": {
            "state_file": config.timer_state_file,
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
