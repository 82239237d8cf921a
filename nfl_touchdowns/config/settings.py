"""Application settings and configuration management.

This file implements a centralized configuration system using Pydantic Settings.
Every tunable value of the touchdown pipeline lives here: the SportsRadar
credentials, the politeness delays used while syncing a week, the database
location and the response cache sizing.

Configuration Sources (in priority order):
1. Environment variables (highest priority)
2. .env file values
3. Default values defined here (lowest priority)

For beginners:

Rate Limiting Settings: SportsRadar trial keys answer HTTP 429 quickly when
requests arrive back to back. The delay settings below spread requests out
so a full week sync stays under the limit.

Example: SPORTRADAR_API_KEY=abc123 nfl-touchdowns sync --week 3
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    Example Usage:
    - In code: `settings.sportradar_api_key`
    - Environment variable: `SPORTRADAR_API_KEY=...`
    - .env file: `database_url=sqlite:///dev.db`
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Unrelated keys in a shared .env are not an error
    )

    # API Configuration - FastAPI web server settings
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # Database Configuration - SQLAlchemy connection settings
    database_url: str = "sqlite:///data/database/nfl_touchdowns.db"
    database_pool_size: int = 5
    database_echo: bool = False  # Log all SQL queries

    # SportsRadar provider configuration
    sportradar_api_key: str | None = None
    sportradar_base_url: str = "https://api.sportradar.com/nfl/official/trial/v7/en"
    request_timeout: float = 15.0  # Seconds before an HTTP request is abandoned

    # Rate limiting - retry/backoff on HTTP 429
    initial_request_delay: float = 1.0  # Pause before the first attempt of every request
    max_retries: int = 3  # Retries after a 429 before giving up
    retry_base_delay: float = 2.0  # First backoff delay, doubled on every retry
    retry_max_delay: float = 10.0  # Ceiling for the backoff delay

    # Week sync pacing
    request_stagger_seconds: float = 0.5  # Request i of a batch starts i * stagger later
    batch_pause_seconds: float = 1.0  # Pause between the statistics and play-by-play batches
    week_pause_seconds: float = 3.0  # Pause between weeks in a multi-week sync

    # Aggregation behaviour
    prefer_scoreboard_totals: bool = False  # Use provider scoreboard total when larger than player sum

    # Cache Configuration - live provider fallback responses
    cache_ttl: int = 3600  # Seconds a cached week stays valid (1 hour)
    cache_max_entries: int = 128
    enable_live_fallback: bool = True  # Fetch from the provider when a week is not stored

    # Logging Configuration
    log_level: str = "INFO"
    log_file: Path = Path("data/logs/nfl_touchdowns.log")


# Global settings instance shared by the whole application
# Example: from nfl_touchdowns.config.settings import settings
settings = Settings()
