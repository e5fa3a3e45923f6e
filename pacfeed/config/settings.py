"""Application settings with environment variable support."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from pathlib import Path


# Compute base_dir at module level
_BASE_DIR = Path(__file__).parent.parent.parent.resolve()


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PF_",  # PF_DATABASE_URL, PF_PARTIAL_REFRESH, etc.
    )

    # Paths
    base_dir: Path = _BASE_DIR
    data_dir: Path = _BASE_DIR / "data"
    config_dir: Path = _BASE_DIR / "config"

    # Durable key-value store
    database_url: str = f"sqlite:///{_BASE_DIR / 'data' / 'pacfeed.db'}"
    store_write_attempts: int = 3

    # Synchronization
    refresh_interval_minutes: int = 10
    cache_staleness_minutes: int = 10
    partial_refresh: bool = False  # omit failed sources instead of failing the refresh

    # Ingestion
    fetch_timeout_seconds: int = 30
    fetch_max_concurrency: int = 5
    user_agent: str = "PacfeedBot/1.0"

    # Subscriptions
    allowed_hosts: List[str] = []  # empty grants every origin

    # Notifications
    slack_webhook_url: Optional[str] = None

    # HTTP surface
    api_host: str = "127.0.0.1"
    api_port: int = 8080


settings = Settings()
