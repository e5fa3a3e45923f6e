"""Factory functions to create storage instances from settings."""

from functools import lru_cache

import structlog

from .database import KeyValueStore
from .state import StateStore
from ..config.settings import settings

logger = structlog.get_logger()


@lru_cache(maxsize=1)
def get_state_store() -> StateStore:
    """Get the process-wide state store for the configured database."""
    url = settings.database_url
    logger.info("using_kv_store", url=url[:40] + "...")
    return StateStore(KeyValueStore(url))


def clear_cache():
    """Clear cached instances (useful for testing)."""
    get_state_store.cache_clear()
