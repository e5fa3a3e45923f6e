"""Wire a synchronizer from settings."""

from .ingestion.interfaces import FetcherInterface
from .storage.factory import get_state_store
from .sync.collaborators import CounterBadge, StaticPermissionGate, default_notifier
from .sync.engine import FeedSynchronizer


def build_synchronizer(fetcher: FetcherInterface) -> FeedSynchronizer:
    """Create a synchronizer with the configured store and collaborators, state loaded."""
    synchronizer = FeedSynchronizer(
        fetcher=fetcher,
        store=get_state_store(),
        permissions=StaticPermissionGate(),
        notifier=default_notifier(),
        badge=CounterBadge(),
    )
    synchronizer.load()
    return synchronizer
