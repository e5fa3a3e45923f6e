"""Feed synchronization - merging, dismissals and scheduling."""

from .interfaces import (
    FeedItem, FeedCache, SubscribeOutcome,
    PermissionInterface, NotifierInterface, BadgeInterface,
)
from .state import SubscriptionSet, DismissalIndex
from .collaborators import (
    canonical_origin, StaticPermissionGate, LogNotifier, SlackNotifier,
    CounterBadge, default_notifier,
)
from .engine import FeedSynchronizer, merge_documents
from .worker import FeedWorker

__all__ = [
    "FeedItem", "FeedCache", "SubscribeOutcome",
    "PermissionInterface", "NotifierInterface", "BadgeInterface",
    "SubscriptionSet", "DismissalIndex",
    "canonical_origin", "StaticPermissionGate", "LogNotifier", "SlackNotifier",
    "CounterBadge", "default_notifier",
    "FeedSynchronizer", "merge_documents", "FeedWorker",
]
