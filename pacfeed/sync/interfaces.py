"""Interface definitions for feed synchronization."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List


@dataclass(frozen=True)
class FeedItem:
    """A merged item as shown to the user. Replaced wholesale on each refresh."""
    source: str  # subscription URL the item was fetched from
    guid: str
    title: str
    link: str
    description: str
    published_at: datetime

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "source": self.source,
            "guid": self.guid,
            "title": self.title,
            "link": self.link,
            "description": self.description,
            "published_at": self.published_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FeedItem":
        return cls(
            source=data["source"],
            guid=data["guid"],
            title=data["title"],
            link=data["link"],
            description=data["description"],
            published_at=datetime.fromisoformat(data["published_at"]),
        )


@dataclass(frozen=True)
class FeedCache:
    """Snapshot of the visible items, keyed by GUID.

    Never mutated in place: refresh and dismiss both swap in a new snapshot,
    so a reader holding one never sees a mix of two cycles.
    """
    refreshed_at: float = 0.0  # epoch seconds, 0 = never refreshed
    items: Dict[str, FeedItem] = field(default_factory=dict)

    def sorted_items(self) -> List[FeedItem]:
        """Items ordered by publication time, oldest first. Ties keep merge order."""
        return sorted(self.items.values(), key=lambda item: item.published_at)

    def without(self, guid: str) -> "FeedCache":
        items = {k: v for k, v in self.items.items() if k != guid}
        return FeedCache(refreshed_at=self.refreshed_at, items=items)

    def without_source(self, source: str) -> "FeedCache":
        items = {k: v for k, v in self.items.items() if v.source != source}
        return FeedCache(refreshed_at=self.refreshed_at, items=items)

    def __len__(self) -> int:
        return len(self.items)


class SubscribeOutcome(Enum):
    """Non-error results of a subscribe request."""
    SUBSCRIBED = "subscribed"
    ALREADY_SUBSCRIBED = "already_subscribed"


class PermissionInterface:
    """Grants or refuses access to a feed's origin."""

    async def request(self, origin: str) -> bool:
        """Return True if access to the origin pattern is granted."""
        raise NotImplementedError


class NotifierInterface:
    """User-facing notifications."""

    async def notify(self, message: str) -> None:
        raise NotImplementedError


class BadgeInterface:
    """Unread-count badge."""

    def set_text(self, text: str) -> None:
        raise NotImplementedError
