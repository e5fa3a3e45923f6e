"""Serialization of subscriptions, dismissals and the feed cache."""

import json
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

import structlog

from .database import KeyValueInterface
from ..sync.interfaces import FeedCache, FeedItem

logger = structlog.get_logger()

SUBSCRIPTIONS_KEY = "subscriptions"
DISMISSED_KEY = "dismissed"
FEED_CACHE_KEY = "feed_cache"


def encode_subscriptions(urls: Iterable[str]) -> str:
    return json.dumps(list(urls))


def decode_subscriptions(raw: Optional[str]) -> List[str]:
    return list(json.loads(raw or "[]"))


def encode_dismissals(dismissed: Mapping[str, Iterable[str]]) -> str:
    """Encode as a list of [url, [guid, ...]] pairs."""
    return json.dumps([[url, sorted(guids)] for url, guids in dismissed.items()])


def decode_dismissals(raw: Optional[str]) -> Dict[str, Set[str]]:
    return {url: set(guids) for url, guids in json.loads(raw or "[]")}


def encode_cache(cache: FeedCache) -> str:
    """Encode as {"time": ..., "items": [[guid, item], ...]}, keeping merge order."""
    return json.dumps({
        "time": cache.refreshed_at,
        "items": [[guid, item.to_dict()] for guid, item in cache.items.items()],
    })


def decode_cache(raw: Optional[str]) -> FeedCache:
    data = json.loads(raw or '{"time": 0, "items": []}')
    items = {guid: FeedItem.from_dict(item) for guid, item in data.get("items", [])}
    return FeedCache(refreshed_at=data.get("time", 0), items=items)


class StateStore:
    """Loads and saves the three persisted records through a key-value store."""

    def __init__(self, kv: KeyValueInterface):
        self.kv = kv

    def load(self) -> Tuple[List[str], Dict[str, Set[str]], FeedCache]:
        subscriptions = decode_subscriptions(self.kv.get(SUBSCRIPTIONS_KEY))
        dismissed = decode_dismissals(self.kv.get(DISMISSED_KEY))
        cache = decode_cache(self.kv.get(FEED_CACHE_KEY))
        logger.info(
            "state_loaded",
            subscriptions=len(subscriptions),
            dismissed_feeds=len(dismissed),
            cached_items=len(cache.items)
        )
        return subscriptions, dismissed, cache

    def save(
        self,
        subscriptions: Optional[Iterable[str]] = None,
        dismissed: Optional[Mapping[str, Iterable[str]]] = None,
        cache: Optional[FeedCache] = None,
    ) -> None:
        """Persist whichever records are given, in a single write."""
        values = {}
        if subscriptions is not None:
            values[SUBSCRIPTIONS_KEY] = encode_subscriptions(subscriptions)
        if dismissed is not None:
            values[DISMISSED_KEY] = encode_dismissals(dismissed)
        if cache is not None:
            values[FEED_CACHE_KEY] = encode_cache(cache)
        if not values:
            return
        self.kv.set_many(values)
        logger.debug("state_saved", records=sorted(values))
