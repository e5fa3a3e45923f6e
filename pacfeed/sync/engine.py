"""Feed synchronization: fetch all → merge → filter dismissals → prune → commit."""

import asyncio
import time
from datetime import timedelta
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import structlog

from .collaborators import CounterBadge, LogNotifier, StaticPermissionGate, canonical_origin
from .interfaces import (
    BadgeInterface, FeedCache, FeedItem, NotifierInterface,
    PermissionInterface, SubscribeOutcome,
)
from .state import DismissalIndex, SubscriptionSet
from ..config.settings import settings
from ..errors import FeedFetchError, ItemNotFoundError, PermissionDeniedError, RefreshError
from ..ingestion.interfaces import FeedDocument, FetcherInterface

logger = structlog.get_logger()


def merge_documents(
    documents: Mapping[str, FeedDocument],
    dismissals: DismissalIndex,
) -> Tuple[Dict[str, FeedItem], DismissalIndex, int]:
    """Merge fetched documents into one GUID-keyed map.

    GUIDs are not scoped by feed: when two feeds serve the same GUID the
    one merged last wins. Returns the items, the pruned dismissal index and
    the number of dismissals pruned.
    """
    items: Dict[str, FeedItem] = {}
    observed = {}
    for url, document in documents.items():
        seen = set()
        for entry in document.items:
            seen.add(entry.guid)
            if dismissals.is_dismissed(url, entry.guid):
                continue
            items[entry.guid] = FeedItem(
                source=url,
                guid=entry.guid,
                title=entry.title,
                link=entry.link,
                description=entry.description,
                published_at=entry.published_at,
            )
        observed[url] = seen

    # Dismissals for items the feed no longer serves can never match again
    pruned, removed = dismissals.pruned(observed)
    return items, pruned, removed


class FeedSynchronizer:
    """Owns the subscription set, dismissal index and feed cache.

    Mutations of shared state go through ``_state_lock``; at most one
    refresh runs at a time.
    """

    def __init__(
        self,
        fetcher: FetcherInterface,
        store,
        permissions: PermissionInterface = None,
        notifier: NotifierInterface = None,
        badge: BadgeInterface = None,
        clock: Callable[[], float] = time.time,
        staleness: timedelta = None,
        partial_refresh: bool = None,
    ):
        self.fetcher = fetcher
        self.store = store
        self.permissions = permissions or StaticPermissionGate()
        self.notifier = notifier or LogNotifier()
        self.badge = badge or CounterBadge()
        self.clock = clock
        self.staleness = staleness or timedelta(minutes=settings.cache_staleness_minutes)
        self.partial_refresh = (
            settings.partial_refresh if partial_refresh is None else partial_refresh
        )

        self.subscriptions = SubscriptionSet()
        self.dismissals = DismissalIndex()
        self.cache = FeedCache()

        self._state_lock = asyncio.Lock()
        self._refresh_lock = asyncio.Lock()
        self._inflight: Optional[asyncio.Future] = None
        self._inflight_sources: Optional[Tuple[str, ...]] = None

    def load(self) -> None:
        """Hydrate state from the durable store."""
        subscriptions, dismissed, cache = self.store.load()
        self.subscriptions = SubscriptionSet(subscriptions)
        self.dismissals = DismissalIndex(dismissed)
        self.cache = cache
        self._update_badge()

    def dismissed_for(self, url: str):
        return self.dismissals.get(url)

    async def refresh(self) -> List[FeedItem]:
        """Run a refresh cycle and return the merged items, oldest first.

        A caller arriving while a refresh over the same subscriptions is in
        flight shares its result; otherwise it waits its turn.
        """
        sources = self.subscriptions.snapshot()
        inflight = self._inflight
        if inflight is not None and not inflight.done() and self._inflight_sources == sources:
            logger.info("refresh_joined", feeds=len(sources))
            return await asyncio.shield(inflight)

        async with self._refresh_lock:
            sources = self.subscriptions.snapshot()
            self._inflight_sources = sources
            inflight = self._inflight = asyncio.ensure_future(self._refresh(sources))
            try:
                return await asyncio.shield(inflight)
            except asyncio.CancelledError:
                # The cycle keeps running; hold the lock until it commits
                await asyncio.wait([inflight])
                raise
            finally:
                self._inflight = None
                self._inflight_sources = None

    async def _refresh(self, sources: Tuple[str, ...]) -> List[FeedItem]:
        start = self.clock()
        logger.info("refresh_started", feeds=len(sources))

        # No source aborts the others
        results = await asyncio.gather(
            *(self.fetcher.fetch_document(url) for url in sources),
            return_exceptions=True
        )

        documents: Dict[str, FeedDocument] = {}
        failures: List[Tuple[str, FeedFetchError]] = []
        for url, result in zip(sources, results):
            if isinstance(result, FeedFetchError):
                failures.append((url, result))
            elif isinstance(result, Exception):
                failures.append((url, FeedFetchError(url, repr(result))))
            elif isinstance(result, BaseException):
                raise result
            else:
                documents[url] = result

        if failures:
            for url, error in failures:
                logger.warning("feed_failed_in_refresh", feed=url, error=error.reason)
            if not self.partial_refresh:
                logger.error("refresh_failed", failed=[url for url, _ in failures])
                raise RefreshError(failures)
            logger.warning("feeds_omitted", count=len(failures))

        async with self._state_lock:
            # Feeds unsubscribed while fetching are not merged back in
            documents = {u: d for u, d in documents.items() if u in self.subscriptions}
            # Read dismissals now, not at start, so mid-flight dismissals hold
            items, dismissals, pruned = merge_documents(documents, self.dismissals)
            cache = FeedCache(refreshed_at=self.clock(), items=items)

            self.cache = cache
            self.dismissals = dismissals
            self.store.save(
                subscriptions=self.subscriptions.snapshot(),
                dismissed=dismissals.to_dict(),
                cache=cache,
            )

        if pruned:
            logger.info("dismissals_pruned", count=pruned)
        self._update_badge()
        logger.info(
            "refresh_completed",
            feeds=len(documents),
            items=len(cache),
            omitted=len(failures),
            elapsed_seconds=round(self.clock() - start, 3)
        )
        return cache.sorted_items()

    async def get_view(self, force_refresh: bool = False) -> List[FeedItem]:
        """Return the cached view, refreshing first if forced or stale.

        Stale means older than the threshold; a cache exactly at the
        threshold is still served.
        """
        cache_age = self.clock() - self.cache.refreshed_at
        if force_refresh or cache_age > self.staleness.total_seconds():
            return await self.refresh()
        logger.info("cache_reused", age_seconds=round(cache_age, 1))
        return self.cache.sorted_items()

    async def dismiss(self, guid: str) -> None:
        """Hide an item until its feed stops serving it."""
        async with self._state_lock:
            item = self.cache.items.get(guid)
            if item is None:
                raise ItemNotFoundError(guid)
            self.dismissals.add(item.source, guid)
            self.cache = self.cache.without(guid)
            self.store.save(dismissed=self.dismissals.to_dict(), cache=self.cache)

        logger.info("item_dismissed", guid=guid, feed=item.source)
        self._update_badge()

    async def subscribe(self, url: str, refresh: bool = True) -> SubscribeOutcome:
        """Follow a feed, then refresh so its items appear.

        Raises PermissionDeniedError if access to the feed's origin is refused.
        """
        origin = canonical_origin(url)
        if not await self.permissions.request(origin):
            logger.warning("permission_denied", feed=url, origin=origin)
            raise PermissionDeniedError(origin)

        if url in self.subscriptions:
            logger.info("already_subscribed", feed=url)
            await self.notifier.notify(f"Already subscribed to {url}")
            return SubscribeOutcome.ALREADY_SUBSCRIBED

        async with self._state_lock:
            self.subscriptions.add(url)
            self.store.save(subscriptions=self.subscriptions.snapshot())

        logger.info("subscribed", feed=url)
        await self.notifier.notify(f"Subscribed to {url}")
        if refresh:
            await self.refresh()
        return SubscribeOutcome.SUBSCRIBED

    async def unsubscribe(self, url: str) -> bool:
        """Stop following a feed and forget its items and dismissals."""
        async with self._state_lock:
            if not self.subscriptions.remove(url):
                return False
            self.dismissals.drop(url)
            self.cache = self.cache.without_source(url)
            self.store.save(
                subscriptions=self.subscriptions.snapshot(),
                dismissed=self.dismissals.to_dict(),
                cache=self.cache,
            )

        logger.info("unsubscribed", feed=url)
        self._update_badge()
        return True

    def _update_badge(self) -> None:
        count = len(self.cache)
        self.badge.set_text(str(count) if count > 0 else "")
