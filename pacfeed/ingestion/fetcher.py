"""RSS document fetcher with async support and a per-source timeout."""

import asyncio
import time
from datetime import datetime, timezone
from typing import Optional
from xml.sax import SAXException

import aiohttp
import feedparser
import structlog

from .interfaces import DocumentItem, FeedDocument, FetcherInterface
from ..config.settings import settings
from ..errors import DocumentFormatError, FeedFetchError

logger = structlog.get_logger()

CHANNEL_FIELDS = ("title", "link", "description")
ITEM_FIELDS = ("title", "link", "description", "published", "id")

# feedparser versions whose root element is <rss>; rss090 and rss10 are RDF
RSS_VERSIONS = frozenset({
    "rss", "rss091u", "rss091n", "rss092", "rss093", "rss094", "rss20",
})


def _required(node, key: str, url: str, where: str) -> str:
    value = node.get(key)
    # feedparser exposes <guid> as "id" and <pubDate> as "published"
    name = {"id": "guid", "published": "pubDate"}.get(key, key)
    if value is None:
        raise DocumentFormatError(url, f"No {name} in {where}")
    if not value.strip():
        raise DocumentFormatError(url, f"Empty {name} in {where}")
    return value


def parse_document(content: str, url: str) -> FeedDocument:
    """Parse an RSS document, failing on anything that isn't well-formed RSS.

    A missing or empty channel or item field fails the whole document
    rather than dropping the offending item.
    """
    feed = feedparser.parse(content)

    exc = feed.get("bozo_exception")
    if feed.get("bozo") and isinstance(exc, SAXException):
        raise DocumentFormatError(url, f"Malformed XML: {exc}")

    if feed.get("version") not in RSS_VERSIONS:
        reason = "Response is not an RSS document"
        if exc:
            reason += f" ({exc})"
        raise DocumentFormatError(url, reason)

    channel = feed.feed
    title, link, description = (
        _required(channel, key, url, "channel") for key in CHANNEL_FIELDS
    )

    items = []
    for index, entry in enumerate(feed.entries):
        where = f"item {index}"
        fields = {key: _required(entry, key, url, where) for key in ITEM_FIELDS}
        parsed = entry.get("published_parsed")
        if not parsed:
            raise DocumentFormatError(url, f"Unparseable pubDate in {where}: {fields['published']}")
        items.append(DocumentItem(
            title=fields["title"],
            link=fields["link"],
            description=fields["description"],
            published_at=datetime(*parsed[:6], tzinfo=timezone.utc),
            guid=fields["id"],
        ))

    return FeedDocument(title=title, link=link, description=description, items=items)


class RSSFetcher(FetcherInterface):
    """Async RSS fetcher with bounded concurrency."""

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        max_concurrency: Optional[int] = None,
        user_agent: Optional[str] = None,
    ):
        self.timeout_seconds = timeout_seconds or settings.fetch_timeout_seconds
        self.user_agent = user_agent or settings.user_agent
        self.session: Optional[aiohttp.ClientSession] = None
        self.semaphore = asyncio.Semaphore(max_concurrency or settings.fetch_max_concurrency)

    async def __aenter__(self):
        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            headers={"User-Agent": self.user_agent}
        )
        return self

    async def __aexit__(self, *args):
        if self.session:
            await self.session.close()
            self.session = None

    async def fetch_document(self, url: str) -> FeedDocument:
        """Fetch a single feed and validate it."""
        if self.session is None:
            raise RuntimeError("RSSFetcher must be used as an async context manager")

        async with self.semaphore:
            start_time = time.time()
            try:
                async with self.session.get(url) as response:
                    if response.status != 200:
                        raise FeedFetchError(url, f"HTTP {response.status}")
                    content = await response.text()
                document = parse_document(content, url)
            except FeedFetchError as e:
                logger.error("feed_fetch_failed", feed=url, error=e.reason)
                raise
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                reason = str(e) or type(e).__name__
                logger.error("feed_fetch_failed", feed=url, error=reason)
                raise FeedFetchError(url, reason) from e

            elapsed_ms = int((time.time() - start_time) * 1000)
            logger.info(
                "feed_fetched",
                feed=url,
                items=len(document.items),
                time_ms=elapsed_ms
            )
            return document
