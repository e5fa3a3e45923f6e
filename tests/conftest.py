"""Pytest configuration and shared fixtures."""

import asyncio
import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pacfeed.errors import FeedFetchError
from pacfeed.ingestion.interfaces import DocumentItem, FeedDocument, FetcherInterface

FEED_A = "https://a.example.com/rss"
FEED_B = "https://b.example.com/rss"
BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeFetcher(FetcherInterface):
    """In-process fetcher serving canned documents.

    ``gates`` holds per-URL events a fetch waits on before answering, so
    tests can control completion order.
    """

    def __init__(self):
        self.documents = {}
        self.failures = {}
        self.gates = {}
        self.calls = []

    def serve(self, url, *items):
        self.documents[url] = FeedDocument(
            title=f"Feed {url}",
            link=url,
            description="Test feed",
            items=list(items),
        )

    def fail(self, url, reason="HTTP 500"):
        self.failures[url] = FeedFetchError(url, reason)

    async def fetch_document(self, url):
        self.calls.append(url)
        gate = self.gates.get(url)
        if gate is not None:
            await gate.wait()
        if url in self.failures:
            raise self.failures[url]
        return self.documents[url]


class FakeClock:
    """Settable replacement for time.time."""

    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def advance(self, seconds):
        self.now += seconds

    def __call__(self):
        return self.now


def make_item(guid, minutes=0, title=None):
    """A DocumentItem published ``minutes`` after BASE_TIME."""
    return DocumentItem(
        title=title or f"Item {guid}",
        link=f"https://example.com/{guid}",
        description=f"<p>{guid}</p>",
        published_at=BASE_TIME + timedelta(minutes=minutes),
        guid=guid,
    )


async def wait_for_calls(fetcher, count):
    """Yield to the loop until the fetcher has received ``count`` calls."""
    for _ in range(100):
        if len(fetcher.calls) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} fetches, saw {fetcher.calls}")


@pytest.fixture
def temp_db():
    """Provide a temporary database file."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    yield f"sqlite:///{db_path}"
    # Cleanup
    try:
        os.unlink(db_path)
    except FileNotFoundError:
        pass


@pytest.fixture
def state_store(temp_db):
    from pacfeed.storage.database import KeyValueStore
    from pacfeed.storage.state import StateStore
    return StateStore(KeyValueStore(temp_db))


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    mock = MagicMock()
    mock.notify = AsyncMock()
    return mock


@pytest.fixture
def make_synchronizer(fetcher, state_store, clock, notifier):
    """Factory for synchronizers sharing one store, fetcher and clock."""
    from pacfeed.sync.collaborators import CounterBadge, StaticPermissionGate
    from pacfeed.sync.engine import FeedSynchronizer

    def factory(subscriptions=(), partial_refresh=False, permissions=None):
        synchronizer = FeedSynchronizer(
            fetcher=fetcher,
            store=state_store,
            permissions=permissions or StaticPermissionGate([]),
            notifier=notifier,
            badge=CounterBadge(),
            clock=clock,
            staleness=timedelta(minutes=10),
            partial_refresh=partial_refresh,
        )
        synchronizer.load()
        for url in subscriptions:
            synchronizer.subscriptions.add(url)
        return synchronizer

    return factory


@pytest.fixture
def synchronizer(make_synchronizer):
    """Synchronizer subscribed to FEED_A and FEED_B."""
    return make_synchronizer(subscriptions=[FEED_A, FEED_B])
