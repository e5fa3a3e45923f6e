"""Interface definitions for document ingestion."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List


@dataclass(frozen=True)
class DocumentItem:
    """One <item> of a fetched RSS document."""
    title: str
    link: str
    description: str
    published_at: datetime  # timezone-aware UTC
    guid: str


@dataclass
class FeedDocument:
    """A fetched and validated RSS document."""
    title: str
    link: str
    description: str
    items: List[DocumentItem] = field(default_factory=list)


class FetcherInterface:
    """Interface for document fetching."""

    async def fetch_document(self, url: str) -> FeedDocument:
        """Fetch and parse a single feed.

        Raises FeedFetchError (or DocumentFormatError) on failure.
        """
        raise NotImplementedError
