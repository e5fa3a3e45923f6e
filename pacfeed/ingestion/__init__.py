"""Document ingestion - fetching and parsing RSS feeds."""

from .interfaces import FeedDocument, DocumentItem, FetcherInterface
from .fetcher import RSSFetcher, parse_document

__all__ = [
    "FeedDocument", "DocumentItem", "FetcherInterface",
    "RSSFetcher", "parse_document",
]
