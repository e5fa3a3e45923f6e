"""Errors raised by fetching, synchronization and storage."""

from typing import List, Tuple


class FeedFetchError(Exception):
    """Raised when a feed cannot be fetched (network error, timeout, bad status)."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class DocumentFormatError(FeedFetchError):
    """Raised when a fetched document is not RSS or lacks a required field."""


class RefreshError(Exception):
    """Raised when a refresh cycle fails. The cache is left at its prior value."""

    def __init__(self, failures: List[Tuple[str, FeedFetchError]]):
        urls = ", ".join(url for url, _ in failures)
        super().__init__(f"Refresh failed for {len(failures)} feed(s): {urls}")
        self.failures = failures


class ItemNotFoundError(Exception):
    """Raised when dismissing an item that is not in the feed cache."""

    def __init__(self, guid: str):
        super().__init__(f"Dismissing an untracked item: {guid}")
        self.guid = guid


class PermissionDeniedError(Exception):
    """Raised when access to a feed's origin is refused."""

    def __init__(self, origin: str):
        super().__init__(f"Permission denied for {origin}")
        self.origin = origin


class StoreError(Exception):
    """Raised when state cannot be written to the durable store."""
