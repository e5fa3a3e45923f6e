"""Subscription set and dismissal index."""

from typing import Dict, FrozenSet, Iterable, Iterator, Mapping, Optional, Set, Tuple


class SubscriptionSet:
    """Feed URLs the user follows, in subscription order."""

    def __init__(self, urls: Iterable[str] = ()):
        self._urls = dict.fromkeys(urls)

    def add(self, url: str) -> bool:
        """Add a URL. Returns False if it was already present."""
        if url in self._urls:
            return False
        self._urls[url] = None
        return True

    def remove(self, url: str) -> bool:
        """Remove a URL. Returns False if it was not present."""
        if url not in self._urls:
            return False
        del self._urls[url]
        return True

    def snapshot(self) -> Tuple[str, ...]:
        return tuple(self._urls)

    def __contains__(self, url: str) -> bool:
        return url in self._urls

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._urls)


class DismissalIndex:
    """Per-feed sets of dismissed GUIDs.

    A set only ever holds GUIDs that were present in its feed's last
    successful fetch; see pruned().
    """

    def __init__(self, entries: Optional[Mapping[str, Iterable[str]]] = None):
        self._sets: Dict[str, Set[str]] = {
            url: set(guids) for url, guids in (entries or {}).items()
        }

    def add(self, source: str, guid: str) -> None:
        self._sets.setdefault(source, set()).add(guid)

    def is_dismissed(self, source: str, guid: str) -> bool:
        return guid in self._sets.get(source, ())

    def get(self, source: str) -> FrozenSet[str]:
        return frozenset(self._sets.get(source, ()))

    def drop(self, source: str) -> bool:
        return self._sets.pop(source, None) is not None

    def pruned(self, observed: Mapping[str, Set[str]]) -> Tuple["DismissalIndex", int]:
        """Return a copy where each observed feed's set is intersected with what it served.

        Feeds absent from ``observed`` (not fetched this cycle) keep their set
        unchanged. Emptied sets are dropped. Also returns how many GUIDs were removed.
        """
        entries = {}
        removed = 0
        for source, guids in self._sets.items():
            if source in observed:
                kept = guids & observed[source]
                removed += len(guids) - len(kept)
            else:
                kept = set(guids)
            if kept:
                entries[source] = kept
        return DismissalIndex(entries), removed

    def to_dict(self) -> Dict[str, Set[str]]:
        return {source: set(guids) for source, guids in self._sets.items()}

    def __contains__(self, source: str) -> bool:
        return source in self._sets

    def __len__(self) -> int:
        return len(self._sets)
