"""Routes display-sink requests to the synchronizer.

getFeeds is answered; dismiss, subscribe and unsubscribe are
fire-and-forget, with failures logged at this boundary.
"""

import asyncio
from typing import Awaitable, List, Optional, Set

import structlog

from ..sync.engine import FeedSynchronizer

logger = structlog.get_logger()


class RequestRouter:
    """Dispatches messages of the form ``{"type": ..., ...}``."""

    def __init__(self, synchronizer: FeedSynchronizer):
        self.synchronizer = synchronizer
        self._tasks: Set[asyncio.Task] = set()

    async def handle(self, message: dict) -> Optional[List[dict]]:
        kind = message.get("type")
        if kind == "getFeeds":
            return await self.get_feeds(bool(message.get("forceRefresh", False)))
        if kind == "dismiss":
            self.dismiss(message["guid"])
        elif kind == "subscribe":
            self.subscribe(message["uri"])
        elif kind == "unsubscribe":
            self.unsubscribe(message["uri"])
        else:
            raise ValueError(f"Unknown message type: {kind}")
        return None

    async def get_feeds(self, force_refresh: bool = False) -> List[dict]:
        items = await self.synchronizer.get_view(force_refresh)
        return [item.to_dict() for item in items]

    def dismiss(self, guid: str) -> asyncio.Task:
        return self._spawn(self.synchronizer.dismiss(guid), message="dismiss", guid=guid)

    def subscribe(self, url: str) -> asyncio.Task:
        return self._spawn(self.synchronizer.subscribe(url), message="subscribe", feed=url)

    def unsubscribe(self, url: str) -> asyncio.Task:
        return self._spawn(self.synchronizer.unsubscribe(url), message="unsubscribe", feed=url)

    def subscriptions(self) -> List[str]:
        return list(self.synchronizer.subscriptions)

    async def drain(self) -> None:
        """Wait for all background tasks, including ones they spawn."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, coro: Awaitable, **context) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finished(t, context))
        return task

    def _finished(self, task: asyncio.Task, context: dict) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("message_cancelled", **context)
            return
        error = task.exception()
        if error is not None:
            logger.error("message_failed", error=str(error),
                         error_type=type(error).__name__, **context)
        else:
            logger.info("message_handled", **context)
