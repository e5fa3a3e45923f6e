"""Default permission, notification and badge collaborators."""

from typing import Iterable, Optional
from urllib.parse import urlparse

import httpx
import structlog

from .interfaces import BadgeInterface, NotifierInterface, PermissionInterface
from ..config.settings import settings

logger = structlog.get_logger()


def canonical_origin(url: str) -> str:
    """Origin pattern to request access for, e.g. ``*://*.example.com/*``."""
    host = urlparse(url).hostname
    if not host:
        raise ValueError(f"Not an absolute URL: {url}")
    if host.startswith("www."):
        host = host[len("www."):]
    return f"*://*.{host}/*"


def _origin_host(origin: str) -> str:
    host = origin.split("://", 1)[-1]
    if host.startswith("*."):
        host = host[2:]
    return host.split("/", 1)[0]


class StaticPermissionGate(PermissionInterface):
    """Grants origins whose host is on an allow-list. An empty list grants all."""

    def __init__(self, allowed_hosts: Optional[Iterable[str]] = None):
        if allowed_hosts is None:
            allowed_hosts = settings.allowed_hosts
        self.allowed_hosts = [h.lower().removeprefix("www.") for h in allowed_hosts]

    async def request(self, origin: str) -> bool:
        if not self.allowed_hosts:
            return True
        host = _origin_host(origin).lower()
        granted = any(
            host == allowed or host.endswith("." + allowed)
            for allowed in self.allowed_hosts
        )
        logger.debug("permission_checked", origin=origin, granted=granted)
        return granted


class LogNotifier(NotifierInterface):
    """Writes notifications to the log."""

    async def notify(self, message: str) -> None:
        logger.info("user_notified", message=message)


class SlackNotifier(NotifierInterface):
    """Posts notifications to a Slack webhook. Delivery failures are only logged."""

    def __init__(self, webhook_url: str, client: httpx.AsyncClient = None):
        self.webhook_url = webhook_url
        self.client = client

    async def notify(self, message: str) -> None:
        logger.info("user_notified", message=message, channel="slack")
        try:
            if self.client is not None:
                await self._post(self.client, message)
            else:
                async with httpx.AsyncClient() as client:
                    await self._post(client, message)
        except httpx.HTTPError as e:
            logger.error("notification_failed", error=str(e))

    async def _post(self, client: httpx.AsyncClient, message: str) -> None:
        response = await client.post(self.webhook_url, json={"text": f"*Pacfeed*\n{message}"})
        response.raise_for_status()


def default_notifier() -> NotifierInterface:
    if settings.slack_webhook_url:
        return SlackNotifier(settings.slack_webhook_url)
    return LogNotifier()


class CounterBadge(BadgeInterface):
    """Holds the current badge text; empty when there is nothing unread."""

    def __init__(self):
        self.text = ""

    def set_text(self, text: str) -> None:
        if text != self.text:
            logger.info("badge_updated", text=text)
        self.text = text
