"""Long-running service: periodic refresh plus the HTTP surface.

Usage:
    python scripts/worker.py

Environment Variables:
    PF_DATABASE_URL: SQLAlchemy URL of the state store
    PF_REFRESH_INTERVAL_MINUTES: refresh period (default 10)
    PF_PARTIAL_REFRESH: omit failing feeds instead of failing the cycle
    PF_SLACK_WEBHOOK_URL: optional, for subscribe notifications
"""

import os
import sys
import asyncio

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import structlog
import uvicorn

from pacfeed.api import RequestRouter, create_app
from pacfeed.bootstrap import build_synchronizer
from pacfeed.config.settings import settings
from pacfeed.ingestion.fetcher import RSSFetcher
from pacfeed.sync.worker import FeedWorker

logger = structlog.get_logger()


async def main():
    """Main entry point."""
    async with RSSFetcher() as fetcher:
        synchronizer = build_synchronizer(fetcher)
        router = RequestRouter(synchronizer)
        worker = FeedWorker(synchronizer)

        # uvicorn handles SIGINT/SIGTERM and returns from serve()
        server = uvicorn.Server(uvicorn.Config(
            create_app(router),
            host=settings.api_host,
            port=settings.api_port,
            log_level="info",
        ))

        worker.start()
        try:
            await server.serve()
        finally:
            logger.info("shutting_down")
            worker.stop()
            await router.drain()


if __name__ == "__main__":
    asyncio.run(main())
