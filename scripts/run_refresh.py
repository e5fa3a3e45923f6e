#!/usr/bin/env python3
"""Run one refresh cycle and print the merged feed."""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from pacfeed.bootstrap import build_synchronizer
from pacfeed.errors import RefreshError
from pacfeed.ingestion.fetcher import RSSFetcher


async def run_refresh():
    async with RSSFetcher() as fetcher:
        synchronizer = build_synchronizer(fetcher)
        return await synchronizer.refresh()


def main():
    print("\n" + "=" * 50)
    print("PACFEED REFRESH")
    print("=" * 50 + "\n")

    try:
        items = asyncio.run(run_refresh())
    except RefreshError as e:
        print("REFRESH FAILED:")
        for url, error in e.failures:
            print(f"  {url}: {error.reason}")
        sys.exit(1)

    for item in items:
        print(f"  {item.published_at:%Y-%m-%d %H:%M}  {item.title}")
        print(f"    {item.link}")

    print(f"\nITEMS: {len(items)}\n")


if __name__ == "__main__":
    main()
