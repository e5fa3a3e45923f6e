#!/usr/bin/env python3
"""CLI tool to manage subscriptions and dismissals."""

import sys
import asyncio
import argparse
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from pacfeed.bootstrap import build_synchronizer
from pacfeed.config.feeds import load_seed_subscriptions
from pacfeed.errors import ItemNotFoundError, PermissionDeniedError, RefreshError
from pacfeed.ingestion.fetcher import RSSFetcher


def print_header(title):
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


async def cmd_list(sync, args):
    """List subscriptions with their dismissal counts."""
    print_header(f"SUBSCRIPTIONS ({len(sync.subscriptions)})")
    for url in sync.subscriptions:
        print(f"  {url}  (dismissed: {len(sync.dismissed_for(url))})")


async def cmd_show(sync, args):
    """Show the merged feed."""
    items = await sync.get_view(force_refresh=args.refresh)
    print_header(f"ITEMS ({len(items)})")
    for item in items[-args.limit:]:
        print(f"\n  {item.title}")
        print(f"    guid: {item.guid}")
        print(f"    {item.published_at:%Y-%m-%d %H:%M}  {item.source}")


async def cmd_subscribe(sync, args):
    outcome = await sync.subscribe(args.url)
    print(f"{args.url}: {outcome.value}")


async def cmd_unsubscribe(sync, args):
    removed = await sync.unsubscribe(args.url)
    print(f"{args.url}: {'unsubscribed' if removed else 'not subscribed'}")


async def cmd_dismiss(sync, args):
    await sync.dismiss(args.guid)
    print(f"Dismissed {args.guid}")


async def cmd_import(sync, args):
    """Subscribe to every enabled feed in a JSON file, then refresh once."""
    urls = load_seed_subscriptions(args.path)
    for url in urls:
        outcome = await sync.subscribe(url, refresh=False)
        print(f"  {url}: {outcome.value}")
    await sync.refresh()


COMMANDS = {
    "list": cmd_list,
    "show": cmd_show,
    "subscribe": cmd_subscribe,
    "unsubscribe": cmd_unsubscribe,
    "dismiss": cmd_dismiss,
    "import": cmd_import,
}


async def run(args):
    async with RSSFetcher() as fetcher:
        sync = build_synchronizer(fetcher)
        await COMMANDS[args.command](sync, args)


def main():
    parser = argparse.ArgumentParser(description="Manage feed subscriptions")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List subscriptions")

    show = subparsers.add_parser("show", help="Show merged items")
    show.add_argument("--refresh", action="store_true", help="Force a refresh")
    show.add_argument("--limit", type=int, default=20)

    sub = subparsers.add_parser("subscribe", help="Subscribe to a feed")
    sub.add_argument("url")

    unsub = subparsers.add_parser("unsubscribe", help="Unsubscribe from a feed")
    unsub.add_argument("url")

    dismiss = subparsers.add_parser("dismiss", help="Dismiss an item by GUID")
    dismiss.add_argument("guid")

    imp = subparsers.add_parser("import", help="Import feeds from a JSON file")
    imp.add_argument("path", nargs="?", default=None)

    args = parser.parse_args()
    try:
        asyncio.run(run(args))
    except (ItemNotFoundError, PermissionDeniedError, RefreshError) as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
