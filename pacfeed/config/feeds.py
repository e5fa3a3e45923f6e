"""Seed subscription loader."""

import json
from pathlib import Path
from typing import List

from .settings import settings


def load_seed_subscriptions(config_path: str = None) -> List[str]:
    """Load enabled feed URLs from a JSON file."""
    if config_path is None:
        config_path = settings.config_dir / "feeds.json"

    with open(config_path) as f:
        data = json.load(f)

    urls = []
    for feed_data in data.get("feeds", []):
        if not feed_data.get("enabled", True):
            continue
        url = feed_data["url"]
        if url not in urls:
            urls.append(url)

    return urls
