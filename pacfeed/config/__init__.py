"""Configuration - settings and seed subscriptions."""

from .settings import Settings, settings
from .feeds import load_seed_subscriptions

__all__ = ["Settings", "settings", "load_seed_subscriptions"]
