"""Request handling for the display sink."""

from .router import RequestRouter
from .server import create_app

__all__ = ["RequestRouter", "create_app"]
