"""Durable key-value storage and state serialization."""

from .database import KeyValueStore
from .models import KeyValueModel, init_db
from .state import StateStore

__all__ = ["KeyValueStore", "KeyValueModel", "init_db", "StateStore"]
