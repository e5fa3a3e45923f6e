"""Database operations for the key-value store."""

from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential
import structlog

from .models import KeyValueModel, init_db
from ..config.settings import settings
from ..errors import StoreError

logger = structlog.get_logger()


class KeyValueInterface:
    """Interface for a durable string key-value store."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key was never written."""
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        """Write a single value."""
        raise NotImplementedError

    def set_many(self, values: Dict[str, str]) -> None:
        """Write several values in one transaction."""
        raise NotImplementedError


class KeyValueStore(KeyValueInterface):
    """SQLite-backed key-value store."""

    def __init__(self, database_url: str = None, write_attempts: int = None):
        if database_url is None:
            database_url = settings.database_url

        # Ensure data directory exists
        if database_url.startswith("sqlite:///"):
            db_path = database_url.replace("sqlite:///", "")
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.write_attempts = write_attempts or settings.store_write_attempts
        self.engine = init_db(database_url)
        self.Session = sessionmaker(bind=self.engine)

    def get(self, key: str) -> Optional[str]:
        session = self.Session()
        try:
            model = session.get(KeyValueModel, key)
            return model.value if model else None
        finally:
            session.close()

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, values: Dict[str, str]) -> None:
        # Retry only while the database is locked by another writer
        retrying = Retrying(
            stop=stop_after_attempt(self.write_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            retry=retry_if_exception_type(OperationalError),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    self._write(values)
        except SQLAlchemyError as e:
            logger.error("store_write_failed", keys=sorted(values), error=str(e))
            raise StoreError(f"Failed to write {', '.join(sorted(values))}: {e}") from e

    def _write(self, values: Dict[str, str]) -> None:
        session = self.Session()
        try:
            now = datetime.utcnow()
            for key, value in values.items():
                model = session.get(KeyValueModel, key)
                if model is None:
                    session.add(KeyValueModel(key=key, value=value, updated_at=now))
                else:
                    model.value = value
                    model.updated_at = now
            session.commit()
            logger.debug("store_written", keys=sorted(values))
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            session.close()
