"""SQLAlchemy models for the durable key-value store."""

from datetime import datetime

from sqlalchemy import create_engine, Column, String, Text, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class KeyValueModel(Base):
    """One persisted record, stored as serialized JSON."""
    __tablename__ = "kv_store"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


def init_db(database_url: str):
    """Create the engine and any missing tables."""
    engine = create_engine(database_url)
    Base.metadata.create_all(engine)
    return engine
