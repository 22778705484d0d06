"""
Persistence backends for the entity store

The store keeps everything in memory; a backend only mirrors records so a
restart can reload them. NullPersistence is the default (nothing survives a
restart). SqlSnapshotPersistence keeps one JSON row per entity.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List
import logging

from sqlalchemy import create_engine, event, Column, String, DateTime, JSON, select
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


class EntityRecord(Base):
    __tablename__ = "entity_record"

    collection = Column(String(32), primary_key=True)
    entity_id = Column(String(64), primary_key=True)
    payload = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class NullPersistence:
    """Keeps nothing; the store is volatile"""

    def save_record(self, collection: str, entity_id: str, payload: Dict[str, Any]) -> None:
        pass

    def load(self) -> Dict[str, List[Dict[str, Any]]]:
        return {}

    def close(self) -> None:
        pass


class SqlSnapshotPersistence:
    """Mirrors every stored entity into a SQL table through SQLAlchemy"""

    def __init__(self, database_url: str, echo: bool = False):
        connect_args = {}
        engine_kwargs: Dict[str, Any] = {"pool_pre_ping": True, "echo": echo}
        if "sqlite" in database_url:
            connect_args["check_same_thread"] = False
            if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
                # one shared connection, otherwise each session sees an empty database
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(database_url, connect_args=connect_args, **engine_kwargs)

        # Enable WAL Mode for SQLite Concurrency
        if "sqlite" in database_url:
            @event.listens_for(self.engine, "connect")
            def set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.close()

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        Base.metadata.create_all(bind=self.engine)

    def save_record(self, collection: str, entity_id: str, payload: Dict[str, Any]) -> None:
        db = self.SessionLocal()
        try:
            db.merge(EntityRecord(
                collection=collection,
                entity_id=entity_id,
                payload=payload,
                updated_at=datetime.now(timezone.utc),
            ))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def load(self) -> Dict[str, List[Dict[str, Any]]]:
        data: Dict[str, List[Dict[str, Any]]] = {}
        db = self.SessionLocal()
        try:
            rows = db.execute(select(EntityRecord).order_by(EntityRecord.updated_at)).scalars().all()
            for row in rows:
                data.setdefault(row.collection, []).append(row.payload)
        finally:
            db.close()
        logger.info(f"Loaded {sum(len(v) for v in data.values())} records from {self.engine.url.drivername}")
        return data

    def close(self) -> None:
        self.engine.dispose()


def build_persistence(database_url: str = None, echo: bool = False):
    """Pick the backend from DATABASE_URL"""
    if not database_url:
        return NullPersistence()
    return SqlSnapshotPersistence(database_url, echo=echo)
