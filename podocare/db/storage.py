"""
Key-value stores backing the local repositories.

The local backend treats persistence as an opaque ``key -> text`` blob store
(one JSON array per collection). Two implementations are provided:

- InMemoryStore: process-local dict, with an optional byte quota so tests can
  reproduce "quota exceeded" write failures.
- SqlAlchemyStore: a single ``kv_store`` table reachable through any
  SQLAlchemy URL (SQLite file or memory, PostgreSQL, ...).
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import DateTime, String, Text, create_engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, declarative_base, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from podocare.core.exceptions import StorageError
from podocare.core.logging_config import register_query_timing

logger = logging.getLogger(__name__)

Base = declarative_base()


class KeyValueStore(ABC):
    """Opaque text blob store addressed by string keys."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored text, or None when the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``. Raises StorageError on failure."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass

    @abstractmethod
    def keys(self, prefix: str = "") -> List[str]:
        pass


class InMemoryStore(KeyValueStore):
    """Dict-backed store. ``max_bytes`` emulates a browser storage quota."""

    def __init__(self, max_bytes: Optional[int] = None):
        self._data: Dict[str, str] = {}
        self.max_bytes = max_bytes

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.max_bytes is not None:
            used = sum(
                len(k) + len(v.encode("utf-8"))
                for k, v in self._data.items()
                if k != key
            )
            needed = len(key) + len(value.encode("utf-8"))
            if used + needed > self.max_bytes:
                raise StorageError(
                    f"Storage quota exceeded writing '{key}' "
                    f"({used + needed} > {self.max_bytes} bytes)",
                    storage_key=key,
                )
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

    def __len__(self) -> int:
        return len(self._data)


class KeyValueEntry(Base):
    """One persisted collection."""

    __tablename__ = "kv_store"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<KeyValueEntry(key='{self.key}', size={len(self.value or '')})>"


class SqlAlchemyStore(KeyValueStore):
    """
    Store collections as rows of a ``kv_store`` table.

    Each call opens and closes its own session, so the store can be shared by
    every repository of an aggregate. SQLite memory URLs use a StaticPool so
    all sessions see the same database.
    """

    def __init__(self, database_url: str = "sqlite:///:memory:", echo: bool = False):
        self.database_url = database_url
        if database_url.startswith("sqlite") and ":memory:" in database_url:
            self.engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=echo,
            )
        else:
            self.engine = create_engine(database_url, pool_pre_ping=True, echo=echo)
        register_query_timing()
        Base.metadata.create_all(bind=self.engine)
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )

    def get(self, key: str) -> Optional[str]:
        try:
            with self.SessionLocal() as db:
                entry = db.get(KeyValueEntry, key)
                return entry.value if entry else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read '{key}': {e}", storage_key=key) from e

    def set(self, key: str, value: str) -> None:
        try:
            with self.SessionLocal() as db:
                entry = db.get(KeyValueEntry, key)
                if entry is None:
                    db.add(KeyValueEntry(key=key, value=value))
                else:
                    entry.value = value
                db.commit()
        except SQLAlchemyError as e:
            logger.error(
                "Key-value write failed",
                extra={"context": {"key": key, "error": str(e)}},
            )
            raise StorageError(f"Failed to write '{key}': {e}", storage_key=key) from e

    def remove(self, key: str) -> None:
        try:
            with self.SessionLocal() as db:
                entry = db.get(KeyValueEntry, key)
                if entry is not None:
                    db.delete(entry)
                    db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to remove '{key}': {e}", storage_key=key) from e

    def keys(self, prefix: str = "") -> List[str]:
        with self.SessionLocal() as db:
            stmt = select(KeyValueEntry.key).order_by(KeyValueEntry.key)
            if prefix:
                stmt = stmt.where(KeyValueEntry.key.startswith(prefix))
            return list(db.scalars(stmt))

    def dispose(self) -> None:
        self.engine.dispose()
