"""
auditkit.storage
================

Key-value backends for the persistence gateway.

Concrete subclasses implement ``get(key) -> str | None`` and
``set(key, value)``.  Values are opaque strings; the gateway owns
serialization.
"""

from __future__ import annotations

__all__ = ["KeyValueStore", "MemoryStore", "SQLiteStore"]

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterator, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session

from auditkit.db import (
    SessionLocal,
    create_all,
    delete_record,
    get_record,
    make_engine,
    put_record,
)


class KeyValueStore(ABC):
    """Abstract base for all record stores."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored string, or *None* when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Replace whatever is stored under *key*."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Forget *key*; a missing key is not an error."""


class MemoryStore(KeyValueStore):
    """
    Dictionary‑backed store, lost when the process exits.

    Example
    -------
    >>> s = MemoryStore()
    >>> s.set("k", "v"); s.get("k")
    'v'
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)


class SQLiteStore(KeyValueStore):
    """
    Durable store backed by the ``records`` table in :pymod:`auditkit.db`.

    Pass *path* to use a file other than the configured ``AUDITKIT_DB_FILE``,
    or an open *session* to share one.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        session: Session | None = None,
    ) -> None:
        bind: Engine | None = make_engine(path) if path is not None else None
        if session is None and bind is None:
            create_all()
        self._session: Session = session or SessionLocal(bind)

    # ------------------------------------------------------------------ CRUD
    def get(self, key: str) -> Optional[str]:
        return get_record(self._session, key)

    def set(self, key: str, value: str) -> None:
        put_record(self._session, key, value)

    def delete(self, key: str) -> None:
        delete_record(self._session, key)

    # ----------------------------------------------------- context manager
    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "SQLiteStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
