"""
auditkit.db
===========

SQLite persistence layer backing :class:`auditkit.storage.SQLiteStore`.

This module exposes:

* ``engine`` – a global SQLModel engine pointing at *auditkit.db*
* ``SessionLocal`` – a session factory used via ``with SessionLocal() as s:``
* ``create_all()`` – helper to create tables at first run
* ``make_engine(path)`` – engine for an alternative database file
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from sqlalchemy import Column, Text
from sqlalchemy.engine import Engine
from sqlmodel import Field, Session, SQLModel, create_engine

from auditkit.models import utcnow
from auditkit.settings import DB_ECHO, DB_URL


# ---------------------------------------------------------------------------
# Engine (file location comes from AUDITKIT_DB_FILE)
# ---------------------------------------------------------------------------
engine = create_engine(DB_URL, echo=DB_ECHO)


def make_engine(path: str | Path, echo: bool = DB_ECHO) -> Engine:
    """Return an engine for the SQLite file at *path* (tables created)."""
    eng = create_engine(f"sqlite:///{Path(path)}", echo=echo)
    SQLModel.metadata.create_all(eng)
    return eng


# ---------------------------------------------------------------------------
# Session factory
# ---------------------------------------------------------------------------
def SessionLocal(bind: Optional[Engine] = None) -> Session:  # noqa: N802 (factory camel‑case)
    """Return a new Session bound to *bind* or the global engine."""
    return Session(bind or engine)


# ---------------------------------------------------------------------------
# ORM model: one row per stored record
# ---------------------------------------------------------------------------
class RecordDB(SQLModel, table=True):
    """
    A whole serialized record addressed by a fixed key
    (``client-record`` / ``audit-record``).
    """

    __tablename__ = "records"

    key: str = Field(primary_key=True, index=True)
    value: str = Field(sa_column=Column(Text, nullable=False))
    updated_at: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Convenience helpers
# ---------------------------------------------------------------------------
def put_record(s: Session, key: str, value: str) -> None:
    """Insert or replace the record stored under *key*."""
    s.merge(RecordDB(key=key, value=value, updated_at=utcnow()))
    s.commit()


def get_record(s: Session, key: str) -> str | None:
    """Return the raw value stored under *key* or *None* if missing."""
    row = s.get(RecordDB, key)
    return row.value if row else None


def delete_record(s: Session, key: str) -> None:
    row = s.get(RecordDB, key)
    if row is not None:
        s.delete(row)
        s.commit()


# ---------------------------------------------------------------------------
# Utility: create tables
# ---------------------------------------------------------------------------
def create_all(bind: Optional[Engine] = None) -> None:
    """Create all tables for imported SQLModel subclasses, including RecordDB."""
    SQLModel.metadata.create_all(bind or engine)


# ---------------------------------------------------------------------------
# Lightweight CLI
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    """
    Quick bootstrap helper.

    Examples
    --------
    $ python -m auditkit.db --create        # first‑time table creation
    $ python -m auditkit.db --list          # show stored record keys
    """
    import argparse
    import textwrap

    from sqlmodel import select

    parser = argparse.ArgumentParser(
        prog="python -m auditkit.db",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            auditkit DB utilities
            ---------------------
            --create   Create all SQLModel tables (safe if they already exist)
            --list     Print the key and last update time of every record
            """
        ),
    )
    parser.add_argument("--create", action="store_true", help="create tables")
    parser.add_argument("--list", action="store_true", help="list stored records")
    args = parser.parse_args()

    if args.create:
        create_all()
        print("✅ auditkit.db schema initialised")

    if args.list:
        with SessionLocal() as s:
            for row in s.exec(select(RecordDB)).all():
                print(f"{row.key:<16} {row.updated_at.isoformat()}")
