"""
auditkit.gateway
================

Reads and writes the two persisted records, ``client-record`` and
``audit-record``, through an injectable :class:`~auditkit.storage.KeyValueStore`.

Records are JSON produced by pydantic ``TypeAdapter`` over the plain
dataclasses in :pymod:`auditkit.models`.  Loading validates the shape; a
missing record, broken JSON or a structural mismatch all come back as
``None`` so the caller can fall through to its "nothing stored" path.
"""

from __future__ import annotations

import logging
from typing import Optional, TypeVar

from pydantic import TypeAdapter

from .models import Audit, Client
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

CLIENT_KEY = "client-record"
AUDIT_KEY = "audit-record"

_CLIENT = TypeAdapter(Client)
_AUDIT = TypeAdapter(Audit)

T = TypeVar("T")


class PersistenceGateway:
    """
    Whole-record load/save for the client and the audit.

    Every write replaces the previous value (last write wins); there is no
    field-level update at this layer.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _load(self, key: str, adapter: TypeAdapter[T]) -> Optional[T]:
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            return adapter.validate_json(raw)
        except ValueError as e:  # pydantic.ValidationError and model invariants
            logger.warning(f"Ignoring malformed {key}: {e}")
            return None

    def _save(self, key: str, adapter: TypeAdapter[T], value: T) -> None:
        self.store.set(key, adapter.dump_json(value).decode("utf-8"))
        logger.info(f"Saved {key}")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def load_client(self) -> Optional[Client]:
        return self._load(CLIENT_KEY, _CLIENT)

    def save_client(self, client: Client) -> None:
        self._save(CLIENT_KEY, _CLIENT, client)

    def load_audit(self) -> Optional[Audit]:
        return self._load(AUDIT_KEY, _AUDIT)

    def save_audit(self, audit: Audit) -> None:
        self._save(AUDIT_KEY, _AUDIT, audit)
