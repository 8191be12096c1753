# kirana_khata/database/repositories/state_repo.py
"""
Key/value persistence for the ledger collections.

Each top-level collection is stored as one JSON document under a fixed key in
the `app_state` table. Loading never raises for bad data: a missing key, a
payload that is not valid JSON, a payload that fails its shape validator or a
record that cannot be decoded all fall back to the seed collection (logged).

Writes go through `save_many()`, which replaces every changed document inside
one sqlite transaction.
"""
from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from ...constants import (
    KEY_INVENTORY,
    KEY_KHATAS,
    KEY_LANGUAGE,
    KEY_TRANSACTIONS,
    TABLE_STATE,
)
from ..models import InventoryItem, KhataCustomer, Transaction
from ..seeders import default_data
from ..validators import VALIDATORS, ValidationResult

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Collection:
    key: str
    validate: Callable[[Any], ValidationResult]
    decode: Callable[[Any], Any]
    encode: Callable[[Any], Any]
    seed: Callable[[Optional[datetime]], Any]


def _decode_list(cls):
    return lambda payload: [cls.from_dict(d) for d in payload]


def _encode_list(rows) -> List[Dict[str, Any]]:
    return [r.to_dict() for r in rows]


COLLECTIONS: Dict[str, Collection] = {
    KEY_LANGUAGE: Collection(
        KEY_LANGUAGE, VALIDATORS[KEY_LANGUAGE], str, str,
        lambda _now: default_data.seed_language(),
    ),
    KEY_INVENTORY: Collection(
        KEY_INVENTORY, VALIDATORS[KEY_INVENTORY], _decode_list(InventoryItem), _encode_list,
        default_data.seed_inventory,
    ),
    KEY_TRANSACTIONS: Collection(
        KEY_TRANSACTIONS, VALIDATORS[KEY_TRANSACTIONS], _decode_list(Transaction), _encode_list,
        default_data.seed_transactions,
    ),
    KEY_KHATAS: Collection(
        KEY_KHATAS, VALIDATORS[KEY_KHATAS], _decode_list(KhataCustomer), _encode_list,
        default_data.seed_khata_customers,
    ),
}


class StateRepo:
    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn
        # keys that were replaced by seed data during this repo's lifetime
        self.fallbacks: List[str] = []

    # ---- Raw access -------------------------------------------------------

    def read_raw(self, key: str) -> str | None:
        row = self.conn.execute(
            f"SELECT payload FROM {TABLE_STATE} WHERE state_key=?", (key,)
        ).fetchone()
        return None if row is None else row["payload"]

    def write_raw(self, key: str, payload: str) -> None:
        """Store a raw payload as-is (import/repair tooling and tests)."""
        with self.conn:
            self._upsert(key, payload)

    def _upsert(self, key: str, payload: str) -> None:
        self.conn.execute(
            f"""
            INSERT INTO {TABLE_STATE}(state_key, payload, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(state_key) DO UPDATE SET
                payload = excluded.payload,
                updated_at = excluded.updated_at
            """,
            (key, payload),
        )

    # ---- Typed load/save --------------------------------------------------

    def load(self, key: str, *, now: Optional[datetime] = None) -> Any:
        """
        Load and decode one collection, or its seed when the stored value is
        absent or unusable.
        """
        coll = COLLECTIONS[key]
        raw = self.read_raw(key)
        if raw is None:
            return coll.seed(now)

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            _log.exception("Error reading stored key %r; using seed data.", key)
            return self._fallback(coll, now)

        result = coll.validate(parsed)
        if not result:
            _log.warning("Validation failed for %s (%s); using seed data.", key, result.reason)
            return self._fallback(coll, now)

        try:
            return coll.decode(parsed)
        except (AttributeError, KeyError, TypeError, ValueError):
            _log.exception("Could not decode stored key %r; using seed data.", key)
            return self._fallback(coll, now)

    def _fallback(self, coll: Collection, now: Optional[datetime]) -> Any:
        self.fallbacks.append(coll.key)
        return coll.seed(now)

    def save(self, key: str, value: Any) -> None:
        self.save_many({key: value})

    def save_many(self, values: Mapping[str, Any]) -> None:
        """
        Encode and write several collections back-to-back in one sqlite
        transaction. Either all documents are replaced or none are.
        """
        docs = {
            key: json.dumps(COLLECTIONS[key].encode(value), ensure_ascii=False)
            for key, value in values.items()
        }
        with self.conn:
            for key, payload in docs.items():
                self._upsert(key, payload)
        _log.debug("saved %s", ", ".join(docs))

    # ---- Convenience ------------------------------------------------------

    def load_inventory(self, now: Optional[datetime] = None) -> List[InventoryItem]:
        return self.load(KEY_INVENTORY, now=now)

    def load_transactions(self, now: Optional[datetime] = None) -> List[Transaction]:
        return self.load(KEY_TRANSACTIONS, now=now)

    def load_khata_customers(self, now: Optional[datetime] = None) -> List[KhataCustomer]:
        return self.load(KEY_KHATAS, now=now)

    def load_language(self) -> str:
        return self.load(KEY_LANGUAGE)
