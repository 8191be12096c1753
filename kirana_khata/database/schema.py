from pathlib import Path
import logging
import sqlite3
import sys

from ..constants import TABLE_STATE

_log = logging.getLogger(__name__)

SQL = rf"""
PRAGMA foreign_keys = ON;

/* ======================== STATE STORE ======================== */

/* One JSON document per top-level collection (inventory, sales log,
   khata customers, language). Rows are replaced whole on every commit. */
CREATE TABLE IF NOT EXISTS {TABLE_STATE} (
    state_key   TEXT PRIMARY KEY,
    payload     TEXT NOT NULL,
    updated_at  TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""


def init_schema(db_path: Path | str) -> None:
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.execute("PRAGMA journal_mode=WAL;")
        # Apply (idempotent) schema
        conn.executescript(SQL)
        conn.commit()
    _log.debug("schema applied to %s", db_path)


if __name__ == "__main__":
    from ..config import DB_PATH

    target = sys.argv[1] if len(sys.argv) > 1 else DB_PATH
    init_schema(target)
    print(f"✓ DB applied to {target}")
