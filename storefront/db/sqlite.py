from __future__ import annotations

import os
import sqlite3
from typing import Optional, Protocol


class Storage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


SCHEMA = """
CREATE TABLE IF NOT EXISTS local_storage (
    namespace TEXT NOT NULL,
    key TEXT NOT NULL,
    value TEXT NOT NULL,
    PRIMARY KEY (namespace, key)
);
"""


def _connect(db_path: str) -> sqlite3.Connection:
    dirname = os.path.dirname(db_path)
    if dirname:
        os.makedirs(dirname, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str) -> None:
    conn = _connect(db_path)
    try:
        conn.executescript(SCHEMA)
        conn.commit()
    finally:
        conn.close()


class SqliteStorage:
    """
    localStorage-like key/value store.
    Every client (telegram user) gets its own namespace in one sqlite file.
    """

    def __init__(self, db_path: str, namespace: str = "default") -> None:
        self.db_path = db_path
        self.namespace = namespace
        init_db(db_path)

    def get_item(self, key: str) -> Optional[str]:
        conn = _connect(self.db_path)
        try:
            row = conn.execute(
                "SELECT value FROM local_storage WHERE namespace=? AND key=?",
                (self.namespace, key),
            ).fetchone()
            return row["value"] if row else None
        finally:
            conn.close()

    def set_item(self, key: str, value: str) -> None:
        conn = _connect(self.db_path)
        try:
            conn.execute(
                "INSERT INTO local_storage(namespace, key, value) VALUES(?,?,?) "
                "ON CONFLICT(namespace, key) DO UPDATE SET value=excluded.value",
                (self.namespace, key, value),
            )
            conn.commit()
        finally:
            conn.close()

    def remove_item(self, key: str) -> None:
        conn = _connect(self.db_path)
        try:
            conn.execute(
                "DELETE FROM local_storage WHERE namespace=? AND key=?",
                (self.namespace, key),
            )
            conn.commit()
        finally:
            conn.close()
