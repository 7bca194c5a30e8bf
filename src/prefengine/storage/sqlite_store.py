"""SQLite-backed remote row store for client and account preferences."""
from __future__ import annotations

import json
import logging
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

from prefengine.common.errors import BackendError, ErrorCode
from prefengine.common.models import NamespaceSnapshot, RemoteRow, ValueShape
from prefengine.common.values import as_text, encode_structured

from .base import PersistenceBackend

logger = logging.getLogger(__name__)


SCHEMA_MIGRATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    applied_at REAL NOT NULL
)
"""

MIGRATIONS: List[tuple[int, List[str]]] = [
    (
        1,
        [
            """
            CREATE TABLE IF NOT EXISTS clients (
                client_id TEXT PRIMARY KEY,
                account_id TEXT,
                created_at REAL NOT NULL
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS client_prefs (
                client_id TEXT NOT NULL,
                name TEXT NOT NULL,
                idx INTEGER NOT NULL DEFAULT 0,
                value TEXT,
                updated_at REAL NOT NULL,
                PRIMARY KEY (client_id, name, idx)
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS account_prefs (
                account_id TEXT NOT NULL,
                name TEXT NOT NULL,
                idx INTEGER NOT NULL DEFAULT 0,
                value TEXT,
                updated_at REAL NOT NULL,
                PRIMARY KEY (account_id, name, idx)
            )
            """,
        ],
    ),
    (
        2,
        [
            """
            CREATE TABLE IF NOT EXISTS namespace_snapshots (
                namespace TEXT PRIMARY KEY,
                payload_json TEXT NOT NULL,
                updated_at REAL NOT NULL
            )
            """,
        ],
    ),
]


class RemoteStore:
    """Row-level preference storage keyed per client, falling back to the owning account."""

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        with self._connect():
            pass

    # ------------------------------------------------------------------ #
    # Client identity

    def register_client(self, client_id: str, account_id: Optional[str]) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO clients(client_id, account_id, created_at) VALUES (?, ?, ?)
                ON CONFLICT(client_id) DO UPDATE SET account_id = excluded.account_id
                """,
                (client_id, account_id, time.time()),
            )

    def account_for(self, client_id: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT account_id FROM clients WHERE client_id = ?", (client_id,)
            ).fetchone()
        return row[0] if row else None

    # ------------------------------------------------------------------ #
    # Rows

    def read(self, client_id: str, key: str) -> List[RemoteRow]:
        """Return the client's rows for ``key``, else the owning account's rows."""

        with self._connect() as conn:
            client = conn.execute(
                "SELECT account_id FROM clients WHERE client_id = ?", (client_id,)
            ).fetchone()
            if client is None:
                logger.debug("read %s: unknown client %s", key, client_id)
                return []
            rows = conn.execute(
                "SELECT idx, value FROM client_prefs WHERE client_id = ? AND name = ? ORDER BY idx",
                (client_id, key),
            ).fetchall()
            if not rows and client[0] is not None:
                rows = conn.execute(
                    "SELECT idx, value FROM account_prefs WHERE account_id = ? AND name = ? ORDER BY idx",
                    (client[0], key),
                ).fetchall()
        return [RemoteRow(index=int(idx), value=value) for idx, value in rows]

    def write_scalar(self, client_id: str, key: str, value: Any) -> None:
        self.write_sequence(client_id, key, [value])

    def write_sequence(self, client_id: str, key: str, values: Sequence[Any]) -> None:
        now = time.time()
        with self._connect() as conn:
            self._ensure_client(conn, client_id, now)
            conn.execute("DELETE FROM client_prefs WHERE client_id = ? AND name = ?", (client_id, key))
            conn.executemany(
                "INSERT INTO client_prefs(client_id, name, idx, value, updated_at) VALUES (?, ?, ?, ?, ?)",
                ((client_id, key, idx, _to_column(item), now) for idx, item in enumerate(values)),
            )

    def clear_rows(self, client_id: str, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM client_prefs WHERE client_id = ? AND name = ?", (client_id, key))

    def write_account_value(self, account_id: str, key: str, value: Any) -> None:
        """Store an account-wide value that every client of the account inherits on read."""

        values = list(value) if ValueShape.of(value) is ValueShape.SEQUENCE else [_encode(value)]
        now = time.time()
        with self._connect() as conn:
            conn.execute("DELETE FROM account_prefs WHERE account_id = ? AND name = ?", (account_id, key))
            conn.executemany(
                "INSERT INTO account_prefs(account_id, name, idx, value, updated_at) VALUES (?, ?, ?, ?, ?)",
                ((account_id, key, idx, _to_column(item), now) for idx, item in enumerate(values)),
            )

    # ------------------------------------------------------------------ #
    # Global snapshots

    def load_snapshot(self, namespace: str) -> Dict[str, Any]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT payload_json FROM namespace_snapshots WHERE namespace = ?", (namespace,)
            ).fetchone()
        if not row:
            return {}
        payload = json.loads(row[0]) if row[0] else {}
        return payload if isinstance(payload, dict) else {}

    def save_snapshot(self, namespace: str, snapshot: Mapping[str, Any]) -> None:
        try:
            payload = json.dumps(dict(snapshot), ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise BackendError(
                ErrorCode.PERSISTENCE_ERROR,
                f"Namespace '{namespace}' holds values that cannot be stored: {exc}",
            ) from exc
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO namespace_snapshots(namespace, payload_json, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(namespace) DO UPDATE
                SET payload_json = excluded.payload_json, updated_at = excluded.updated_at
                """,
                (namespace, payload, time.time()),
            )

    # ------------------------------------------------------------------ #

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
        except (OSError, sqlite3.Error) as exc:
            raise BackendError(
                ErrorCode.PERSISTENCE_ERROR,
                f"Unable to open remote store '{self.db_path}': {exc}",
            ) from exc
        try:
            _apply_migrations(conn)
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise BackendError(
                ErrorCode.PERSISTENCE_ERROR,
                f"Remote store '{self.db_path}' failed: {exc}",
            ) from exc
        finally:
            conn.close()

    @staticmethod
    def _ensure_client(conn: sqlite3.Connection, client_id: str, now: float) -> None:
        conn.execute(
            "INSERT OR IGNORE INTO clients(client_id, account_id, created_at) VALUES (?, NULL, ?)",
            (client_id, now),
        )


class RemoteBackend(PersistenceBackend):
    """Persistence strategy for remote mode.

    Client preferences live in per-row tables and are never part of the
    snapshot; the global values of each namespace are kept as a JSON snapshot
    so global scopes survive restarts.
    """

    remote = True

    def __init__(self, store: RemoteStore) -> None:
        self.store = store

    def load(self, namespace: str) -> NamespaceSnapshot:
        return NamespaceSnapshot(prefs=self.store.load_snapshot(namespace))

    def persist(self, namespace: str, snapshot: NamespaceSnapshot) -> None:
        self.store.save_snapshot(namespace, snapshot.prefs)

    def read_remote(self, client_id: str, key: str) -> List[RemoteRow]:
        return self.store.read(client_id, key)

    def write_remote(self, client_id: str, key: str, value: Any) -> None:
        shape = ValueShape.of(value)
        if shape is ValueShape.SEQUENCE:
            self.store.write_sequence(client_id, key, list(value))
        elif shape is ValueShape.MAPPING:
            self.store.write_scalar(client_id, key, encode_structured(value))
        else:
            self.store.write_scalar(client_id, key, value)

    def clear_remote(self, client_id: str, key: str) -> None:
        self.store.clear_rows(client_id, key)


def _encode(value: Any) -> Any:
    return encode_structured(value) if ValueShape.of(value) is ValueShape.MAPPING else value


def _to_column(value: Any) -> Optional[str]:
    return None if value is None else as_text(value)


def _apply_migrations(conn: sqlite3.Connection) -> None:
    conn.execute(SCHEMA_MIGRATIONS_TABLE)
    applied_versions = {
        row[0]
        for row in conn.execute("SELECT version FROM schema_migrations")
    }
    for version, statements in sorted(MIGRATIONS, key=lambda item: item[0]):
        if version in applied_versions:
            continue
        for statement in statements:
            conn.execute(statement)
        conn.execute(
            "INSERT INTO schema_migrations(version, applied_at) VALUES (?, ?)",
            (version, time.time()),
        )
        conn.commit()
