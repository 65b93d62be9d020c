"""
sqlite.py - SQLite file storage backend.

A single SQLite file holds:
- ``kv``: key-value pairs (the serialized DatabaseSet and the active
  selection)
- ``snapshots``: the rollback stack, newest = highest seq

Every write runs inside an explicit transaction so a crash never leaves
a half-written payload.
"""

import logging
import sqlite3
from typing import Any, Callable

from tinyrdbms.config import DATABASES_KEY, SELECTION_KEY, SQLITE_PRAGMAS
from tinyrdbms.errors import StorageError
from tinyrdbms.models import DatabaseSet
from tinyrdbms.storage.base import SnapshotStack, Store
from tinyrdbms.storage.codec import pack_database_set, unpack_database_set

logger = logging.getLogger("tinyrdbms.storage")

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value BLOB
);

CREATE TABLE IF NOT EXISTS snapshots (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    payload BLOB NOT NULL
);
"""


def create_connection(db_path: str) -> sqlite3.Connection:
    """
    Create a new SQLite connection with proper configuration.

    Args:
        db_path: Path to SQLite database file

    Returns:
        Configured sqlite3.Connection with the storage tables present

    Raises:
        StorageError: If connection fails
    """
    try:
        conn = sqlite3.connect(
            db_path,
            isolation_level=None,  # Manual transaction control
        )
    except sqlite3.Error as e:
        raise StorageError(
            f"Failed to connect to database: {e}",
            operation="connect",
        ) from e

    for pragma, value in SQLITE_PRAGMAS.items():
        try:
            conn.execute(f"PRAGMA {pragma} = {value}")
        except sqlite3.Error as e:
            raise StorageError(
                f"Failed to set PRAGMA {pragma}: {e}",
                operation="pragma",
            ) from e

    try:
        conn.executescript(_SCHEMA_SQL)
    except sqlite3.Error as e:
        raise StorageError(
            f"Failed to create storage tables: {e}",
            operation="schema",
        ) from e

    return conn


def execute_in_transaction(
    conn: sqlite3.Connection,
    operation: Callable[[sqlite3.Connection], Any],
) -> Any:
    """
    Execute an operation within an IMMEDIATE transaction.

    Ensures atomicity: all changes commit or all rollback.

    Raises:
        StorageError: If the transaction fails
    """
    try:
        conn.execute("BEGIN IMMEDIATE")
        try:
            result = operation(conn)
            conn.execute("COMMIT")
            return result
        except Exception:
            conn.execute("ROLLBACK")
            raise
    except sqlite3.Error as e:
        raise StorageError(
            f"Transaction failed: {e}",
            operation="transaction",
        ) from e


def _read_value(conn: sqlite3.Connection, key: str) -> Any:
    try:
        row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
    except sqlite3.Error as e:
        raise StorageError(f"Failed to read '{key}': {e}", operation="read") from e
    return None if row is None else row[0]


def _write_value(conn: sqlite3.Connection, key: str, value: Any) -> None:
    def do_write(conn: sqlite3.Connection) -> None:
        if value is None:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        else:
            conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )

    execute_in_transaction(conn, do_write)


class SqliteStore(Store):
    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def load(self) -> DatabaseSet:
        payload = _read_value(self._conn, DATABASES_KEY)
        if payload is None:
            return DatabaseSet()
        return unpack_database_set(payload)

    def save(self, database_set: DatabaseSet) -> None:
        _write_value(self._conn, DATABASES_KEY, pack_database_set(database_set))
        logger.debug("Saved %d database(s)", len(database_set))

    def load_selection(self) -> str | None:
        """Id of the active database, as last saved."""
        return _read_value(self._conn, SELECTION_KEY)

    def save_selection(self, database_id: str | None) -> None:
        _write_value(self._conn, SELECTION_KEY, database_id)


class SqliteSnapshotStack(SnapshotStack):
    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def push(self, database_set: DatabaseSet) -> None:
        payload = pack_database_set(database_set)
        execute_in_transaction(
            self._conn,
            lambda conn: conn.execute("INSERT INTO snapshots (payload) VALUES (?)", (payload,)),
        )

    def pop(self) -> DatabaseSet | None:
        def do_pop(conn: sqlite3.Connection) -> bytes | None:
            row = conn.execute(
                "SELECT seq, payload FROM snapshots ORDER BY seq DESC LIMIT 1"
            ).fetchone()
            if row is None:
                return None
            conn.execute("DELETE FROM snapshots WHERE seq = ?", (row[0],))
            return row[1]

        payload = execute_in_transaction(self._conn, do_pop)
        if payload is None:
            return None
        return unpack_database_set(payload)

    def clear(self) -> None:
        execute_in_transaction(self._conn, lambda conn: conn.execute("DELETE FROM snapshots"))

    def __len__(self) -> int:
        try:
            return self._conn.execute("SELECT COUNT(*) FROM snapshots").fetchone()[0]
        except sqlite3.Error as e:
            raise StorageError(f"Failed to count snapshots: {e}", operation="read") from e

    def truncate(self, depth: int) -> None:
        def do_truncate(conn: sqlite3.Connection) -> None:
            conn.execute(
                "DELETE FROM snapshots WHERE seq NOT IN "
                "(SELECT seq FROM snapshots ORDER BY seq ASC LIMIT ?)",
                (max(0, depth),),
            )

        execute_in_transaction(self._conn, do_truncate)


class SqliteStorage:
    """
    Owns the connection behind a file-backed Store and SnapshotStack.
    """

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def __enter__(self) -> "SqliteStorage":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = create_connection(self._db_path)
        return self._conn

    @property
    def store(self) -> SqliteStore:
        return SqliteStore(self.connection)

    @property
    def snapshots(self) -> SqliteSnapshotStack:
        return SqliteSnapshotStack(self.connection)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
