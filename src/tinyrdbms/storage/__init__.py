"""
storage - Persistence capabilities for the interpreter.
"""

from tinyrdbms.storage.base import SnapshotStack, Store
from tinyrdbms.storage.codec import pack_database_set, unpack_database_set
from tinyrdbms.storage.memory import MemorySnapshotStack, MemoryStore
from tinyrdbms.storage.sqlite import (
    SqliteSnapshotStack,
    SqliteStorage,
    SqliteStore,
)

__all__ = [
    # base
    "Store",
    "SnapshotStack",
    # codec
    "pack_database_set",
    "unpack_database_set",
    # memory
    "MemoryStore",
    "MemorySnapshotStack",
    # sqlite
    "SqliteStore",
    "SqliteSnapshotStack",
    "SqliteStorage",
]
