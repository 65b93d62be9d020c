"""
memory.py - In-process storage backends.

Both keep MessagePack payloads rather than live objects, so every
load() or pop() hands out a fresh copy and no caller can alias
persisted state.
"""

from tinyrdbms.models import DatabaseSet
from tinyrdbms.storage.base import SnapshotStack, Store
from tinyrdbms.storage.codec import pack_database_set, unpack_database_set


class MemoryStore(Store):
    def __init__(self, database_set: DatabaseSet | None = None):
        self._payload = pack_database_set(database_set or DatabaseSet())

    def load(self) -> DatabaseSet:
        return unpack_database_set(self._payload)

    def save(self, database_set: DatabaseSet) -> None:
        self._payload = pack_database_set(database_set)


class MemorySnapshotStack(SnapshotStack):
    def __init__(self):
        self._stack: list[bytes] = []

    def push(self, database_set: DatabaseSet) -> None:
        self._stack.append(pack_database_set(database_set))

    def pop(self) -> DatabaseSet | None:
        if not self._stack:
            return None
        return unpack_database_set(self._stack.pop())

    def clear(self) -> None:
        self._stack.clear()

    def __len__(self) -> int:
        return len(self._stack)

    def truncate(self, depth: int) -> None:
        del self._stack[max(0, depth):]
