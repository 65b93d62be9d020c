"""
transactions.py - Snapshot-based undo and transactions.

Every mutating statement pushes a snapshot of the whole DatabaseSet
before it runs, so ROLLBACK outside a transaction undoes the most
recent mutation. BEGIN/COMMIT layer a coarser marker on top of that
stack; how COMMIT and ROLLBACK treat the marker depends on the mode:

LITERAL
    BEGIN pushes one more snapshot. COMMIT clears the entire stack,
    including rollback points of enclosing BEGINs. ROLLBACK pops exactly
    one snapshot, so after BEGIN; INSERT; INSERT two ROLLBACKs are
    needed to return to the BEGIN point.

SCOPED
    BEGIN records the stack depth and pushes its snapshot. COMMIT drops
    only the snapshots taken since the matching BEGIN. ROLLBACK inside a
    transaction restores the BEGIN snapshot and discards everything
    above it; outside a transaction it pops one snapshot.

Transaction markers live in memory for the life of the manager.
"""

import logging
from enum import Enum

from tinyrdbms.models import DatabaseSet
from tinyrdbms.storage.base import SnapshotStack

logger = logging.getLogger("tinyrdbms.transactions")


class TransactionMode(str, Enum):
    LITERAL = "literal"
    SCOPED = "scoped"


class TransactionManager:
    def __init__(
        self,
        snapshots: SnapshotStack,
        mode: TransactionMode = TransactionMode.LITERAL,
    ):
        self._snapshots = snapshots
        self.mode = TransactionMode(mode)
        self._markers: list[int] = []

    @property
    def depth(self) -> int:
        """Number of snapshots currently held."""
        return len(self._snapshots)

    @property
    def in_transaction(self) -> bool:
        return bool(self._markers)

    def snapshot(self, database_set: DatabaseSet) -> None:
        """Record a rollback point before a mutating statement."""
        self._snapshots.push(database_set)

    def begin(self, database_set: DatabaseSet) -> None:
        self._markers.append(len(self._snapshots))
        self._snapshots.push(database_set)
        logger.info("Transaction started (nesting=%d)", len(self._markers))

    def commit(self) -> bool:
        """
        Discard rollback points.

        Returns:
            False if SCOPED mode had no transaction to commit
        """
        if self.mode is TransactionMode.LITERAL:
            self._snapshots.clear()
            self._markers.clear()
            logger.info("Committed; snapshot stack cleared")
            return True

        if not self._markers:
            return False
        marker = self._markers.pop()
        self._snapshots.truncate(marker)
        logger.info("Committed transaction; %d snapshot(s) remain", marker)
        return True

    def rollback(self) -> DatabaseSet | None:
        """
        Remove and return the state to restore.

        Returns:
            The snapshot, or None when there is nothing to roll back
        """
        if self.mode is TransactionMode.SCOPED and self._markers:
            marker = self._markers.pop()
            self._snapshots.truncate(marker + 1)
            restored = self._snapshots.pop()
            logger.info("Rolled back transaction to depth %d", marker)
            return restored

        restored = self._snapshots.pop()
        remaining = len(self._snapshots)
        # A LITERAL pop can consume a BEGIN snapshot; forget markers above it
        while self._markers and self._markers[-1] >= remaining:
            self._markers.pop()
        if restored is not None:
            logger.info("Rolled back one snapshot; %d remain", remaining)
        return restored
