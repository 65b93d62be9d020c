"""
base.py - Abstract storage capabilities.

The interpreter never touches persistence directly; it is handed a
Store (the persisted DatabaseSet) and a SnapshotStack (rollback points).
"""

from abc import ABC, abstractmethod

from tinyrdbms.models import DatabaseSet


class Store(ABC):
    """
    Persisted DatabaseSet, loaded and saved wholesale.

    load() must return an independent copy: callers mutate it freely
    and only their save() makes changes visible.
    """

    @abstractmethod
    def load(self) -> DatabaseSet:
        pass

    @abstractmethod
    def save(self, database_set: DatabaseSet) -> None:
        pass


class SnapshotStack(ABC):
    """
    LIFO stack of full DatabaseSet copies.

    The stack owns its snapshots; a snapshot's lifetime ends when it is
    popped or the stack is cleared or truncated below it.
    """

    @abstractmethod
    def push(self, database_set: DatabaseSet) -> None:
        pass

    @abstractmethod
    def pop(self) -> DatabaseSet | None:
        """Remove and return the newest snapshot, or None if empty."""
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass

    def truncate(self, depth: int) -> None:
        """Discard snapshots until at most ``depth`` remain."""
        while len(self) > depth:
            self.pop()
