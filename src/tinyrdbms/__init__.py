"""
tinyrdbms - Embedded SQL-like statement interpreter

Parses a restricted SQL dialect and runs it against an in-memory
relational store with snapshot-based undo and transactions.
"""

from tinyrdbms.editing import ColumnSpec, TableEditor
from tinyrdbms.engine import Interpreter, Session
from tinyrdbms.errors import (
    ColumnNotFoundError,
    DatabaseAlreadyExistsError,
    DatabaseNotFoundError,
    DuplicateColumnNameError,
    EmptyStatementError,
    InvalidColumnDefinitionError,
    InvalidConditionError,
    InvalidSyntaxError,
    InvalidTypeError,
    NoActiveDatabaseError,
    QueryError,
    RowNotFoundError,
    StorageError,
    TableAlreadyExistsError,
    TableNotFoundError,
    UnsupportedStatementError,
)
from tinyrdbms.models import Column, Database, DatabaseSet, PermissionEvent, Table
from tinyrdbms.query.executor import QueryResult
from tinyrdbms.search import SearchMatch, search
from tinyrdbms.storage import (
    MemorySnapshotStack,
    MemoryStore,
    SnapshotStack,
    SqliteStorage,
    Store,
)
from tinyrdbms.transactions import TransactionMode

__version__ = "0.1.0"
__all__ = [
    # Core
    "Interpreter",
    "Session",
    "QueryResult",
    "TransactionMode",
    "TableEditor",
    "ColumnSpec",
    "search",
    "SearchMatch",
    # Model
    "DatabaseSet",
    "Database",
    "Table",
    "Column",
    "PermissionEvent",
    # Storage
    "Store",
    "SnapshotStack",
    "MemoryStore",
    "MemorySnapshotStack",
    "SqliteStorage",
    # Errors
    "QueryError",
    "EmptyStatementError",
    "UnsupportedStatementError",
    "InvalidSyntaxError",
    "InvalidConditionError",
    "NoActiveDatabaseError",
    "DatabaseNotFoundError",
    "DatabaseAlreadyExistsError",
    "TableNotFoundError",
    "TableAlreadyExistsError",
    "ColumnNotFoundError",
    "RowNotFoundError",
    "InvalidColumnDefinitionError",
    "InvalidTypeError",
    "DuplicateColumnNameError",
    "StorageError",
]
