"""
config.py - Configuration constants for tinyrdbms.

All configuration is immutable and defined at module level.
No mutable global state is permitted.
"""

from typing import Final

# Version of the serialized DatabaseSet envelope
# Increment this when the stored layout changes
SCHEMA_VERSION: Final[int] = 1

# SQL type keywords mapped to normalized base types
NUMBER_TYPES: Final[frozenset[str]] = frozenset(
    {"INT", "INTEGER", "BIGINT", "SMALLINT", "TINYINT",
     "DECIMAL", "NUMERIC", "FLOAT", "DOUBLE", "REAL"}
)
TEXT_TYPES: Final[frozenset[str]] = frozenset(
    {"CHAR", "NCHAR", "VARCHAR", "NVARCHAR", "TEXT", "STRING"}
)
BOOLEAN_TYPES: Final[frozenset[str]] = frozenset({"BOOL", "BOOLEAN"})
DATE_TYPES: Final[frozenset[str]] = frozenset({"DATE"})
DATETIME_TYPES: Final[frozenset[str]] = frozenset({"DATETIME", "TIMESTAMP"})

# Form-entry tokens that coerce to True for boolean columns
TRUTHY_TOKENS: Final[frozenset[str]] = frozenset({"1", "true", "yes", "y", "on"})

# Longest first so that ">=" is never read as ">"
COMPARISON_OPERATORS: Final[tuple[str, ...]] = ("<>", "!=", ">=", "<=", "=", ">", "<")

SUPPORTED_STATEMENTS: Final[tuple[str, ...]] = (
    "SELECT",
    "INSERT",
    "UPDATE",
    "DELETE",
    "CREATE TABLE",
    "CREATE DATABASE",
    "DROP TABLE",
    "DROP DATABASE",
    "USE",
    "GRANT",
    "REVOKE",
    "BEGIN",
    "COMMIT",
    "ROLLBACK",
)

# Statements that snapshot the DatabaseSet before executing
MUTATING_STATEMENTS: Final[frozenset[str]] = frozenset(
    {
        "INSERT",
        "UPDATE",
        "DELETE",
        "CREATE TABLE",
        "CREATE DATABASE",
        "DROP TABLE",
        "DROP DATABASE",
        "GRANT",
        "REVOKE",
    }
)

# Statements that run against the active database
DATABASE_SCOPED_STATEMENTS: Final[frozenset[str]] = frozenset(
    {
        "SELECT",
        "INSERT",
        "UPDATE",
        "DELETE",
        "CREATE TABLE",
        "DROP TABLE",
        "GRANT",
        "REVOKE",
    }
)

PERMISSION_SCOPES: Final[frozenset[str]] = frozenset({"TABLE", "DATABASE"})

# Keys in the file store's kv table
DATABASES_KEY: Final[str] = "rdbms_databases"
SELECTION_KEY: Final[str] = "selected_database"

# SQLite PRAGMA settings for the file-backed store
SQLITE_PRAGMAS: Final[dict[str, str]] = {
    "journal_mode": "WAL",
    "synchronous": "NORMAL",
    "busy_timeout": "5000",
}

# Default transaction semantics, see tinyrdbms.transactions
DEFAULT_TRANSACTION_MODE: Final[str] = "literal"
