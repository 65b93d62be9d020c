"""
statements.py - Structured statement intents.

The parser turns statement text into exactly one of these frozen
dataclasses; the executor matches on them exhaustively. ``kind`` is the
statement's leading keyword(s), as listed in SUPPORTED_STATEMENTS.
"""

from dataclasses import dataclass
from typing import ClassVar, Union


@dataclass(frozen=True, slots=True)
class SelectStatement:
    kind: ClassVar[str] = "SELECT"
    table: str
    columns: tuple[str, ...] | None  # None means *
    condition: str | None = None


@dataclass(frozen=True, slots=True)
class InsertStatement:
    kind: ClassVar[str] = "INSERT"
    table: str
    columns: tuple[str, ...]
    values: tuple[str, ...]  # literal source text, one per column


@dataclass(frozen=True, slots=True)
class UpdateStatement:
    kind: ClassVar[str] = "UPDATE"
    table: str
    assignments: tuple[tuple[str, str], ...]  # (column, literal text)
    condition: str | None = None


@dataclass(frozen=True, slots=True)
class DeleteStatement:
    kind: ClassVar[str] = "DELETE"
    table: str
    condition: str | None = None


@dataclass(frozen=True, slots=True)
class ColumnDefinition:
    name: str
    type_text: str
    is_primary_key: bool = False


@dataclass(frozen=True, slots=True)
class CreateTableStatement:
    kind: ClassVar[str] = "CREATE TABLE"
    table: str
    columns: tuple[ColumnDefinition, ...]


@dataclass(frozen=True, slots=True)
class CreateDatabaseStatement:
    kind: ClassVar[str] = "CREATE DATABASE"
    name: str
    if_not_exists: bool = False


@dataclass(frozen=True, slots=True)
class DropDatabaseStatement:
    kind: ClassVar[str] = "DROP DATABASE"
    name: str


@dataclass(frozen=True, slots=True)
class DropTableStatement:
    kind: ClassVar[str] = "DROP TABLE"
    name: str


@dataclass(frozen=True, slots=True)
class UseStatement:
    kind: ClassVar[str] = "USE"
    name: str


@dataclass(frozen=True, slots=True)
class GrantStatement:
    kind: ClassVar[str] = "GRANT"
    privilege: str
    scope_type: str
    name: str
    user: str


@dataclass(frozen=True, slots=True)
class RevokeStatement:
    kind: ClassVar[str] = "REVOKE"
    privilege: str
    scope_type: str
    name: str
    user: str


@dataclass(frozen=True, slots=True)
class BeginStatement:
    kind: ClassVar[str] = "BEGIN"


@dataclass(frozen=True, slots=True)
class CommitStatement:
    kind: ClassVar[str] = "COMMIT"


@dataclass(frozen=True, slots=True)
class RollbackStatement:
    kind: ClassVar[str] = "ROLLBACK"


Statement = Union[
    SelectStatement,
    InsertStatement,
    UpdateStatement,
    DeleteStatement,
    CreateTableStatement,
    CreateDatabaseStatement,
    DropDatabaseStatement,
    DropTableStatement,
    UseStatement,
    GrantStatement,
    RevokeStatement,
    BeginStatement,
    CommitStatement,
    RollbackStatement,
]
