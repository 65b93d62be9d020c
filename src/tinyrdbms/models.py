"""
models.py - In-memory relational data structures.

A DatabaseSet holds every Database; each Database holds Tables of typed
Columns and free-form Rows. Rows are plain dicts keyed by column id plus
an ``id`` entry, so a row may lack a key for a column it never received.

The *_to_dict / *_from_dict pairs define the serialized layout used by
the storage codec.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator

Row = dict[str, Any]

ROW_ID_KEY = "id"


@dataclass(slots=True)
class Column:
    """
    A typed column.

    The id is assigned at creation and never reused; names are unique
    within their table, compared case-insensitively.
    """
    id: str
    name: str
    base_type: str
    original_type: str
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    is_primary_key: bool = False


@dataclass(slots=True)
class Table:
    id: str
    name: str
    columns: list[Column] = field(default_factory=list)
    rows: list[Row] = field(default_factory=list)
    created_at: str | None = None

    def find_column(self, name: str) -> Column | None:
        """Resolve a column by name, case-insensitively."""
        lowered = name.lower()
        for column in self.columns:
            if column.name.lower() == lowered:
                return column
        return None

    def find_row(self, row_id: str) -> Row | None:
        for row in self.rows:
            if row.get(ROW_ID_KEY) == row_id:
                return row
        return None


@dataclass(frozen=True, slots=True)
class PermissionEvent:
    """
    Immutable GRANT/REVOKE audit entry.

    Purely descriptive: nothing consults these entries to restrict
    statements.
    """
    action: str
    privilege: str
    scope_type: str
    name: str
    user: str
    timestamp: str


@dataclass(slots=True)
class Database:
    id: str
    name: str
    tables: list[Table] = field(default_factory=list)
    permissions: list[PermissionEvent] = field(default_factory=list)
    created_at: str | None = None

    def find_table(self, name: str) -> Table | None:
        """Resolve a table by name, case-insensitively."""
        lowered = name.lower()
        for table in self.tables:
            if table.name.lower() == lowered:
                return table
        return None


@dataclass(slots=True)
class DatabaseSet:
    """Ordered collection of databases, unique by id."""
    databases: list[Database] = field(default_factory=list)

    def __iter__(self) -> Iterator[Database]:
        return iter(self.databases)

    def __len__(self) -> int:
        return len(self.databases)

    def get(self, database_id: str | None) -> Database | None:
        if database_id is None:
            return None
        for database in self.databases:
            if database.id == database_id:
                return database
        return None

    def find(self, name: str) -> Database | None:
        """Resolve a database by name, case-insensitively."""
        lowered = name.lower()
        for database in self.databases:
            if database.name.lower() == lowered:
                return database
        return None


def column_to_dict(column: Column) -> dict[str, Any]:
    return {
        "id": column.id,
        "name": column.name,
        "type": column.base_type,
        "originalType": column.original_type,
        "length": column.length,
        "precision": column.precision,
        "scale": column.scale,
        "isPrimaryKey": column.is_primary_key,
    }


def column_from_dict(data: dict[str, Any]) -> Column:
    return Column(
        id=data["id"],
        name=data["name"],
        base_type=data.get("type", "text"),
        original_type=data.get("originalType") or data.get("type", "TEXT"),
        length=data.get("length"),
        precision=data.get("precision"),
        scale=data.get("scale"),
        is_primary_key=bool(data.get("isPrimaryKey", False)),
    )


def permission_to_dict(event: PermissionEvent) -> dict[str, Any]:
    return {
        "action": event.action,
        "privilege": event.privilege,
        "scopeType": event.scope_type,
        "name": event.name,
        "user": event.user,
        "at": event.timestamp,
    }


def permission_from_dict(data: dict[str, Any]) -> PermissionEvent:
    return PermissionEvent(
        action=data["action"],
        privilege=data["privilege"],
        scope_type=data["scopeType"],
        name=data["name"],
        user=data["user"],
        timestamp=data["at"],
    )


def table_to_dict(table: Table) -> dict[str, Any]:
    return {
        "id": table.id,
        "name": table.name,
        "columns": [column_to_dict(c) for c in table.columns],
        "rows": [dict(row) for row in table.rows],
        "createdAt": table.created_at,
    }


def table_from_dict(data: dict[str, Any]) -> Table:
    return Table(
        id=data["id"],
        name=data["name"],
        columns=[column_from_dict(c) for c in data.get("columns", [])],
        rows=[dict(row) for row in data.get("rows", [])],
        created_at=data.get("createdAt"),
    )


def database_to_dict(database: Database) -> dict[str, Any]:
    return {
        "id": database.id,
        "name": database.name,
        "tables": [table_to_dict(t) for t in database.tables],
        "createdAt": database.created_at,
        "meta": {"permissions": [permission_to_dict(p) for p in database.permissions]},
    }


def database_from_dict(data: dict[str, Any]) -> Database:
    meta = data.get("meta") or {}
    return Database(
        id=data["id"],
        name=data["name"],
        tables=[table_from_dict(t) for t in data.get("tables", [])],
        permissions=[permission_from_dict(p) for p in meta.get("permissions", [])],
        created_at=data.get("createdAt"),
    )
