"""
executor.py - Statement execution against the DatabaseSet.

Each statement runs as a single read-modify-write:
load a fresh copy from the Store, validate against the schema, mutate
the copy in memory, then save it wholesale. A failure before the save
leaves persisted state untouched.

Mutating statements record a snapshot first. INSERT, UPDATE, DELETE and
CREATE TABLE take it as soon as the active database is resolved, before
any schema validation, so a rejected statement still leaves its
(unchanged) snapshot on the stack. CREATE/DROP DATABASE, DROP TABLE and
GRANT/REVOKE take it after their target checks pass.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

from tinyrdbms.coercion import parse_type
from tinyrdbms.config import DATABASE_SCOPED_STATEMENTS
from tinyrdbms.errors import (
    ColumnNotFoundError,
    DatabaseAlreadyExistsError,
    DatabaseNotFoundError,
    DuplicateColumnNameError,
    InvalidTypeError,
    NoActiveDatabaseError,
    TableAlreadyExistsError,
    TableNotFoundError,
)
from tinyrdbms.models import (
    ROW_ID_KEY,
    Column,
    Database,
    DatabaseSet,
    PermissionEvent,
    Row,
    Table,
)
from tinyrdbms.query.literals import parse_literal
from tinyrdbms.query.predicate import filter_rows
from tinyrdbms.query.statements import (
    BeginStatement,
    CommitStatement,
    CreateDatabaseStatement,
    CreateTableStatement,
    DeleteStatement,
    DropDatabaseStatement,
    DropTableStatement,
    GrantStatement,
    InsertStatement,
    RevokeStatement,
    RollbackStatement,
    SelectStatement,
    Statement,
    UpdateStatement,
    UseStatement,
)
from tinyrdbms.storage.base import Store
from tinyrdbms.transactions import TransactionManager
from tinyrdbms.utils.ids import new_id, utc_now_iso

logger = logging.getLogger("tinyrdbms.query.executor")

DataChangedCallback = Callable[[Database | None], None]


@dataclass
class QueryResult:
    """
    Outcome of one statement.

    SELECT fills ``columns`` and ``rows``; every other statement only
    carries a message. ``active_database_id`` is the selection after the
    statement ran.
    """
    message: str
    kind: str = ""
    columns: list[Column] | None = None
    rows: list[Row] | None = None
    affected: int | None = None
    active_database_id: str | None = None

    @property
    def is_select(self) -> bool:
        return self.columns is not None

    def records(self) -> list[dict[str, Any]]:
        """Selected rows keyed by column name; missing cells are None."""
        if self.columns is None or self.rows is None:
            return []
        return [
            {column.name: row.get(column.id) for column in self.columns}
            for row in self.rows
        ]

    def values(self, column_name: str) -> list[Any]:
        """One selected column's values, in row order."""
        lowered = column_name.lower()
        for column in self.columns or []:
            if column.name.lower() == lowered:
                return [row.get(column.id) for row in self.rows or []]
        raise ColumnNotFoundError(column_name)


def _require_table(database: Database, name: str) -> Table:
    table = database.find_table(name)
    if table is None:
        raise TableNotFoundError(name)
    return table


def _require_column(table: Table, name: str) -> Column:
    column = table.find_column(name)
    if column is None:
        raise ColumnNotFoundError(name, table.name)
    return column


class Executor:
    """
    Runs parsed statements against the Store.
    """

    def __init__(
        self,
        store: Store,
        transactions: TransactionManager,
        on_data_changed: DataChangedCallback | None = None,
    ):
        self._store = store
        self._transactions = transactions
        self._on_data_changed = on_data_changed

    def execute(self, statement: Statement, active_database_id: str | None) -> QueryResult:
        """
        Execute one statement.

        Args:
            statement: Parsed statement
            active_database_id: Currently selected database, if any

        Returns:
            QueryResult with the post-statement selection

        Raises:
            QueryError: Any validation failure, see tinyrdbms.errors
        """
        database_set = self._store.load()
        database = None
        if statement.kind in DATABASE_SCOPED_STATEMENTS:
            database = database_set.get(active_database_id)
            if database is None:
                raise NoActiveDatabaseError(active_database_id)

        active = active_database_id
        match statement:
            case SelectStatement():
                result = self._select(statement, database)
            case InsertStatement():
                result = self._insert(statement, database_set, database)
            case UpdateStatement():
                result = self._update(statement, database_set, database)
            case DeleteStatement():
                result = self._delete(statement, database_set, database)
            case CreateTableStatement():
                result = self._create_table(statement, database_set, database)
            case DropTableStatement():
                result = self._drop_table(statement, database_set, database)
            case GrantStatement() | RevokeStatement():
                result = self._record_permission(statement, database_set, database)
            case CreateDatabaseStatement():
                result, active = self._create_database(statement, database_set, active)
            case DropDatabaseStatement():
                result, active = self._drop_database(statement, database_set, active)
            case UseStatement():
                result, active = self._use(statement, database_set)
            case BeginStatement():
                self._transactions.begin(database_set)
                result = QueryResult("Transaction started")
            case CommitStatement():
                if self._transactions.commit():
                    result = QueryResult("Transaction committed")
                else:
                    result = QueryResult("No transaction in progress")
            case RollbackStatement():
                result, active = self._rollback(active)
            case _:
                raise TypeError(f"Unhandled statement {statement!r}")

        result.kind = statement.kind
        result.active_database_id = active
        return result

    def _persist(self, database_set: DatabaseSet, active_database_id: str | None) -> None:
        self._store.save(database_set)
        self._notify(database_set.get(active_database_id))

    def _notify(self, database: Database | None) -> None:
        if self._on_data_changed is not None:
            self._on_data_changed(database)

    def _select(self, stmt: SelectStatement, database: Database) -> QueryResult:
        table = _require_table(database, stmt.table)
        if stmt.columns is None:
            columns = list(table.columns)
        else:
            columns = [_require_column(table, name) for name in stmt.columns]

        rows = table.rows
        if stmt.condition:
            rows = filter_rows(table, rows, stmt.condition)

        logger.debug("SELECT from %s returned %d row(s)", table.name, len(rows))
        return QueryResult(
            f"{len(rows)} row(s) returned",
            columns=columns,
            rows=[dict(row) for row in rows],
            affected=len(rows),
        )

    def _insert(
        self, stmt: InsertStatement, database_set: DatabaseSet, database: Database
    ) -> QueryResult:
        self._transactions.snapshot(database_set)
        table = _require_table(database, stmt.table)
        columns = [_require_column(table, name) for name in stmt.columns]

        row: Row = {ROW_ID_KEY: new_id()}
        for column, literal in zip(columns, stmt.values):
            row[column.id] = parse_literal(literal)
        table.rows.append(row)

        self._persist(database_set, database.id)
        logger.info("Inserted row %s into %s", row[ROW_ID_KEY], table.name)
        return QueryResult("1 row inserted successfully", affected=1)

    def _update(
        self, stmt: UpdateStatement, database_set: DatabaseSet, database: Database
    ) -> QueryResult:
        self._transactions.snapshot(database_set)
        table = _require_table(database, stmt.table)
        assignments = [
            (_require_column(table, name), parse_literal(literal))
            for name, literal in stmt.assignments
        ]

        rows = table.rows
        if stmt.condition:
            rows = filter_rows(table, rows, stmt.condition)
        for row in rows:
            for column, value in assignments:
                row[column.id] = value

        self._persist(database_set, database.id)
        logger.info("Updated %d row(s) in %s", len(rows), table.name)
        return QueryResult(f"{len(rows)} row(s) updated successfully", affected=len(rows))

    def _delete(
        self, stmt: DeleteStatement, database_set: DatabaseSet, database: Database
    ) -> QueryResult:
        self._transactions.snapshot(database_set)
        table = _require_table(database, stmt.table)

        rows = table.rows
        if stmt.condition:
            rows = filter_rows(table, rows, stmt.condition)
        doomed = {row[ROW_ID_KEY] for row in rows}
        table.rows = [row for row in table.rows if row[ROW_ID_KEY] not in doomed]

        self._persist(database_set, database.id)
        logger.info("Deleted %d row(s) from %s", len(rows), table.name)
        return QueryResult(f"{len(rows)} row(s) deleted successfully", affected=len(rows))

    def _create_table(
        self, stmt: CreateTableStatement, database_set: DatabaseSet, database: Database
    ) -> QueryResult:
        self._transactions.snapshot(database_set)
        if database.find_table(stmt.table) is not None:
            raise TableAlreadyExistsError(stmt.table)

        seen: set[str] = set()
        columns = []
        for definition in stmt.columns:
            lowered = definition.name.lower()
            if lowered in seen:
                raise DuplicateColumnNameError(definition.name)
            seen.add(lowered)

            spec = parse_type(definition.type_text)
            if spec is None:
                raise InvalidTypeError(definition.name, definition.type_text)
            columns.append(
                Column(
                    id=new_id(),
                    name=definition.name,
                    base_type=spec.base_type,
                    original_type=spec.original,
                    length=spec.length,
                    precision=spec.precision,
                    scale=spec.scale,
                    is_primary_key=definition.is_primary_key,
                )
            )

        database.tables.append(
            Table(id=new_id(), name=stmt.table, columns=columns, created_at=utc_now_iso())
        )
        self._persist(database_set, database.id)
        logger.info("Created table %s with %d column(s)", stmt.table, len(columns))
        return QueryResult(f"Table '{stmt.table}' created successfully")

    def _drop_table(
        self, stmt: DropTableStatement, database_set: DatabaseSet, database: Database
    ) -> QueryResult:
        table = _require_table(database, stmt.name)
        self._transactions.snapshot(database_set)
        database.tables = [t for t in database.tables if t.id != table.id]

        self._persist(database_set, database.id)
        logger.info("Dropped table %s", table.name)
        return QueryResult(f"Table '{stmt.name}' dropped")

    def _record_permission(
        self,
        stmt: GrantStatement | RevokeStatement,
        database_set: DatabaseSet,
        database: Database,
    ) -> QueryResult:
        self._transactions.snapshot(database_set)
        database.permissions.append(
            PermissionEvent(
                action=stmt.kind,
                privilege=stmt.privilege,
                scope_type=stmt.scope_type,
                name=stmt.name,
                user=stmt.user,
                timestamp=utc_now_iso(),
            )
        )
        self._persist(database_set, database.id)

        privilege = stmt.privilege.upper()
        logger.info("%s %s on %s %s for %s", stmt.kind, privilege, stmt.scope_type, stmt.name, stmt.user)
        if isinstance(stmt, GrantStatement):
            return QueryResult(f"Granted {privilege} on {stmt.scope_type} {stmt.name} to {stmt.user}")
        return QueryResult(f"Revoked {privilege} on {stmt.scope_type} {stmt.name} from {stmt.user}")

    def _create_database(
        self,
        stmt: CreateDatabaseStatement,
        database_set: DatabaseSet,
        active_database_id: str | None,
    ) -> tuple[QueryResult, str | None]:
        if database_set.find(stmt.name) is not None:
            if stmt.if_not_exists:
                return QueryResult(f"Database '{stmt.name}' already exists"), active_database_id
            raise DatabaseAlreadyExistsError(stmt.name)

        self._transactions.snapshot(database_set)
        database = Database(id=new_id(), name=stmt.name, created_at=utc_now_iso())
        database_set.databases.append(database)

        self._persist(database_set, database.id)
        logger.info("Created database %s", stmt.name)
        return QueryResult(f"Database '{stmt.name}' created"), database.id

    def _drop_database(
        self,
        stmt: DropDatabaseStatement,
        database_set: DatabaseSet,
        active_database_id: str | None,
    ) -> tuple[QueryResult, str | None]:
        database = database_set.find(stmt.name)
        if database is None:
            raise DatabaseNotFoundError(stmt.name)

        self._transactions.snapshot(database_set)
        database_set.databases = [db for db in database_set if db.id != database.id]

        active = None if database.id == active_database_id else active_database_id
        self._persist(database_set, active)
        logger.info("Dropped database %s", database.name)
        return QueryResult(f"Database '{stmt.name}' dropped"), active

    def _use(
        self, stmt: UseStatement, database_set: DatabaseSet
    ) -> tuple[QueryResult, str | None]:
        database = database_set.find(stmt.name)
        if database is None:
            raise DatabaseNotFoundError(stmt.name)
        self._notify(database)
        return QueryResult(f"Using database '{stmt.name}'"), database.id

    def _rollback(self, active_database_id: str | None) -> tuple[QueryResult, str | None]:
        restored = self._transactions.rollback()
        if restored is None:
            return QueryResult("Nothing to rollback"), active_database_id

        self._store.save(restored)
        # The selection may name a database the snapshot predates
        active = active_database_id if restored.get(active_database_id) else None
        self._notify(restored.get(active))
        return QueryResult("Rolled back to previous state"), active
