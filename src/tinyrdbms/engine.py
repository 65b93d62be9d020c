"""
engine.py - Main interpreter entry point.

The Interpreter is the primary public interface. It coordinates:
- Statement classification and parsing
- Execution against the injected Store
- Snapshot transactions
- Per-statement metrics and logging
"""

import logging

from tinyrdbms.config import DEFAULT_TRANSACTION_MODE, MUTATING_STATEMENTS
from tinyrdbms.errors import QueryError
from tinyrdbms.metrics import statement_latency_seconds, statements_total
from tinyrdbms.query.executor import DataChangedCallback, Executor, QueryResult
from tinyrdbms.query.parser import parse_statement
from tinyrdbms.storage.base import SnapshotStack, Store
from tinyrdbms.transactions import TransactionManager, TransactionMode

logger = logging.getLogger("tinyrdbms.engine")


class Interpreter:
    """
    Executes statement text against a Store.

    The interpreter holds no selection of its own; callers pass the
    active database id on every call and read the updated one back from
    the result. Use Session to have it tracked.
    """

    def __init__(
        self,
        store: Store,
        snapshots: SnapshotStack,
        on_data_changed: DataChangedCallback | None = None,
        mode: TransactionMode | str = DEFAULT_TRANSACTION_MODE,
    ):
        self._store = store
        self._transactions = TransactionManager(snapshots, mode)
        self._executor = Executor(store, self._transactions, on_data_changed)

    @property
    def store(self) -> Store:
        return self._store

    @property
    def transactions(self) -> TransactionManager:
        return self._transactions

    def execute(self, text: str, active_database_id: str | None = None) -> QueryResult:
        """
        Parse and run one statement.

        Args:
            text: Statement text, optionally ending in ';'
            active_database_id: Id of the selected database, if any

        Returns:
            QueryResult

        Raises:
            QueryError: On any parse or execution failure
        """
        kind = "UNKNOWN"
        try:
            statement = parse_statement(text)
            kind = statement.kind
            logger.debug("Executing %s", kind)
            with statement_latency_seconds.time(kind=kind):
                result = self._executor.execute(statement, active_database_id)
        except QueryError as e:
            statements_total.inc(kind=kind, status="error")
            logger.warning(
                "Statement rejected: %s",
                e.message,
                extra={"statement_kind": kind, "error_kind": e.kind},
            )
            raise

        statements_total.inc(kind=kind, status="ok")
        if kind in MUTATING_STATEMENTS:
            logger.debug("Snapshot stack depth is %d", self._transactions.depth)
        return result


class Session:
    """
    Interpreter bound to a running active-database selection.
    """

    def __init__(self, interpreter: Interpreter, active_database_id: str | None = None):
        self.interpreter = interpreter
        self.active_database_id = active_database_id

    def execute(self, text: str) -> QueryResult:
        result = self.interpreter.execute(text, self.active_database_id)
        self.active_database_id = result.active_database_id
        return result

    @property
    def active_database(self):
        """The selected Database, or None."""
        return self.interpreter.store.load().get(self.active_database_id)
