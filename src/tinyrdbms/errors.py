"""
errors.py - Domain-specific exceptions for tinyrdbms.

All exceptions inherit from QueryError for unified handling.
Each exception type represents a distinct failure kind; the kind
name is exposed as the ``kind`` class attribute so callers can
render it without matching on exception types.
"""

from typing import Any, Iterable


class QueryError(Exception):
    """Base exception for all tinyrdbms errors."""

    kind = "QueryError"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} [{context_str}]"
        return self.message


class EmptyStatementError(QueryError):
    """Raised when the statement text is blank or only a semicolon."""

    kind = "EmptyStatement"

    def __init__(self) -> None:
        super().__init__("Query is empty")


class UnsupportedStatementError(QueryError):
    """Raised when the leading keyword is not one the interpreter knows."""

    kind = "UnsupportedStatement"

    def __init__(self, keyword: str, supported: Iterable[str]) -> None:
        self.keyword = keyword
        self.supported = tuple(supported)
        super().__init__(
            f"Unsupported query type. Supported types: {', '.join(self.supported)}",
            context={"keyword": keyword},
        )


class InvalidSyntaxError(QueryError):
    """
    Raised when statement text does not match its grammar.

    The usage string, when given, shows the accepted shape.
    """

    kind = "InvalidSyntax"

    def __init__(
        self, statement: str, usage: str | None = None, reason: str | None = None
    ) -> None:
        self.statement = statement
        self.usage = usage
        self.reason = reason
        if reason:
            message = f"Invalid {statement} query: {reason}"
        else:
            message = f"Invalid {statement} query format"
        if usage:
            message = f"{message}. Usage: {usage}"
        super().__init__(message)


class InvalidConditionError(QueryError):
    """
    Raised when a WHERE clause is not a single binary comparison.
    """

    kind = "InvalidCondition"

    def __init__(self, condition: str) -> None:
        self.condition = condition
        super().__init__(f"Invalid condition: {condition}")


class NoActiveDatabaseError(QueryError):
    """Raised when a database-scoped statement runs without a selection."""

    kind = "NoActiveDatabase"

    def __init__(self, database_id: str | None = None) -> None:
        context = {}
        if database_id is not None:
            context["database_id"] = database_id
        super().__init__("No database selected", context=context)
        self.database_id = database_id


class DatabaseNotFoundError(QueryError):
    kind = "DatabaseNotFound"

    def __init__(self, name: str) -> None:
        super().__init__(f"Database '{name}' not found")
        self.name = name


class DatabaseAlreadyExistsError(QueryError):
    kind = "DatabaseAlreadyExists"

    def __init__(self, name: str) -> None:
        super().__init__(f"Database '{name}' already exists")
        self.name = name


class TableNotFoundError(QueryError):
    kind = "TableNotFound"

    def __init__(self, name: str) -> None:
        super().__init__(f"Table '{name}' not found")
        self.name = name


class TableAlreadyExistsError(QueryError):
    kind = "TableAlreadyExists"

    def __init__(self, name: str) -> None:
        super().__init__(f"Table '{name}' already exists")
        self.name = name


class ColumnNotFoundError(QueryError):
    """
    Raised when a column reference cannot be resolved.

    The table name is attached when the reference came from a
    statement that names its table.
    """

    kind = "ColumnNotFound"

    def __init__(self, column: str, table: str | None = None) -> None:
        if table is None:
            message = f"Column '{column}' not found"
        else:
            message = f"Column '{column}' not found in table '{table}'"
        super().__init__(message)
        self.column = column
        self.table = table


class RowNotFoundError(QueryError):
    kind = "RowNotFound"

    def __init__(self, row_id: str, table: str) -> None:
        super().__init__(f"Row '{row_id}' not found in table '{table}'")
        self.row_id = row_id
        self.table = table


class InvalidColumnDefinitionError(QueryError):
    kind = "InvalidColumnDefinition"

    def __init__(self, definition: str, reason: str | None = None) -> None:
        message = f"Invalid column definition: {definition}"
        if reason:
            message = f"{reason}: {definition}"
        super().__init__(message)
        self.definition = definition


class InvalidTypeError(QueryError):
    kind = "InvalidType"

    def __init__(self, column: str, type_text: str) -> None:
        super().__init__(
            f"Invalid type for column {column}: {type_text}",
            context={"column": column},
        )
        self.column = column
        self.type_text = type_text


class DuplicateColumnNameError(QueryError):
    kind = "DuplicateColumnName"

    def __init__(self, column: str) -> None:
        super().__init__(f"Duplicate column name: {column}")
        self.column = column


class StorageError(QueryError):
    """
    Raised when the persistence backend fails.

    This wraps SQLite and codec errors with the operation
    that was being attempted.
    """

    kind = "StorageError"

    def __init__(self, message: str, operation: str | None = None) -> None:
        context = {}
        if operation is not None:
            context["operation"] = operation
        super().__init__(message, context=context)
        self.operation = operation
