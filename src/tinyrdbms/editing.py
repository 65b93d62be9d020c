"""
editing.py - Form-entry editing of tables.

Unlike SQL INSERT/UPDATE, every value written here goes through
coerce_value(), so text is truncated to its declared length and
numbers are rounded to their declared scale. These edits are not
statements: they persist directly and never push snapshots.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from tinyrdbms.coercion import coerce_value, parse_number, parse_type
from tinyrdbms.errors import (
    ColumnNotFoundError,
    DuplicateColumnNameError,
    InvalidColumnDefinitionError,
    InvalidSyntaxError,
    InvalidTypeError,
    NoActiveDatabaseError,
    RowNotFoundError,
    TableAlreadyExistsError,
    TableNotFoundError,
)
from tinyrdbms.models import ROW_ID_KEY, Column, DatabaseSet, Row, Table
from tinyrdbms.storage.base import Store
from tinyrdbms.utils.ids import new_id

logger = logging.getLogger("tinyrdbms.editing")


@dataclass(frozen=True, slots=True)
class ColumnSpec:
    """
    Desired column in a redefinition.

    ``column_id`` names an existing column to keep; None adds a new one.
    """
    name: str
    type_text: str
    is_primary_key: bool = False
    column_id: str | None = None


@dataclass(slots=True)
class ColumnSummary:
    name: str
    base_type: str
    count: int = 0
    mean: float | None = None
    min: float | None = None
    max: float | None = None
    std: float | None = None
    distinct: int | None = None

    @property
    def summary(self) -> str:
        if self.distinct is not None:
            return f"distinct={self.distinct}"
        return (
            f"count={self.count}, mean={self.mean:.2f}, min={self.min}, "
            f"max={self.max}, std={self.std:.2f}"
        )


@dataclass(slots=True)
class TableStats:
    table: str
    row_count: int
    columns: list[ColumnSummary] = field(default_factory=list)


def _numeric_cell(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        return parse_number(value)
    return None


def _summarize(table: Table, column: Column) -> ColumnSummary:
    if column.base_type != "number":
        distinct = {
            "" if row.get(column.id) is None else row.get(column.id)
            for row in table.rows
        }
        return ColumnSummary(column.name, column.base_type, len(table.rows), distinct=len(distinct))

    numbers = [
        n for n in (_numeric_cell(row.get(column.id)) for row in table.rows)
        if n is not None
    ]
    if not numbers:
        return ColumnSummary(column.name, column.base_type, 0, 0.0, 0, 0, 0.0)

    mean = sum(numbers) / len(numbers)
    variance = sum((n - mean) ** 2 for n in numbers) / len(numbers)
    return ColumnSummary(
        column.name,
        column.base_type,
        count=len(numbers),
        mean=mean,
        min=min(numbers),
        max=max(numbers),
        std=math.sqrt(variance),
    )


class TableEditor:
    """
    Row and schema edits for one Store.

    Each method loads the DatabaseSet, applies one change and saves it
    back, raising QueryError subclasses on invalid targets.
    """

    def __init__(self, store: Store):
        self._store = store

    def _open(self, database_id: str, table_name: str) -> tuple[DatabaseSet, Table]:
        database_set = self._store.load()
        database = database_set.get(database_id)
        if database is None:
            raise NoActiveDatabaseError(database_id)
        table = database.find_table(table_name)
        if table is None:
            raise TableNotFoundError(table_name)
        return database_set, table

    def _coerce_into(self, row: Row, table: Table, raw_values: Mapping[str, Any], fill: bool) -> None:
        provided = {name.lower(): value for name, value in raw_values.items()}
        for name in raw_values:
            if table.find_column(name) is None:
                raise ColumnNotFoundError(name, table.name)
        for column in table.columns:
            key = column.name.lower()
            if key in provided:
                row[column.id] = coerce_value(provided[key], column)
            elif fill:
                row[column.id] = coerce_value("", column)

    def add_row(self, database_id: str, table_name: str, raw_values: Mapping[str, Any]) -> Row:
        """
        Append a row built from raw form values.

        Columns missing from ``raw_values`` get the coercion of an
        empty entry (0, False, or "").

        Returns:
            The stored row
        """
        database_set, table = self._open(database_id, table_name)
        row: Row = {ROW_ID_KEY: new_id()}
        self._coerce_into(row, table, raw_values, fill=True)
        table.rows.append(row)
        self._store.save(database_set)
        logger.info("Added row %s to %s", row[ROW_ID_KEY], table.name)
        return dict(row)

    def edit_row(
        self, database_id: str, table_name: str, row_id: str, raw_values: Mapping[str, Any]
    ) -> Row:
        """Overwrite the given columns of one row; others are left as they are."""
        database_set, table = self._open(database_id, table_name)
        row = table.find_row(row_id)
        if row is None:
            raise RowNotFoundError(row_id, table.name)
        self._coerce_into(row, table, raw_values, fill=False)
        self._store.save(database_set)
        logger.info("Edited row %s in %s", row_id, table.name)
        return dict(row)

    def delete_row(self, database_id: str, table_name: str, row_id: str) -> None:
        database_set, table = self._open(database_id, table_name)
        if table.find_row(row_id) is None:
            raise RowNotFoundError(row_id, table.name)
        table.rows = [row for row in table.rows if row.get(ROW_ID_KEY) != row_id]
        self._store.save(database_set)
        logger.info("Deleted row %s from %s", row_id, table.name)

    def rename_table(self, database_id: str, table_name: str, new_name: str) -> None:
        database_set, table = self._open(database_id, table_name)
        new_name = new_name.strip()
        if not new_name:
            raise InvalidSyntaxError("RENAME", reason="new table name is empty")

        database = database_set.get(database_id)
        clash = database.find_table(new_name)
        if clash is not None and clash.id != table.id:
            raise TableAlreadyExistsError(new_name)

        old_name = table.name
        table.name = new_name
        self._store.save(database_set)
        logger.info("Renamed table %s to %s", old_name, new_name)

    def redefine_columns(
        self, database_id: str, table_name: str, specs: Iterable[ColumnSpec]
    ) -> list[Column]:
        """
        Replace a table's column list and rebuild its rows.

        Each new column takes its value from the old column of the same
        name, or failing that the old column with the same id, and
        re-coerces it under the new type. Columns with neither get the
        coercion of an empty entry.

        Raises:
            DuplicateColumnNameError: If two specs share a name
            InvalidTypeError: If a type cannot be parsed
        """
        database_set, table = self._open(database_id, table_name)
        existing_ids = {column.id for column in table.columns}

        columns: list[Column] = []
        seen: set[str] = set()
        for spec in specs:
            name = spec.name.strip()
            if not name:
                raise InvalidColumnDefinitionError(spec.type_text, reason="Missing column name")
            if name.lower() in seen:
                raise DuplicateColumnNameError(name)
            seen.add(name.lower())

            parsed = parse_type(spec.type_text)
            if parsed is None:
                raise InvalidTypeError(name, spec.type_text)
            keep = spec.column_id is not None and spec.column_id in existing_ids
            columns.append(
                Column(
                    id=spec.column_id if keep else new_id(),
                    name=name,
                    base_type=parsed.base_type,
                    original_type=parsed.original,
                    length=parsed.length,
                    precision=parsed.precision,
                    scale=parsed.scale,
                    is_primary_key=spec.is_primary_key,
                )
            )

        old_columns = table.columns
        by_id = {column.id: column for column in old_columns}
        rows = []
        for old in table.rows:
            row: Row = {ROW_ID_KEY: old[ROW_ID_KEY]}
            for column in columns:
                previous = table.find_column(column.name) or by_id.get(column.id)
                raw = old.get(previous.id) if previous is not None else ""
                row[column.id] = coerce_value(raw, column)
            rows.append(row)

        table.columns = columns
        table.rows = rows
        self._store.save(database_set)
        logger.info(
            "Redefined %s: %d -> %d column(s)", table.name, len(old_columns), len(columns)
        )
        return list(columns)

    def table_stats(self, database_id: str, table_name: str) -> TableStats:
        """
        Per-column summary.

        Number columns report count/mean/min/max/std over the cells that
        hold a number; other columns report their distinct value count.
        """
        _, table = self._open(database_id, table_name)
        return TableStats(
            table=table.name,
            row_count=len(table.rows),
            columns=[_summarize(table, column) for column in table.columns],
        )

    def find_duplicates(
        self,
        database_id: str,
        table_name: str,
        columns: Iterable[str] | None = None,
    ) -> list[list[str]]:
        """
        Group row ids whose values agree on the given columns.

        Args:
            columns: Column names to compare; all columns when None

        Returns:
            Groups of two or more row ids, in first-seen order
        """
        _, table = self._open(database_id, table_name)
        if columns is None:
            keys = list(table.columns)
        else:
            keys = []
            for name in columns:
                column = table.find_column(name)
                if column is None:
                    raise ColumnNotFoundError(name, table.name)
                keys.append(column)

        groups: dict[tuple, list[str]] = {}
        for row in table.rows:
            signature = tuple(
                "" if row.get(c.id) is None else row.get(c.id) for c in keys
            )
            groups.setdefault(signature, []).append(row[ROW_ID_KEY])
        return [ids for ids in groups.values() if len(ids) > 1]
