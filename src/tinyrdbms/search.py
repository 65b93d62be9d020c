"""
search.py - Case-insensitive substring search across the whole store.

Matches database names, table names, column names and row cells. A row
contributes at most one match: the first column (in declared order)
whose cell contains the term.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterator

from tinyrdbms.models import DatabaseSet, ROW_ID_KEY

logger = logging.getLogger("tinyrdbms.search")


@dataclass(frozen=True, slots=True)
class SearchMatch:
    """One hit; fields below the matched level are None."""
    type: str
    database: str
    table: str | None = None
    column: str | None = None
    value: str | None = None
    row_id: str | None = None


def cell_text(value: Any) -> str:
    """Render a cell the way it is displayed; missing cells are empty."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _scan(database_set: DatabaseSet, needle: str) -> Iterator[SearchMatch]:
    for database in database_set:
        if needle in database.name.lower():
            yield SearchMatch("database", database.name)
        for table in database.tables:
            if needle in table.name.lower():
                yield SearchMatch("table", database.name, table.name)
            for column in table.columns:
                if needle in column.name.lower():
                    yield SearchMatch("column", database.name, table.name, column.name)
            for row in table.rows:
                for column in table.columns:
                    text = cell_text(row.get(column.id))
                    if needle in text.lower():
                        yield SearchMatch(
                            "row",
                            database.name,
                            table.name,
                            column.name,
                            value=text,
                            row_id=row.get(ROW_ID_KEY),
                        )
                        break


def search(database_set: DatabaseSet, term: str) -> list[SearchMatch]:
    """
    Find every name or cell containing term, ignoring case.

    Args:
        database_set: Collection to search
        term: Substring to look for; an empty term matches nothing

    Returns:
        Matches in store order: each database, then its tables, each
        table's columns before its rows
    """
    if not term:
        return []
    needle = term.lower()
    matches = list(_scan(database_set, needle))
    logger.debug("Search for %r found %d match(es)", term, len(matches))
    return matches
