"""
predicate.py - Single-comparison WHERE clause evaluation.

A condition is exactly ``<column> <op> <literal>`` with op one of
=, !=, <>, >, <, >=, <=. AND/OR/NOT/IN/LIKE and parentheses are not
supported and are rejected as invalid conditions.

Cell and literal values are classified into a small tagged union
(null, number, text, boolean) and compared by explicit per-pair rules:

- equality is loose: a number equals text that parses to the same
  number, booleans compare as 1/0 against numbers and numeric text
- ordering between numbers and numeric text is numeric; between a
  number and non-numeric text it is lexical on their text forms
- a missing (null) cell equals nothing and orders against nothing
"""

import logging
import operator
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from tinyrdbms.coercion import parse_number
from tinyrdbms.config import COMPARISON_OPERATORS
from tinyrdbms.errors import ColumnNotFoundError, InvalidConditionError
from tinyrdbms.models import Row, Table
from tinyrdbms.query.literals import parse_literal

logger = logging.getLogger("tinyrdbms.query.predicate")

_OPERATOR_ALTERNATION = "|".join(re.escape(op) for op in COMPARISON_OPERATORS)
_CONDITION_PATTERN = re.compile(
    r"""^\s*(\w+)\s*(""" + _OPERATOR_ALTERNATION + r""")\s*('[^']*'|"[^"]*"|[^\s'"]+)\s*$"""
)

_ORDERINGS: dict[str, Callable[[Any, Any], bool]] = {
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}


class ValueKind(Enum):
    NULL = "null"
    NUMBER = "number"
    TEXT = "text"
    BOOLEAN = "boolean"


def kind_of(value: Any) -> ValueKind:
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    return ValueKind.TEXT


@dataclass(frozen=True, slots=True)
class Condition:
    """Parsed WHERE clause."""
    column: str
    operator: str
    value: Any


def parse_condition(text: str) -> Condition:
    """
    Parse a single binary comparison.

    Raises:
        InvalidConditionError: If the text is not one comparison
    """
    match = _CONDITION_PATTERN.match(text)
    if match is None:
        raise InvalidConditionError(text.strip())
    column, op, literal = match.groups()
    return Condition(column=column, operator=op, value=parse_literal(literal))


def _as_number(value: Any, kind: ValueKind) -> int | float | None:
    if kind is ValueKind.NUMBER:
        return value
    if kind is ValueKind.BOOLEAN:
        return int(value)
    if kind is ValueKind.TEXT:
        return parse_number(str(value))
    return None


def _as_text(value: Any, kind: ValueKind) -> str:
    if kind is ValueKind.BOOLEAN:
        return "true" if value else "false"
    return str(value)


def loose_equals(left: Any, right: Any) -> bool:
    left_kind, right_kind = kind_of(left), kind_of(right)
    if ValueKind.NULL in (left_kind, right_kind):
        return False
    if left_kind is right_kind:
        return left == right
    left_num = _as_number(left, left_kind)
    right_num = _as_number(right, right_kind)
    if left_num is None or right_num is None:
        return False
    return left_num == right_num


def compare_ordered(left: Any, right: Any, op: str) -> bool:
    """Evaluate ``left <op> right`` for one of >, <, >=, <=."""
    compare = _ORDERINGS[op]
    left_kind, right_kind = kind_of(left), kind_of(right)
    if ValueKind.NULL in (left_kind, right_kind):
        return False
    if left_kind is ValueKind.TEXT and right_kind is ValueKind.TEXT:
        return compare(str(left), str(right))
    left_num = _as_number(left, left_kind)
    right_num = _as_number(right, right_kind)
    if left_num is not None and right_num is not None:
        return compare(left_num, right_num)
    return compare(_as_text(left, left_kind), _as_text(right, right_kind))


def evaluate(condition: Condition, cell: Any) -> bool:
    if condition.operator == "=":
        return loose_equals(cell, condition.value)
    if condition.operator in ("!=", "<>"):
        return not loose_equals(cell, condition.value)
    return compare_ordered(cell, condition.value, condition.operator)


def filter_rows(table: Table, rows: list[Row], condition_text: str) -> list[Row]:
    """
    Return the rows satisfying a WHERE clause.

    Args:
        table: Table whose columns the condition refers to
        rows: Candidate rows
        condition_text: Text after WHERE

    Returns:
        Matching rows, in their original order

    Raises:
        InvalidConditionError: If the clause is not a single comparison
        ColumnNotFoundError: If the column does not exist
    """
    condition = parse_condition(condition_text)
    column = table.find_column(condition.column)
    if column is None:
        raise ColumnNotFoundError(condition.column)

    matched = [row for row in rows if evaluate(condition, row.get(column.id))]
    logger.debug(
        "WHERE %s %s %r matched %d of %d rows",
        column.name, condition.operator, condition.value, len(matched), len(rows),
    )
    return matched
