"""
coercion.py - SQL type parsing and value coercion.

parse_type() maps declared SQL type text (VARCHAR(50), DECIMAL(10,2),
INT, ...) onto one of the normalized base types. coerce_value() turns
raw form-entry text into a value of a column's base type.

Coercion never raises: invalid input degrades to a safe default
(0 for numbers, the original text for unparseable dates).
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from tinyrdbms.config import (
    BOOLEAN_TYPES,
    DATE_TYPES,
    DATETIME_TYPES,
    NUMBER_TYPES,
    TEXT_TYPES,
    TRUTHY_TOKENS,
)
from tinyrdbms.models import Column

logger = logging.getLogger("tinyrdbms.coercion")

_TYPE_PATTERN = re.compile(r"^(\w+)(\s*\(([^)]+)\))?")
_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
_INT_MIN = -(2 ** 63)
_UINT_MAX = 2 ** 64 - 1

# Tried in order after ISO 8601
_DATETIME_FORMATS = (
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%B %d, %Y",
)


@dataclass(frozen=True, slots=True)
class TypeSpec:
    """Parsed SQL type declaration."""
    original: str
    base_type: str
    length: int | None = None
    precision: int | None = None
    scale: int | None = None


def _to_int(text: str) -> int | None:
    try:
        return int(text.strip())
    except ValueError:
        return None


def base_type_for(keyword: str) -> str:
    """
    Map a type keyword to its base type.

    Unrecognized keywords fall back to text.
    """
    keyword = keyword.upper()
    if keyword in NUMBER_TYPES:
        return "number"
    if keyword in TEXT_TYPES:
        return "text"
    if keyword in BOOLEAN_TYPES:
        return "boolean"
    if keyword in DATE_TYPES:
        return "date"
    if keyword in DATETIME_TYPES:
        return "datetime"
    return "text"


def parse_type(text: str) -> TypeSpec | None:
    """
    Parse ``NAME``, ``NAME(n)`` or ``NAME(p,s)``.

    A single argument becomes the length, two become precision and
    scale. Non-integer arguments are ignored.

    Returns:
        TypeSpec, or None when the text does not start with a keyword
    """
    raw = text.strip()
    match = _TYPE_PATTERN.match(raw.upper())
    if match is None:
        return None

    length = precision = scale = None
    if match.group(3) is not None:
        args = [part.strip() for part in match.group(3).split(",")]
        if len(args) == 1:
            length = _to_int(args[0])
        elif len(args) == 2:
            precision = _to_int(args[0])
            scale = _to_int(args[1])

    return TypeSpec(
        original=raw,
        base_type=base_type_for(match.group(1)),
        length=length,
        precision=precision,
        scale=scale,
    )


def parse_number(text: str) -> int | float | None:
    """
    Parse numeric-looking text.

    Integral text yields an int so stored values stay exact, unless it
    falls outside the 64-bit range, where it becomes a float.

    Returns:
        The number, or None if the text is not numeric
    """
    text = text.strip()
    if not _NUMBER_PATTERN.match(text):
        return None
    if _INTEGER_PATTERN.match(text) and len(text.lstrip("+-")) <= 20:
        return _fit_integer(int(text))
    return float(text)


def _fit_integer(value: int) -> int | float:
    # Integers past the 64-bit range are kept as floats so they stay storable
    if _INT_MIN <= value <= _UINT_MAX:
        return value
    return float(value)


def _round_to_scale(value: int | float, scale: int) -> int | float:
    try:
        quantum = Decimal(1).scaleb(-scale)
        rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return value
    if scale <= 0:
        return _fit_integer(int(rounded))
    return float(rounded)


def parse_datetime(text: str) -> datetime | None:
    """
    Parse a calendar date or timestamp.

    Accepts ISO 8601 (with a trailing ``Z``) and a handful of common
    slash and month-name layouts.
    """
    text = text.strip()
    if not text:
        return None
    iso = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        pass
    for fmt in _DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def format_timestamp(value: datetime) -> str:
    """Normalize to ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def coerce_value(raw: Any, column: Column) -> Any:
    """
    Coerce raw form-entry input to the column's base type.

    Args:
        raw: Raw value, usually text typed by a user
        column: Target column

    Returns:
        Coerced value; None only when raw is None
    """
    if raw is None:
        return None
    text = str(raw).strip()

    if column.base_type == "number":
        number = parse_number(text) if text else 0
        if number is None:
            logger.debug("Non-numeric input %r for column %s, using 0", text, column.name)
            return 0
        if column.precision is not None and column.scale is not None:
            return _round_to_scale(number, column.scale)
        return number

    if column.base_type == "boolean":
        return text.lower() in TRUTHY_TOKENS

    if column.base_type == "date":
        parsed = parse_datetime(text)
        if parsed is None:
            return text
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        return parsed.date().isoformat()

    if column.base_type == "datetime":
        parsed = parse_datetime(text)
        if parsed is None:
            return text
        return format_timestamp(parsed)

    if column.length is not None and len(text) > column.length:
        return text[: column.length]
    return text
