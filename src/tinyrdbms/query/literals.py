"""
literals.py - SQL literal and list splitting helpers.

Literal rules shared by INSERT, UPDATE and WHERE:
- single- or double-quoted text is unwrapped and kept as a string
- bare true/false (any case) become booleans
- numeric-looking text becomes a number
- anything else stays as raw text

Values are NOT coerced through column types here; that is the
form-entry path in tinyrdbms.coercion.
"""

import re
from typing import Any

from tinyrdbms.coercion import parse_number


def is_quoted(text: str) -> bool:
    return len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"')


def parse_literal(text: str) -> Any:
    """
    Convert one literal's source text to a value.

    Args:
        text: Literal text, surrounding whitespace allowed

    Returns:
        str, bool, int or float
    """
    trimmed = text.strip()
    if is_quoted(trimmed):
        return trimmed[1:-1]
    lowered = trimmed.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    number = parse_number(trimmed)
    if number is not None:
        return number
    return trimmed


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """
    Split on separators outside quotes and parentheses.

    ``DECIMAL(10,2)`` and ``'a,b'`` are never split. Empty pieces are
    dropped and the rest are trimmed.
    """
    parts: list[str] = []
    buf: list[str] = []
    depth = 0
    quote: str | None = None

    for ch in text:
        if quote is not None:
            buf.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        elif ch == separator and depth == 0:
            piece = "".join(buf).strip()
            if piece:
                parts.append(piece)
            buf = []
            continue
        buf.append(ch)

    piece = "".join(buf).strip()
    if piece:
        parts.append(piece)
    return parts


def split_assignment(text: str) -> tuple[str, str] | None:
    """
    Split ``column = literal`` on the first ``=`` outside quotes.

    Returns:
        (column, literal text), or None if there is no ``=``
    """
    quote: str | None = None
    for index, ch in enumerate(text):
        if quote is not None:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "=":
            column = text[:index].strip()
            literal = text[index + 1:].strip()
            if not column or not literal:
                return None
            return column, literal
    return None


def split_keyword(text: str, keyword: str) -> tuple[str, str | None]:
    """
    Split at the first whitespace-delimited keyword outside quotes.

    ``a = 'x where y' WHERE id = 1`` splits at the second WHERE only.

    Returns:
        (text before, text after), or (text, None) if the keyword is absent
    """
    pattern = re.compile(rf"\s+{re.escape(keyword)}\s+", re.IGNORECASE)
    quote: str | None = None
    for index, ch in enumerate(text):
        if quote is not None:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch.isspace():
            match = pattern.match(text, index)
            if match:
                return text[:index], text[match.end():]
    return text, None
