"""
parser.py - Statement classification and parsing.

Statement text is trimmed, a trailing semicolon removed, and the
leading keyword(s) decide which grammar applies. Keywords match
case-insensitively; identifiers keep their original case.
"""

import logging
import re

from tinyrdbms.config import PERMISSION_SCOPES, SUPPORTED_STATEMENTS
from tinyrdbms.errors import (
    EmptyStatementError,
    InvalidColumnDefinitionError,
    InvalidSyntaxError,
    InvalidTypeError,
    UnsupportedStatementError,
)
from tinyrdbms.query.literals import split_assignment, split_keyword, split_top_level
from tinyrdbms.query.statements import (
    BeginStatement,
    ColumnDefinition,
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

logger = logging.getLogger("tinyrdbms.query.parser")

_FLAGS = re.IGNORECASE | re.DOTALL

_TRAILING_SEMICOLON = re.compile(r";\s*$")
_LEADING_KEYWORDS = re.compile(r"^([A-Za-z]+)(?:\s+([A-Za-z]+))?")
_IDENTIFIER = re.compile(r"^\w+$")

_SELECT = re.compile(r"SELECT\s+(.+?)\s+FROM\s+(\w+)(?:\s+WHERE\s+(.+))?", _FLAGS)
_INSERT = re.compile(r"INSERT\s+INTO\s+(\w+)\s*\((.+?)\)\s*VALUES\s*\((.+)\)", _FLAGS)
_UPDATE = re.compile(r"UPDATE\s+(\w+)\s+SET\s+(.+)", _FLAGS)
_DELETE = re.compile(r"DELETE\s+FROM\s+(\w+)(?:\s+WHERE\s+(.+))?", _FLAGS)
_CREATE_TABLE = re.compile(r"CREATE\s+TABLE\s+(\w+)\s*\((.+)\)", _FLAGS)
_CREATE_DATABASE = re.compile(r"CREATE\s+DATABASE\s+(IF\s+NOT\s+EXISTS\s+)?(\w+)", _FLAGS)
_DROP_DATABASE = re.compile(r"DROP\s+DATABASE\s+(\w+)", _FLAGS)
_DROP_TABLE = re.compile(r"DROP\s+TABLE\s+(\w+)", _FLAGS)
_USE = re.compile(r"USE\s+(\w+)", _FLAGS)
_SCOPES = "|".join(sorted(PERMISSION_SCOPES))
_GRANT = re.compile(rf"GRANT\s+(\w+)\s+ON\s+({_SCOPES})\s+(\w+)\s+TO\s+(\w+)", _FLAGS)
_REVOKE = re.compile(rf"REVOKE\s+(\w+)\s+ON\s+({_SCOPES})\s+(\w+)\s+FROM\s+(\w+)", _FLAGS)
_BEGIN = re.compile(r"BEGIN(?:\s+(?:TRANSACTION|WORK))?", _FLAGS)
_COMMIT = re.compile(r"COMMIT(?:\s+(?:TRANSACTION|WORK))?", _FLAGS)
_ROLLBACK = re.compile(r"ROLLBACK(?:\s+(?:TRANSACTION|WORK))?", _FLAGS)

_COLUMN_NAME = re.compile(r"^(\w+)\s*(.*)$", re.DOTALL)
_COLUMN_TYPE = re.compile(r"^\w+(?:\s*\([^)]*\))?")
_PRIMARY_KEY = re.compile(r"PRIMARY\s+KEY", re.IGNORECASE)

USAGE = {
    "SELECT": "SELECT <columns> FROM <table> [WHERE <condition>]",
    "INSERT": "INSERT INTO <table> (<columns>) VALUES (<values>)",
    "UPDATE": "UPDATE <table> SET <column> = <value>[, ...] [WHERE <condition>]",
    "DELETE": "DELETE FROM <table> [WHERE <condition>]",
    "CREATE TABLE": "CREATE TABLE <table> (<column> <TYPE>[(len|p,s)] [PRIMARY KEY], ...)",
    "CREATE DATABASE": "CREATE DATABASE [IF NOT EXISTS] <name>",
    "DROP DATABASE": "DROP DATABASE <name>",
    "DROP TABLE": "DROP TABLE <name>",
    "USE": "USE <name>",
    "GRANT": "GRANT <privilege> ON TABLE|DATABASE <name> TO <user>",
    "REVOKE": "REVOKE <privilege> ON TABLE|DATABASE <name> FROM <user>",
    "BEGIN": "BEGIN",
    "COMMIT": "COMMIT",
    "ROLLBACK": "ROLLBACK",
}


def normalize(text: str) -> str:
    """Trim and strip one trailing semicolon."""
    return _TRAILING_SEMICOLON.sub("", text.strip()).strip()


def classify(text: str) -> str:
    """
    Determine the statement kind from its leading keyword(s).

    Args:
        text: Normalized statement text

    Returns:
        One of SUPPORTED_STATEMENTS

    Raises:
        EmptyStatementError: If the text is blank
        UnsupportedStatementError: If the keyword is not supported
    """
    if not text:
        raise EmptyStatementError()

    match = _LEADING_KEYWORDS.match(text)
    if match is None:
        raise UnsupportedStatementError(text.split()[0], SUPPORTED_STATEMENTS)

    first = match.group(1).upper()
    if first in ("CREATE", "DROP"):
        second = (match.group(2) or "").upper()
        kind = f"{first} {second}".strip()
    else:
        kind = first

    if kind not in SUPPORTED_STATEMENTS:
        raise UnsupportedStatementError(kind, SUPPORTED_STATEMENTS)
    return kind


def _match(pattern: re.Pattern, text: str, kind: str) -> re.Match:
    match = pattern.fullmatch(text)
    if match is None:
        raise InvalidSyntaxError(kind, USAGE[kind])
    return match


def _identifiers(text: str, kind: str) -> tuple[str, ...]:
    names = tuple(split_top_level(text))
    if not names:
        raise InvalidSyntaxError(kind, USAGE[kind], reason="empty column list")
    return names


def parse_select(text: str) -> SelectStatement:
    match = _match(_SELECT, text, "SELECT")
    columns = _identifiers(match.group(1), "SELECT")
    if "*" in columns:
        if len(columns) != 1:
            raise InvalidSyntaxError("SELECT", USAGE["SELECT"], reason="'*' cannot be combined with columns")
        selected = None
    else:
        selected = columns
    condition = match.group(3).strip() if match.group(3) else None
    return SelectStatement(table=match.group(2), columns=selected, condition=condition)


def parse_insert(text: str) -> InsertStatement:
    match = _match(_INSERT, text, "INSERT")
    columns = _identifiers(match.group(2), "INSERT")
    values = tuple(split_top_level(match.group(3)))
    if len(values) != len(columns):
        raise InvalidSyntaxError(
            "INSERT",
            reason=f"{len(columns)} column(s) but {len(values)} value(s)",
        )
    return InsertStatement(table=match.group(1), columns=columns, values=values)


def parse_update(text: str) -> UpdateStatement:
    match = _match(_UPDATE, text, "UPDATE")
    set_clause, where_clause = split_keyword(match.group(2), "WHERE")
    assignments = []
    for expression in split_top_level(set_clause):
        pair = split_assignment(expression)
        if pair is None or not _IDENTIFIER.match(pair[0]):
            raise InvalidSyntaxError(
                "UPDATE", USAGE["UPDATE"], reason=f"bad assignment '{expression}'"
            )
        assignments.append(pair)
    if not assignments:
        raise InvalidSyntaxError("UPDATE", USAGE["UPDATE"])
    condition = where_clause.strip() if where_clause else None
    return UpdateStatement(
        table=match.group(1), assignments=tuple(assignments), condition=condition
    )


def parse_delete(text: str) -> DeleteStatement:
    match = _match(_DELETE, text, "DELETE")
    condition = match.group(2).strip() if match.group(2) else None
    return DeleteStatement(table=match.group(1), condition=condition)


def parse_column_definition(definition: str) -> ColumnDefinition:
    """
    Parse ``name TYPE[(args)] [PRIMARY KEY]``.

    PRIMARY KEY is detected anywhere in the definition.
    """
    match = _COLUMN_NAME.match(definition)
    if match is None:
        raise InvalidColumnDefinitionError(definition)
    name, rest = match.group(1), match.group(2).strip()
    if not rest:
        raise InvalidColumnDefinitionError(name, reason="Missing type for column")
    type_match = _COLUMN_TYPE.match(rest)
    if type_match is None:
        raise InvalidTypeError(name, rest)
    return ColumnDefinition(
        name=name,
        type_text=type_match.group(0),
        is_primary_key=_PRIMARY_KEY.search(definition) is not None,
    )


def parse_create_table(text: str) -> CreateTableStatement:
    match = _match(_CREATE_TABLE, text, "CREATE TABLE")
    definitions = split_top_level(match.group(2))
    if not definitions:
        raise InvalidColumnDefinitionError(match.group(2).strip(), reason="No columns defined")
    columns = tuple(parse_column_definition(d) for d in definitions)
    return CreateTableStatement(table=match.group(1), columns=columns)


def parse_create_database(text: str) -> CreateDatabaseStatement:
    match = _match(_CREATE_DATABASE, text, "CREATE DATABASE")
    return CreateDatabaseStatement(name=match.group(2), if_not_exists=match.group(1) is not None)


def parse_grant(text: str) -> GrantStatement:
    match = _match(_GRANT, text, "GRANT")
    privilege, scope, name, user = match.groups()
    return GrantStatement(privilege=privilege, scope_type=scope.upper(), name=name, user=user)


def parse_revoke(text: str) -> RevokeStatement:
    match = _match(_REVOKE, text, "REVOKE")
    privilege, scope, name, user = match.groups()
    return RevokeStatement(privilege=privilege, scope_type=scope.upper(), name=name, user=user)


def parse_statement(text: str) -> Statement:
    """
    Parse statement text into a structured intent.

    Args:
        text: Raw statement text

    Returns:
        One of the statement dataclasses

    Raises:
        EmptyStatementError, UnsupportedStatementError, InvalidSyntaxError,
        InvalidColumnDefinitionError, InvalidTypeError
    """
    sanitized = normalize(text)
    kind = classify(sanitized)
    logger.debug("Classified statement as %s", kind)

    if kind == "SELECT":
        return parse_select(sanitized)
    if kind == "INSERT":
        return parse_insert(sanitized)
    if kind == "UPDATE":
        return parse_update(sanitized)
    if kind == "DELETE":
        return parse_delete(sanitized)
    if kind == "CREATE TABLE":
        return parse_create_table(sanitized)
    if kind == "CREATE DATABASE":
        return parse_create_database(sanitized)
    if kind == "DROP DATABASE":
        return DropDatabaseStatement(name=_match(_DROP_DATABASE, sanitized, kind).group(1))
    if kind == "DROP TABLE":
        return DropTableStatement(name=_match(_DROP_TABLE, sanitized, kind).group(1))
    if kind == "USE":
        return UseStatement(name=_match(_USE, sanitized, kind).group(1))
    if kind == "GRANT":
        return parse_grant(sanitized)
    if kind == "REVOKE":
        return parse_revoke(sanitized)
    if kind == "BEGIN":
        _match(_BEGIN, sanitized, kind)
        return BeginStatement()
    if kind == "COMMIT":
        _match(_COMMIT, sanitized, kind)
        return CommitStatement()
    _match(_ROLLBACK, sanitized, kind)
    return RollbackStatement()
