"""
query - Statement parsing and execution.
"""

from tinyrdbms.query.executor import Executor, QueryResult
from tinyrdbms.query.literals import parse_literal, split_top_level
from tinyrdbms.query.parser import classify, normalize, parse_statement
from tinyrdbms.query.predicate import Condition, filter_rows, parse_condition
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

__all__ = [
    # parsing
    "normalize",
    "classify",
    "parse_statement",
    "parse_literal",
    "split_top_level",
    "Condition",
    "parse_condition",
    "filter_rows",
    # execution
    "Executor",
    "QueryResult",
    # statements
    "Statement",
    "SelectStatement",
    "InsertStatement",
    "UpdateStatement",
    "DeleteStatement",
    "ColumnDefinition",
    "CreateTableStatement",
    "CreateDatabaseStatement",
    "DropDatabaseStatement",
    "DropTableStatement",
    "UseStatement",
    "GrantStatement",
    "RevokeStatement",
    "BeginStatement",
    "CommitStatement",
    "RollbackStatement",
]
