"""
test_executor.py - Tests for statement execution.

Covers each statement kind's contract, the schema errors it raises,
and the observable properties of a SQL session (column order, row
round-trips, case-insensitive names, notifications).
"""

import pytest

from tinyrdbms import Session, TableEditor
from tinyrdbms.errors import (
    ColumnNotFoundError,
    DatabaseAlreadyExistsError,
    DatabaseNotFoundError,
    DuplicateColumnNameError,
    EmptyStatementError,
    InvalidConditionError,
    NoActiveDatabaseError,
    TableAlreadyExistsError,
    TableNotFoundError,
    UnsupportedStatementError,
)
from tinyrdbms.metrics import statements_total


def table_of(session, name):
    return session.active_database.find_table(name)


class TestSelect:
    def test_star_returns_declared_columns_in_order(self, session):
        session.execute("CREATE TABLE t (z TEXT, a INT, m BOOLEAN, d DATE)")
        result = session.execute("SELECT * FROM t")
        assert result.is_select
        assert [c.name for c in result.columns] == ["z", "a", "m", "d"]
        assert result.rows == []
        assert result.message == "0 row(s) returned"

    def test_explicit_columns_keep_requested_order(self, products):
        result = products.execute("SELECT price, name FROM products WHERE id = 1")
        assert [c.name for c in result.columns] == ["price", "name"]
        assert result.records() == [{"price": 1.5, "name": "apple"}]

    def test_unknown_column(self, products):
        with pytest.raises(ColumnNotFoundError):
            products.execute("SELECT colour FROM products")

    def test_unknown_where_column(self, products):
        with pytest.raises(ColumnNotFoundError):
            products.execute("SELECT * FROM products WHERE colour = 'red'")

    def test_compound_where_rejected(self, products):
        with pytest.raises(InvalidConditionError):
            products.execute("SELECT * FROM products WHERE id = 1 AND price > 1")

    def test_missing_table_leaves_snapshots_alone(self, products, snapshots):
        depth = len(snapshots)
        with pytest.raises(TableNotFoundError):
            products.execute("SELECT name FROM missingTable")
        assert len(snapshots) == depth

    def test_table_names_are_case_insensitive(self, session):
        session.execute("CREATE TABLE T (a INT)")
        session.execute("INSERT INTO T (a) VALUES (1)")
        assert session.execute("select * from T").values("a") == [1]
        assert session.execute("SELECT * FROM t").values("a") == [1]

    def test_rows_are_copies(self, products):
        result = products.execute("SELECT * FROM products")
        result.rows.clear()
        assert len(products.execute("SELECT * FROM products").rows) == 3

    def test_select_does_not_notify(self, products, changes):
        count = len(changes)
        products.execute("SELECT * FROM products")
        assert len(changes) == count


class TestInsert:
    def test_row_appears_once_under_column_ids(self, session):
        session.execute("CREATE TABLE t (a INT, b TEXT)")
        result = session.execute("INSERT INTO t (a, b) VALUES (7, 'seven')")
        assert result.message == "1 row inserted successfully"

        table = table_of(session, "t")
        a, b = table.columns
        assert len(table.rows) == 1
        row = table.rows[0]
        assert row[a.id] == 7
        assert row[b.id] == "seven"
        assert row["id"]

    def test_literals_are_not_coerced(self, products):
        products.execute("INSERT INTO products (id, name, active) VALUES ('9', 'fig', 'yes')")
        record = products.execute("SELECT * FROM products WHERE name = 'fig'").records()[0]
        assert record == {"id": "9", "name": "fig", "price": None, "active": "yes"}

    def test_unknown_column(self, products):
        with pytest.raises(ColumnNotFoundError):
            products.execute("INSERT INTO products (id, colour) VALUES (4, 'red')")
        assert len(table_of(products, "products").rows) == 3

    def test_unknown_table(self, session):
        with pytest.raises(TableNotFoundError):
            session.execute("INSERT INTO nowhere (a) VALUES (1)")

    def test_notifies_with_active_database(self, products, changes):
        products.execute("INSERT INTO products (id) VALUES (4)")
        assert changes[-1].name == "shop"


class TestUpdateDelete:
    def test_round_trip(self, session):
        session.execute("CREATE TABLE t (a INT, b VARCHAR(10))")
        session.execute("INSERT INTO t (a,b) VALUES (5,'x')")
        result = session.execute("UPDATE t SET a=6 WHERE a=5")
        assert result.message == "1 row(s) updated successfully"
        assert session.execute("SELECT a FROM t").values("a") == [6]

    def test_integer_literal_wider_than_64_bits(self, products):
        big = "99999999999999999999999"
        products.execute(f"INSERT INTO products (id, name) VALUES ({big}, 'big')")
        assert products.execute(f"SELECT name FROM products WHERE id = {big}").values("name") == ["big"]

        products.execute(f"UPDATE products SET price = -{big} WHERE name = 'big'")
        record = products.execute("SELECT id, price FROM products WHERE name = 'big'").records()[0]
        assert record == {"id": 1e23, "price": -1e23}
        assert products.execute(f"SELECT name FROM products WHERE id >= {big}").values("name") == ["big"]

    def test_update_keeps_where_inside_quoted_value(self, products):
        products.execute("UPDATE products SET name = 'x where y' WHERE id = 2")
        assert products.execute("SELECT name FROM products").values("name") == [
            "apple",
            "x where y",
            "plum",
        ]

    def test_update_all_rows(self, products):
        result = products.execute("UPDATE products SET active = false, price = 1")
        assert result.affected == 3
        assert products.execute("SELECT active FROM products").values("active") == [False] * 3

    def test_update_unknown_column(self, products):
        with pytest.raises(ColumnNotFoundError):
            products.execute("UPDATE products SET colour = 'red'")

    def test_delete_without_match(self, products):
        before = products.execute("SELECT * FROM products").rows
        result = products.execute("DELETE FROM products WHERE id = 999")
        assert result.message == "0 row(s) deleted successfully"
        assert result.affected == 0
        assert products.execute("SELECT * FROM products").rows == before

    def test_delete_with_condition(self, products):
        result = products.execute("DELETE FROM products WHERE price < 2")
        assert result.affected == 2
        assert products.execute("SELECT name FROM products").values("name") == ["pear"]

    def test_delete_all(self, products):
        assert products.execute("DELETE FROM products").affected == 3
        assert products.execute("SELECT * FROM products").rows == []


class TestTables:
    def test_create_table_records_types(self, session):
        result = session.execute(
            "CREATE TABLE t (id INT PRIMARY KEY, price DECIMAL(10,2), name VARCHAR(5), misc BLOB)"
        )
        assert result.message == "Table 't' created successfully"
        table = table_of(session, "t")
        id_col, price, name, misc = table.columns
        assert id_col.is_primary_key and not price.is_primary_key
        assert (price.base_type, price.precision, price.scale) == ("number", 10, 2)
        assert (name.base_type, name.length, name.original_type) == ("text", 5, "VARCHAR(5)")
        assert misc.base_type == "text"
        assert len({c.id for c in table.columns}) == 4

    def test_duplicate_table_case_insensitive(self, products):
        with pytest.raises(TableAlreadyExistsError):
            products.execute("CREATE TABLE PRODUCTS (a INT)")

    def test_duplicate_column_names(self, session):
        with pytest.raises(DuplicateColumnNameError):
            session.execute("CREATE TABLE t (a INT, A TEXT)")
        assert table_of(session, "t") is None

    def test_drop_table(self, products, changes):
        assert products.execute("DROP TABLE Products").message == "Table 'Products' dropped"
        assert table_of(products, "products") is None
        assert changes[-1].tables == []

    def test_drop_missing_table(self, session):
        with pytest.raises(TableNotFoundError):
            session.execute("DROP TABLE ghost")


class TestDatabases:
    def test_create_selects_new_database(self, interpreter, changes):
        result = interpreter.execute("CREATE DATABASE shop")
        assert result.message == "Database 'shop' created"
        assert result.active_database_id is not None
        assert changes[-1].id == result.active_database_id

    def test_duplicate_database(self, session):
        with pytest.raises(DatabaseAlreadyExistsError):
            session.execute("CREATE DATABASE SHOP")

    def test_if_not_exists_is_benign(self, session, snapshots):
        depth = len(snapshots)
        result = session.execute("CREATE DATABASE IF NOT EXISTS shop")
        assert result.message == "Database 'shop' already exists"
        assert len(snapshots) == depth
        assert len(session.interpreter.store.load()) == 1

    def test_use_switches_without_snapshot(self, session, snapshots, changes):
        first = session.active_database_id
        session.execute("CREATE DATABASE archive")
        assert session.active_database_id != first

        depth = len(snapshots)
        result = session.execute("use shop")
        assert result.message == "Using database 'shop'"
        assert session.active_database_id == first
        assert len(snapshots) == depth
        assert changes[-1].name == "shop"

    def test_use_missing(self, session):
        with pytest.raises(DatabaseNotFoundError):
            session.execute("USE ghost")

    def test_drop_active_database_clears_selection(self, session):
        result = session.execute("DROP DATABASE shop")
        assert result.message == "Database 'shop' dropped"
        assert session.active_database_id is None
        with pytest.raises(NoActiveDatabaseError):
            session.execute("SELECT * FROM t")

    def test_drop_other_database_keeps_selection(self, session):
        session.execute("CREATE DATABASE archive")
        active = session.active_database_id
        session.execute("DROP DATABASE shop")
        assert session.active_database_id == active

    def test_drop_missing(self, session):
        with pytest.raises(DatabaseNotFoundError):
            session.execute("DROP DATABASE ghost")


class TestActiveDatabase:
    def test_scoped_statements_need_a_selection(self, interpreter):
        with pytest.raises(NoActiveDatabaseError):
            interpreter.execute("CREATE TABLE t (a INT)")

    def test_stale_selection(self, interpreter):
        with pytest.raises(NoActiveDatabaseError):
            interpreter.execute("SELECT * FROM t", "no-such-id")

    def test_unscoped_statements_run_without_selection(self, interpreter):
        assert interpreter.execute("BEGIN").message == "Transaction started"
        assert interpreter.execute("COMMIT").message == "Transaction committed"
        assert interpreter.execute("ROLLBACK").message == "Nothing to rollback"


class TestPermissions:
    def test_grant_and_revoke_are_logged(self, products):
        assert (
            products.execute("GRANT select ON TABLE products TO alice").message
            == "Granted SELECT on TABLE products to alice"
        )
        assert (
            products.execute("REVOKE SELECT ON TABLE products FROM alice").message
            == "Revoked SELECT on TABLE products from alice"
        )
        events = products.active_database.permissions
        assert [(e.action, e.user) for e in events] == [("GRANT", "alice"), ("REVOKE", "alice")]
        assert events[0].scope_type == "TABLE"

    def test_permissions_are_not_enforced(self, products):
        products.execute("REVOKE ALL ON DATABASE shop FROM anyone")
        assert len(products.execute("SELECT * FROM products").rows) == 3


class TestFormAndSqlPaths:
    """Text length limits apply to form entry but not to SQL literals."""

    def test_varchar_truncation_split(self, session):
        session.execute("CREATE TABLE t (a VARCHAR(3))")

        TableEditor(session.interpreter.store).add_row(
            session.active_database_id, "t", {"a": "abcdefghij"}
        )
        session.execute("INSERT INTO t (a) VALUES ('abcdefghij')")

        assert session.execute("SELECT a FROM t").values("a") == ["abc", "abcdefghij"]

    def test_wide_integer_from_form_entry(self, products):
        TableEditor(products.interpreter.store).add_row(
            products.active_database_id, "products", {"id": "99999999999999999999999", "name": "big"}
        )
        assert products.execute("SELECT id FROM products WHERE name = 'big'").values("id") == [1e23]


class TestDispatch:
    def test_unsupported_statement(self, session):
        with pytest.raises(UnsupportedStatementError):
            session.execute("TRUNCATE TABLE t")

    def test_empty_statement(self, interpreter):
        with pytest.raises(EmptyStatementError):
            interpreter.execute(";")

    def test_result_reports_kind(self, products):
        assert products.execute("SELECT * FROM products").kind == "SELECT"
        assert products.execute("DELETE FROM products WHERE id = 1").kind == "DELETE"

    def test_metrics_count_outcomes(self, products):
        ok_before = statements_total.get(kind="SELECT", status="ok")
        error_before = statements_total.get(kind="SELECT", status="error")

        products.execute("SELECT * FROM products")
        with pytest.raises(TableNotFoundError):
            products.execute("SELECT * FROM nowhere")

        assert statements_total.get(kind="SELECT", status="ok") == ok_before + 1
        assert statements_total.get(kind="SELECT", status="error") == error_before + 1

    def test_session_tracks_selection(self, interpreter):
        session = Session(interpreter)
        assert session.active_database is None
        session.execute("CREATE DATABASE a1")
        assert session.active_database.name == "a1"
