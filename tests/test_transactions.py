"""
test_transactions.py - Tests for snapshot undo and BEGIN/COMMIT/ROLLBACK.

Both transaction modes are covered:
- literal: one snapshot per mutation, COMMIT clears everything,
  ROLLBACK pops exactly one snapshot
- scoped: COMMIT and ROLLBACK act on the snapshots taken since the
  matching BEGIN
"""

import pytest

from tinyrdbms.errors import ColumnNotFoundError
from tinyrdbms.models import Database, DatabaseSet
from tinyrdbms.storage import MemorySnapshotStack
from tinyrdbms.transactions import TransactionManager, TransactionMode


def row_count(session, table="products"):
    return len(session.execute(f"SELECT * FROM {table}").rows)


def numbers(session):
    return session.execute("SELECT n FROM items").values("n")


class TestLiteralMode:
    """Original semantics: a single stack of everything."""

    def test_each_mutation_pushes_one_snapshot(self, products, snapshots):
        # CREATE DATABASE, CREATE TABLE, three INSERTs
        assert len(snapshots) == 5
        products.execute("UPDATE products SET price = 0")
        assert len(snapshots) == 6

    def test_reads_and_use_do_not_snapshot(self, products, snapshots):
        products.execute("SELECT * FROM products")
        products.execute("USE shop")
        assert len(snapshots) == 5

    def test_rollback_undoes_last_statement(self, products):
        result = products.execute("ROLLBACK")
        assert result.message == "Rolled back to previous state"
        assert row_count(products) == 2

    def test_begin_insert_rollback_restores_row_count(self, products):
        before = row_count(products)
        products.execute("BEGIN")
        products.execute("INSERT INTO products (id) VALUES (4)")
        products.execute("ROLLBACK")
        assert row_count(products) == before

    def test_rollback_pops_exactly_one(self, products):
        before = row_count(products)
        products.execute("BEGIN")
        products.execute("INSERT INTO products (id) VALUES (4)")
        products.execute("INSERT INTO products (id) VALUES (5)")

        products.execute("ROLLBACK")
        assert row_count(products) == before + 1
        products.execute("ROLLBACK")
        assert row_count(products) == before

        # The BEGIN snapshot is still on the stack, then the third INSERT's
        products.execute("ROLLBACK")
        assert row_count(products) == before
        products.execute("ROLLBACK")
        assert row_count(products) == before - 1

    def test_commit_clears_whole_stack(self, products, snapshots):
        products.execute("BEGIN")
        products.execute("BEGIN")
        products.execute("INSERT INTO products (id) VALUES (4)")
        assert products.execute("COMMIT").message == "Transaction committed"
        assert len(snapshots) == 0
        assert products.execute("ROLLBACK").message == "Nothing to rollback"
        assert row_count(products) == 4

    def test_nested_begin_stacks(self, products, snapshots):
        products.execute("BEGIN")
        products.execute("BEGIN")
        assert len(snapshots) == 7

    def test_failed_statement_leaves_its_snapshot(self, products, snapshots):
        with pytest.raises(ColumnNotFoundError):
            products.execute("INSERT INTO products (colour) VALUES ('red')")
        assert len(snapshots) == 6
        products.execute("ROLLBACK")
        assert row_count(products) == 3

    def test_rollback_past_database_creation_clears_selection(self, session, changes):
        result = session.execute("ROLLBACK")
        assert result.active_database_id is None
        assert session.active_database_id is None
        assert changes[-1] is None
        assert len(session.interpreter.store.load()) == 0

    def test_rollback_notifies_with_restored_database(self, products, changes):
        products.execute("ROLLBACK")
        assert changes[-1].name == "shop"
        assert len(changes[-1].find_table("products").rows) == 2


class TestScopedMode:
    """Transaction-scoped rollback points."""

    def test_rollback_outside_transaction_undoes_last_statement(self, scoped_session):
        scoped_session.execute("INSERT INTO items (n) VALUES (1)")
        scoped_session.execute("INSERT INTO items (n) VALUES (2)")
        scoped_session.execute("ROLLBACK")
        assert numbers(scoped_session) == [1]

    def test_rollback_returns_to_begin_in_one_step(self, scoped_session, snapshots):
        depth = len(snapshots)
        scoped_session.execute("INSERT INTO items (n) VALUES (1)")
        scoped_session.execute("BEGIN")
        scoped_session.execute("INSERT INTO items (n) VALUES (2)")
        scoped_session.execute("INSERT INTO items (n) VALUES (3)")

        scoped_session.execute("ROLLBACK")
        assert numbers(scoped_session) == [1]
        assert not scoped_session.interpreter.transactions.in_transaction
        assert len(snapshots) == depth + 1

    def test_commit_discards_only_transaction_snapshots(self, scoped_session, snapshots):
        scoped_session.execute("INSERT INTO items (n) VALUES (1)")
        depth = len(snapshots)
        scoped_session.execute("BEGIN")
        scoped_session.execute("INSERT INTO items (n) VALUES (2)")
        scoped_session.execute("COMMIT")
        assert len(snapshots) == depth
        assert numbers(scoped_session) == [1, 2]

        # Earlier rollback points survive the commit
        scoped_session.execute("ROLLBACK")
        assert numbers(scoped_session) == []

    def test_commit_without_transaction(self, scoped_session, snapshots):
        depth = len(snapshots)
        assert scoped_session.execute("COMMIT").message == "No transaction in progress"
        assert len(snapshots) == depth

    def test_nested_transactions(self, scoped_session, snapshots):
        depth = len(snapshots)
        scoped_session.execute("BEGIN")
        scoped_session.execute("INSERT INTO items (n) VALUES (1)")
        scoped_session.execute("BEGIN")
        scoped_session.execute("INSERT INTO items (n) VALUES (2)")

        scoped_session.execute("ROLLBACK")
        assert numbers(scoped_session) == [1]
        assert scoped_session.interpreter.transactions.in_transaction

        scoped_session.execute("COMMIT")
        assert numbers(scoped_session) == [1]
        assert not scoped_session.interpreter.transactions.in_transaction
        assert len(snapshots) == depth


class TestTransactionManager:
    def setup_method(self):
        self.stack = MemorySnapshotStack()
        self.state = DatabaseSet([Database(id="d1", name="one")])

    def test_mode_from_string(self):
        assert TransactionManager(self.stack, "scoped").mode is TransactionMode.SCOPED

    def test_literal_pop_forgets_consumed_begin(self):
        manager = TransactionManager(self.stack)
        manager.begin(self.state)
        assert manager.in_transaction
        restored = manager.rollback()
        assert restored.get("d1").name == "one"
        assert not manager.in_transaction

    def test_rollback_on_empty_stack(self):
        for mode in TransactionMode:
            assert TransactionManager(MemorySnapshotStack(), mode).rollback() is None

    def test_snapshots_are_independent_copies(self):
        manager = TransactionManager(self.stack)
        manager.snapshot(self.state)
        self.state.databases[0].name = "changed"
        assert manager.rollback().get("d1").name == "one"
