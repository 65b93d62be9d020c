"""
conftest.py - pytest fixtures for tinyrdbms tests.
"""

import os
import tempfile

import pytest

from tinyrdbms import Interpreter, Session, TransactionMode
from tinyrdbms.storage import MemorySnapshotStack, MemoryStore, SqliteStorage


@pytest.fixture
def temp_dir():
    """Create a temporary directory for store files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def snapshots():
    return MemorySnapshotStack()


@pytest.fixture
def changes():
    """Records every on_data_changed notification."""
    return []


@pytest.fixture
def interpreter(store, snapshots, changes):
    """Interpreter with literal transaction semantics over memory storage."""
    return Interpreter(store, snapshots, on_data_changed=changes.append)


@pytest.fixture
def scoped_interpreter(store, snapshots, changes):
    return Interpreter(
        store, snapshots, on_data_changed=changes.append, mode=TransactionMode.SCOPED
    )


@pytest.fixture
def session(interpreter):
    """Session with an empty database 'shop' selected."""
    session = Session(interpreter)
    session.execute("CREATE DATABASE shop")
    return session


@pytest.fixture
def products(session):
    """Session whose 'shop' database holds a populated products table."""
    session.execute(
        "CREATE TABLE products (id INT PRIMARY KEY, name VARCHAR(20), "
        "price DECIMAL(10,2), active BOOLEAN)"
    )
    session.execute("INSERT INTO products (id, name, price, active) VALUES (1, 'apple', 1.5, true)")
    session.execute("INSERT INTO products (id, name, price, active) VALUES (2, 'pear', 2.25, false)")
    session.execute("INSERT INTO products (id, name, price, active) VALUES (3, 'plum', 0.75, true)")
    return session


@pytest.fixture
def scoped_session(scoped_interpreter):
    session = Session(scoped_interpreter)
    session.execute("CREATE DATABASE shop")
    session.execute("CREATE TABLE items (n INT)")
    return session


@pytest.fixture
def storage(temp_dir):
    """SQLite file storage in a temp directory."""
    storage = SqliteStorage(os.path.join(temp_dir, "store.db"))
    yield storage
    storage.close()
