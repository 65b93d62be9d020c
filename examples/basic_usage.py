import os

from tinyrdbms import Interpreter, Session
from tinyrdbms.storage import SqliteStorage


def run_example():
    db_path = "example_basic.db"
    if os.path.exists(db_path):
        os.remove(db_path)

    print("--- tinyrdbms: Basic Example ---")

    # 1. Open a file-backed store
    with SqliteStorage(db_path) as storage:
        session = Session(Interpreter(storage.store, storage.snapshots))

        # 2. Create a database and a table
        print(session.execute("CREATE DATABASE todo").message)
        print(session.execute(
            "CREATE TABLE tasks (id INT PRIMARY KEY, title VARCHAR(40), done BOOLEAN)"
        ).message)

        # 3. Insert and update rows
        session.execute("INSERT INTO tasks (id, title, done) VALUES (1, 'Write parser', false)")
        session.execute("INSERT INTO tasks (id, title, done) VALUES (2, 'Write tests', false)")
        print(session.execute("UPDATE tasks SET done = true WHERE id = 1").message)

        # 4. Undo the last statement
        print(session.execute("ROLLBACK").message)

        # 5. Query
        result = session.execute("SELECT title, done FROM tasks")
        for record in result.records():
            print(f"  {record['title']}: {'done' if record['done'] else 'open'}")

    print("\nExample finished. Store saved to", db_path)


if __name__ == "__main__":
    run_example()
