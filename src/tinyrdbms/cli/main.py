import logging
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tinyrdbms.config import DEFAULT_TRANSACTION_MODE
from tinyrdbms.editing import TableEditor
from tinyrdbms.engine import Interpreter, Session
from tinyrdbms.errors import DatabaseNotFoundError, NoActiveDatabaseError, QueryError
from tinyrdbms.metrics import configure_logging, get_registry
from tinyrdbms.query.executor import QueryResult
from tinyrdbms.search import cell_text, search as search_databases
from tinyrdbms.storage.sqlite import SqliteStorage, SqliteStore
from tinyrdbms.transactions import TransactionMode

app = typer.Typer(help="tinyrdbms - embedded SQL-like interpreter")
console = Console()
logger = logging.getLogger("tinyrdbms.cli")

EXIT_COMMANDS = ("exit", "quit", "\\q")
METRICS_COMMAND = "\\metrics"


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines"),
):
    """Run statements against a SQLite-file backed store."""
    configure_logging(level=log_level, json_format=json_logs)


def _resolve_selection(store: SqliteStore, use: Optional[str]) -> str | None:
    if use is None:
        return store.load_selection()
    database = store.load().find(use)
    if database is None:
        raise DatabaseNotFoundError(use)
    return database.id


def _require_selection(store: SqliteStore, use: Optional[str]) -> str:
    selection = _resolve_selection(store, use)
    if store.load().get(selection) is None:
        raise NoActiveDatabaseError(selection)
    return selection


def _fail(error: QueryError) -> None:
    logger.debug("Command failed: %s", error)
    console.print(f"[red]{error.kind}: {escape(error.message)}[/red]")
    raise typer.Exit(code=1)


def render_result(result: QueryResult) -> None:
    if result.is_select:
        table = Table()
        for column in result.columns:
            table.add_column(column.name, style="cyan")
        for record in result.records():
            table.add_row(*(escape(cell_text(v)) for v in record.values()))
        console.print(table)
    console.print(f"[green]{escape(result.message)}[/green]")


@app.command("exec")
def exec_statement(
    db_file: str = typer.Argument(..., help="Path to the store file"),
    sql: str = typer.Argument(..., help="Statement to execute"),
    use: Optional[str] = typer.Option(None, "--use", "-u", help="Database to run against"),
    mode: TransactionMode = typer.Option(TransactionMode(DEFAULT_TRANSACTION_MODE), "--mode", help="Transaction semantics"),
):
    """Execute one statement."""
    with SqliteStorage(db_file) as storage:
        store = storage.store
        try:
            session = Session(
                Interpreter(store, storage.snapshots, mode=mode),
                _resolve_selection(store, use),
            )
            result = session.execute(sql)
        except QueryError as e:
            _fail(e)
        store.save_selection(session.active_database_id)
        render_result(result)


@app.command()
def shell(
    db_file: str = typer.Argument(..., help="Path to the store file"),
    mode: TransactionMode = typer.Option(TransactionMode(DEFAULT_TRANSACTION_MODE), "--mode", help="Transaction semantics"),
):
    """Interactive prompt; one statement per line."""
    with SqliteStorage(db_file) as storage:
        store = storage.store
        session = Session(Interpreter(store, storage.snapshots, mode=mode), store.load_selection())
        console.print("[bold]tinyrdbms shell[/bold] - type 'exit' to leave")

        while True:
            active = session.active_database
            prompt = f"{active.name if active else 'tinyrdbms'}> "
            try:
                line = console.input(prompt)
            except (EOFError, KeyboardInterrupt):
                break

            text = line.strip()
            if not text:
                continue
            if text.lower() in EXIT_COMMANDS:
                break
            if text.lower() == METRICS_COMMAND:
                console.print(
                    get_registry().export_prometheus(),
                    markup=False,
                    highlight=False,
                    soft_wrap=True,
                    end="",
                )
                continue

            try:
                result = session.execute(text)
            except QueryError as e:
                console.print(f"[red]{e.kind}: {escape(e.message)}[/red]")
                continue
            store.save_selection(session.active_database_id)
            render_result(result)


@app.command()
def databases(db_file: str = typer.Argument(..., help="Path to the store file")):
    """List databases."""
    with SqliteStorage(db_file) as storage:
        store = storage.store
        database_set = store.load()
        selection = store.load_selection()

        if not len(database_set):
            console.print("[yellow]No databases.[/yellow]")
            return

        table = Table(title="Databases")
        table.add_column("Name", style="cyan")
        table.add_column("Tables", justify="right")
        table.add_column("Active", justify="center")
        for database in database_set:
            table.add_row(
                database.name,
                str(len(database.tables)),
                "*" if database.id == selection else "",
            )
        console.print(table)


@app.command()
def tables(
    db_file: str = typer.Argument(..., help="Path to the store file"),
    use: Optional[str] = typer.Option(None, "--use", "-u", help="Database to list"),
):
    """List the tables of the active database."""
    with SqliteStorage(db_file) as storage:
        store = storage.store
        try:
            database = store.load().get(_require_selection(store, use))
        except QueryError as e:
            _fail(e)

        table = Table(title=f"Tables in {database.name}")
        table.add_column("Name", style="cyan")
        table.add_column("Columns", justify="right")
        table.add_column("Rows", justify="right")
        for entry in database.tables:
            table.add_row(entry.name, str(len(entry.columns)), str(len(entry.rows)))
        console.print(table)


@app.command()
def stats(
    db_file: str = typer.Argument(..., help="Path to the store file"),
    table_name: str = typer.Argument(..., help="Table to summarize"),
    use: Optional[str] = typer.Option(None, "--use", "-u", help="Database holding the table"),
):
    """Show per-column statistics for a table."""
    with SqliteStorage(db_file) as storage:
        store = storage.store
        try:
            summary = TableEditor(store).table_stats(_require_selection(store, use), table_name)
        except QueryError as e:
            _fail(e)

        table = Table(title=f"{summary.table} ({summary.row_count} rows)")
        table.add_column("Column", style="cyan")
        table.add_column("Type")
        table.add_column("Summary")
        for column in summary.columns:
            table.add_row(column.name, column.base_type, column.summary)
        console.print(table)


@app.command("search")
def search_command(
    db_file: str = typer.Argument(..., help="Path to the store file"),
    term: str = typer.Argument(..., help="Text to look for, case-insensitively"),
):
    """Search every database, table, column and row."""
    with SqliteStorage(db_file) as storage:
        matches = search_databases(storage.store.load(), term)

    if not matches:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(title=f"Matches for '{escape(term)}'")
    table.add_column("Type", style="cyan")
    table.add_column("Location")
    table.add_column("Value")
    for match in matches:
        location = ".".join(p for p in (match.database, match.table, match.column) if p)
        table.add_row(match.type, escape(location), escape(match.value or ""))
    console.print(table)


if __name__ == "__main__":
    app()
