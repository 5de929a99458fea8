import logging
import os
import subprocess
import sys
from typing import NoReturn, Optional

import typer

from book_inventory.book import Book
from book_inventory.database import Database
from book_inventory.inventory import InventoryError, InventoryStore
from book_inventory.ui_helpers import set_output_mode, print_list_result, print_book_result
from config import settings

APP_NAME = "Book Inventory CLI"

app = typer.Typer(help=APP_NAME)

# Per-invocation options collected by the callback
_options = {"db_file": None}


def _get_store() -> InventoryStore:
    """Build a store on the selected database file, creating tables if needed."""
    database = Database(_options["db_file"] or settings.database_file, timeout=settings.database_timeout)
    database.initialize()
    return InventoryStore(database)


def _fail(error: InventoryError) -> NoReturn:
    print(f"Error: {error}")
    raise typer.Exit(code=1)


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    db: Optional[str] = typer.Option(None, "--db", help="SQLite file to use instead of INVENTORY_DB_FILE"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show inventory log messages"),
):
    """Global options for the CLI (output mode, database file)."""
    logging.basicConfig(level=settings.log_level if verbose else logging.WARNING)
    if output:
        set_output_mode(output)
    _options["db_file"] = db


@app.command("list")
def cli_list():
    """List every book in the inventory."""
    try:
        books = _get_store().list_items()
    except InventoryError as e:
        _fail(e)
    print_list_result(books)


@app.command("show")
def cli_show(item_id: str = typer.Argument(..., help="Book ID")):
    """Find a book by ID and show its details."""
    try:
        book = _get_store().get_item(item_id)
    except InventoryError as e:
        _fail(e)
    print_book_result(book)


@app.command("add")
def cli_add(
    item_id: str = typer.Argument(..., help="Book ID"),
    title: str = typer.Argument(..., help="Title"),
    author: str = typer.Argument(..., help="Author"),
    quantity: int = typer.Option(1, "--quantity", "-q", min=0, help="Units available for checkout"),
):
    """Register a new book."""
    try:
        book = _get_store().create_item(Book(id=item_id, title=title, author=author, quantity=quantity))
    except InventoryError as e:
        _fail(e)
    print(f"Successfully added: {book.title} by {book.author} ({book.quantity} available)")


@app.command("checkout")
def cli_checkout(item_id: str = typer.Argument(..., help="Book ID")):
    """Check out one unit of a book."""
    try:
        book = _get_store().checkout_item(item_id)
    except InventoryError as e:
        _fail(e)
    print(f"Checked out: {book.title} by {book.author} ({book.quantity - 1} left)")


@app.command("return")
def cli_return(item_id: str = typer.Argument(..., help="Book ID")):
    """Return one unit of a book."""
    try:
        book = _get_store().return_item(item_id)
    except InventoryError as e:
        _fail(e)
    print(f"Returned: {book.title} by {book.author} ({book.quantity + 1} available)")


@app.command("init-db")
def cli_init_db():
    """Create the database file and tables."""
    store = _get_store()
    print(f"Database ready: {store.database.db_file}")


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: API_HOST)"),
    port: Optional[int] = typer.Option(None, "--port", help="Port (default: API_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
):
    """Start the HTTP API with uvicorn."""
    host = host or settings.api_host
    port = port or int(settings.api_port)
    print(f"Starting API on http://{host}:{port}/")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
    ]
    env = dict(os.environ)
    if _options["db_file"]:
        env["INVENTORY_DB_FILE"] = _options["db_file"]
    if reload:
        args.append("--reload")
    try:
        subprocess.run(args, check=False, env=env)
    except FileNotFoundError:
        print("Error: could not launch uvicorn. Make sure it is installed in this environment.")
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        print("Server stopped.")


if __name__ == "__main__":
    app()
