import os
import json
from typing import List
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from book_inventory.book import Book

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "INVENTORY_CLI_OUTPUT"

_console = Console()

def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode

def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()

def _status(book: Book) -> str:
    return "available" if book.is_available else "checked out"

def print_list_result(books: List[Book]) -> None:
    """Print the catalog in the current output mode.
    - plain: 'ID - Title by Author (quantity: N)' lines, or 'No books in inventory.'
    - json: JSON array of book objects
    - rich: Rich table
    """
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
        return

    if not books:
        print("No books in inventory.")
        return

    if mode == "rich":
        table = Table(title="📚 Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Quantity", justify="right")
        table.add_column("Status")
        for b in books:
            style = "green" if b.is_available else "red"
            table.add_row(b.id, b.title, b.author, str(b.quantity), f"[{style}]{_status(b)}[/]")
        _console.print(table)
    else:
        for b in books:
            print(f"{b.id} - {b.title} by {b.author} (quantity: {b.quantity})")

def print_book_result(book: Book, heading: str = "Book Found") -> None:
    """Print a single book in the current output mode."""
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(book.to_dict(), ensure_ascii=False))
    elif mode == "rich":
        content = (
            f"[bold]ID:[/] {book.id}\n[bold]Title:[/] {book.title}\n"
            f"[bold]Author:[/] {book.author}\n[bold]Quantity:[/] {book.quantity} ({_status(book)})"
        )
        _console.print(Panel.fit(content, title=heading, border_style="blue"))
    else:
        print(heading)
        print(f"ID: {book.id}")
        print(f"Title: {book.title}")
        print(f"Author: {book.author}")
        print(f"Quantity: {book.quantity}")
