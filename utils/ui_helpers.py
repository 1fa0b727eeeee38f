import os
import json
from typing import List
from rich.console import Console
from rich.table import Table

from book import Book

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def print_list_result(books: List[Book]) -> None:
    """Print the book list in the current output mode.
    - plain: 'ID - Name by Author (cost)' lines, or 'No books in store.'
    - json: JSON array of id, name, author, cost
    - rich: Rich table
    """
    mode = get_output_mode()

    if not books:
        print("No books in store.")
        return

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Name", style="white")
        table.add_column("Author", style="white")
        table.add_column("Cost", style="green", justify="right")
        for b in books:
            table.add_row(b.id, b.name, b.author, f"{b.cost:.2f}")
        _console.print(table)
    else:
        for b in books:
            print(f"{b.id} - {b.name} by {b.author} ({b.cost:.2f})")
