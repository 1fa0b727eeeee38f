import subprocess
import sys
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape

from config import settings
from database import StoreError, connect, get_collection
from library import Library
from utils.ui_helpers import print_list_result, set_output_mode
from utils.validators import BookFormError, decode_book_fields, decode_book_id

APP_NAME = "Bookstore CLI"

app = typer.Typer(help=APP_NAME, no_args_is_help=True)
console = Console()


def _get_library() -> Library:
    """Connect to the configured store. Exits with code 1 if it cannot be reached."""
    try:
        client = connect(settings.mongo_uri, settings.mongo_timeout)
    except StoreError as e:
        console.print(f"[bold red]Could not connect to the store ({e.kind.value}).[/]")
        raise typer.Exit(code=1)
    return Library(get_collection(client), timeout=settings.mongo_timeout)


def _fail(message: str, code: int) -> NoReturn:
    console.print(f"[bold red]{message}[/]")
    raise typer.Exit(code=code)


@app.command("list")
def cli_list(output: str = typer.Option("", "--output", help="plain, json or rich")):
    """List every book in the store."""
    if output:
        set_output_mode(output)
    lib = _get_library()
    try:
        books = lib.list_books()
    except StoreError:
        _fail("Failed to get books", 1)
    finally:
        lib.close()
    print_list_result(books)


@app.command("add")
def cli_add(name: str, author: str, cost: str):
    """Add a book."""
    try:
        fields = decode_book_fields({"name": name, "author": author, "cost": cost})
    except BookFormError as e:
        _fail(str(e), 2)

    lib = _get_library()
    try:
        book_id = lib.add_book(fields)
    except StoreError:
        _fail("Failed to insert book", 1)
    finally:
        lib.close()
    console.print(f"[green]Book added:[/] {escape(name)} ({book_id})")


@app.command("modify")
def cli_modify(book_id: str, name: str, author: str, cost: str):
    """Overwrite name, author and cost of a book."""
    try:
        book_id = decode_book_id({"id": book_id})
        fields = decode_book_fields({"name": name, "author": author, "cost": cost})
    except BookFormError as e:
        _fail(str(e), 2)

    lib = _get_library()
    try:
        matched = lib.update_book(book_id, fields)
    except StoreError:
        _fail("Failed to update book", 1)
    finally:
        lib.close()

    if matched == 0:
        console.print(f"[yellow]Book {book_id} not found.[/]")
    else:
        console.print(f"[green]Book {book_id} modified.[/]")


@app.command("remove")
def cli_remove(book_id: str):
    """Delete a book by id."""
    try:
        book_id = decode_book_id({"id": book_id})
    except BookFormError as e:
        _fail(str(e), 2)

    lib = _get_library()
    try:
        deleted = lib.remove_book(book_id)
    except StoreError:
        _fail("Failed to delete book", 1)
    finally:
        lib.close()

    if deleted == 0:
        console.print(f"[yellow]Book {book_id} not found.[/]")
    else:
        console.print(f"[green]Book {book_id} deleted.[/]")


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind (default: API_HOST)"),
    port: Optional[int] = typer.Option(None, "--port", help="Port to bind (default: API_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
):
    """Start the web interface with Uvicorn."""
    host = host or settings.api_host
    port = int(port or settings.api_port)
    print(f"Starting web UI on http://{host}:{port}/")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        args.append("--reload")
    try:
        result = subprocess.run(args)
    except FileNotFoundError:
        _fail("Error: `uvicorn` could not be started. Make sure it is installed.", 1)
    if result.returncode != 0:
        raise typer.Exit(code=result.returncode)


if __name__ == "__main__":
    app()
