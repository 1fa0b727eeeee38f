import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import Depends, FastAPI, Form, HTTPException, Request
from fastapi.responses import HTMLResponse

from config import settings
from database import StoreError, connect, get_collection
from library import Library
from pages import PageRenderer
from utils.validators import BookFormError, decode_book_fields, decode_book_id

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: anything not injected by the caller is built here, and any
    # failure (unreachable store, broken template) aborts startup.
    # The template goes first so a broken one never leaves a client open.
    if app.state.renderer is None:
        app.state.renderer = PageRenderer(settings.template_dir, settings.template_name)
    owns_library = False
    if app.state.library is None:
        client = connect(settings.mongo_uri, settings.mongo_timeout)
        app.state.library = Library(get_collection(client), timeout=settings.mongo_timeout)
        owns_library = True
    logger.info(f"{settings.app_name} ready")
    yield
    # Shutdown
    if owns_library:
        app.state.library.close()


# --- Dependencies ---
def get_library(request: Request) -> Library:
    return request.app.state.library


def get_renderer(request: Request) -> PageRenderer:
    return request.app.state.renderer


# --- Helper Functions ---
def _ack(message: str) -> HTMLResponse:
    """Small page that shows an alert and sends the browser back to the listing."""
    return HTMLResponse(f"<script>alert('{message}'); window.location.href = '/';</script>")


def _form(**fields: Optional[str]) -> Dict[str, str]:
    """Drop fields the client did not send so the decoder sees them as missing."""
    return {key: value for key, value in fields.items() if value is not None}


def _bad_request(exc: BookFormError) -> HTTPException:
    logger.info(f"Rejected form ({exc.reason.value})")
    return HTTPException(status_code=400, detail=str(exc))


# --- Endpoints ---
def list_books_page(
    library: Library = Depends(get_library),
    renderer: PageRenderer = Depends(get_renderer),
):
    """Render the listing page with every book in the store."""
    try:
        books = library.list_books()
    except StoreError:
        raise HTTPException(status_code=500, detail="Failed to get books")
    return HTMLResponse(renderer.render(books))


def submit_book(
    name: str = Form(""),
    author: str = Form(""),
    cost: Optional[str] = Form(None),
    library: Library = Depends(get_library),
):
    """Create a new book from the submission form."""
    try:
        fields = decode_book_fields(_form(name=name, author=author, cost=cost))
    except BookFormError as e:
        raise _bad_request(e)

    try:
        library.add_book(fields)
    except StoreError:
        raise HTTPException(status_code=500, detail="Failed to insert book")
    return _ack("Book added successfully!")


def delete_book(
    id: Optional[str] = Form(None),
    library: Library = Depends(get_library),
):
    """Delete a book by id. Deleting an unknown id is reported, not rejected."""
    try:
        book_id = decode_book_id(_form(id=id))
    except BookFormError as e:
        raise _bad_request(e)

    try:
        deleted = library.remove_book(book_id)
    except StoreError:
        raise HTTPException(status_code=500, detail="Failed to delete book")

    if deleted == 0:
        return _ack("Book not found!")
    return _ack("Book deleted successfully!")


def modify_book(
    id: Optional[str] = Form(None),
    name: str = Form(""),
    author: str = Form(""),
    cost: Optional[str] = Form(None),
    library: Library = Depends(get_library),
):
    """Overwrite name, author and cost of an existing book."""
    try:
        book_id = decode_book_id(_form(id=id))
        fields = decode_book_fields(_form(name=name, author=author, cost=cost))
    except BookFormError as e:
        raise _bad_request(e)

    try:
        # A zero match count is only logged by the store; the browser still
        # gets the modified acknowledgement.
        library.update_book(book_id, fields)
    except StoreError:
        raise HTTPException(status_code=500, detail="Failed to update book")
    return _ack("Book modified successfully!")


def health_check(library: Library = Depends(get_library)):
    """Report whether the document store answers."""
    try:
        library.ping()
    except StoreError:
        raise HTTPException(status_code=503, detail="Store unavailable")
    return {"status": "ok"}


def create_app(library: Optional[Library] = None, renderer: Optional[PageRenderer] = None) -> FastAPI:
    """Build the application. Pass `library`/`renderer` to skip building them at startup."""
    app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug, lifespan=lifespan)
    app.state.library = library
    app.state.renderer = renderer

    app.add_api_route("/", list_books_page, methods=["GET"], response_class=HTMLResponse)
    app.add_api_route("/submit", submit_book, methods=["POST"], response_class=HTMLResponse)
    app.add_api_route("/delete", delete_book, methods=["POST"], response_class=HTMLResponse)
    app.add_api_route("/modify", modify_book, methods=["POST"], response_class=HTMLResponse)
    app.add_api_route("/health", health_check, methods=["GET"])
    return app


app = create_app()
