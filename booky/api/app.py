"""HTTP request layer over the book collection store."""

import logging
from typing import Annotated

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from booky.config import AppConfig, load_config
from booky.errors import BookConflictError, BookNotFoundError, StorageUnavailable
from booky.models.book import Book, BookPatch, NewBook
from booky.models.query import BookQuery, SortField, SortOrder
from booky.storage.backends import create_backend
from booky.storage.store import BookStore

logger = logging.getLogger(__name__)


def _dump(book: Book) -> dict:
    return book.model_dump(mode="json", by_alias=True)


def create_store(config: AppConfig) -> BookStore:
    """Build the store and its backend from configuration."""
    return BookStore(
        create_backend(config.storage),
        default_limit=config.query.default_limit,
        max_limit=config.query.max_limit,
    )


def create_app(config: AppConfig | None = None, store: BookStore | None = None) -> FastAPI:
    """Create the FastAPI app.

    Args:
        config: Application configuration. Loaded from config.yaml if None.
        store: Book store to serve. Built from ``config.storage`` if None.
    """
    config = config or load_config()
    if store is None:
        store = create_store(config)

    app = FastAPI(title=config.app.name, version=config.app.version)
    app.state.config = config
    app.state.store = store

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed request input as 400."""
        return JSONResponse(
            status_code=400, content={"detail": jsonable_encoder(exc.errors())}
        )

    @app.exception_handler(ValidationError)
    async def model_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        """Report a record that fails validation after merging as 400."""
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(errors)})

    @app.get("/books")
    def list_books(
        category: str | None = None,
        rating: int | None = None,
        min_rating: Annotated[int | None, Query(alias="minRating")] = None,
        title: str | None = None,
        review: str | None = None,
        date_completed: Annotated[str | None, Query(alias="dateCompleted")] = None,
        date_from: Annotated[str | None, Query(alias="dateFrom")] = None,
        date_to: Annotated[str | None, Query(alias="dateTo")] = None,
        completion_order: Annotated[int | None, Query(alias="completionOrder")] = None,
        min_order: Annotated[int | None, Query(alias="minOrder")] = None,
        max_order: Annotated[int | None, Query(alias="maxOrder")] = None,
        sort_by: Annotated[SortField | None, Query(alias="sortBy")] = None,
        sort_order: Annotated[SortOrder, Query(alias="sortOrder")] = "asc",
        page: Annotated[int, Query(ge=1)] = 1,
        limit: Annotated[int | None, Query(ge=1)] = None,
    ) -> dict:
        """Query the collection with filters, sorting and pagination."""
        query = BookQuery(
            category=category,
            rating=rating,
            min_rating=min_rating,
            title=title,
            review=review,
            date_completed=date_completed,
            date_from=date_from,
            date_to=date_to,
            completion_order=completion_order,
            min_order=min_order,
            max_order=max_order,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
        )
        return store.query(query).model_dump(mode="json", by_alias=True)

    @app.post("/books", status_code=201)
    def create_book(book: NewBook) -> dict:
        """Add a book; the id and completion order are assigned by the store."""
        try:
            created = store.insert(book)
        except BookConflictError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except StorageUnavailable:
            raise HTTPException(status_code=500, detail="Failed to create book")
        return _dump(created)

    @app.delete("/books")
    def delete_all_books() -> dict:
        """Clear the whole collection."""
        try:
            store.delete_all()
        except StorageUnavailable:
            raise HTTPException(status_code=500, detail="Failed to delete books")
        return {"message": "All books deleted"}

    @app.get("/books/{book_id}")
    def get_book(book_id: str) -> dict:
        """Return one book."""
        try:
            return _dump(store.get_by_id(book_id))
        except BookNotFoundError:
            raise HTTPException(status_code=404, detail="Book not found")

    @app.put("/books/{book_id}")
    def update_book(book_id: str, patch: BookPatch) -> dict:
        """Merge a partial update into one book."""
        try:
            updated = store.update(book_id, patch)
        except BookNotFoundError:
            raise HTTPException(status_code=404, detail="Book not found")
        except StorageUnavailable:
            raise HTTPException(status_code=500, detail="Failed to update book")
        return _dump(updated)

    @app.delete("/books/{book_id}")
    def delete_book(book_id: str) -> dict:
        """Remove one book without renumbering the rest."""
        try:
            store.delete_by_id(book_id)
        except BookNotFoundError:
            raise HTTPException(status_code=404, detail="Book not found")
        except StorageUnavailable:
            raise HTTPException(status_code=500, detail="Failed to delete book")
        return {"message": "Book deleted successfully"}

    @app.get("/categories")
    def list_categories() -> list[str]:
        """Return the configured categories."""
        return config.categories

    @app.get("/health")
    def health() -> JSONResponse:
        """Report whether storage survives a write/read round trip."""
        status = store.health_check()
        return JSONResponse(
            status_code=200 if status.healthy else 500,
            content=status.model_dump(mode="json"),
        )

    return app
