"""Book collection store: CRUD, completion-order upkeep and queries.

Every mutation is a full read-modify-write of the serialized collection.
Reads degrade to an empty collection when the backend is unavailable;
writes (including the read half of a write) propagate StorageUnavailable
so an unreadable collection is never overwritten.
"""

import json
import logging
from collections.abc import Iterable

from pydantic import ValidationError

from booky.errors import BookConflictError, BookNotFoundError, StorageUnavailable
from booky.models.book import Book, BookPatch, NewBook
from booky.models.query import BookPage, BookQuery, HealthStatus
from booky.query import run_query
from booky.storage.backends import BookBackend

logger = logging.getLogger(__name__)


def next_completion_order(books: Iterable[Book]) -> int:
    """Return one past the highest completion order (1 for an empty collection)."""
    return max((b.completion_order or 0 for b in books), default=0) + 1


def shift_completion_orders(books: Iterable[Book], order: int) -> int:
    """Push every book at or after ``order`` one position later.

    Returns:
        Number of books shifted.
    """
    shifted = 0
    for book in books:
        if book.completion_order is not None and book.completion_order >= order:
            book.completion_order += 1
            shifted += 1
    return shifted


class BookStore:
    """Persists the book collection through a pluggable backend.

    Args:
        backend: Storage slot holding the serialized collection. It is
                 connected lazily by the backend itself on first use.
        default_limit: Page size used when a query gives no limit.
        max_limit: Upper bound applied to any requested page size.
    """

    def __init__(
        self, backend: BookBackend, default_limit: int = 20, max_limit: int = 100
    ) -> None:
        self.backend = backend
        self.default_limit = default_limit
        self.max_limit = max_limit

    # -- reads ---------------------------------------------------------------

    def list_all(self) -> list[Book]:
        """Return the whole collection in storage order.

        An unavailable backend yields an empty list instead of an error.
        """
        try:
            return self._load()
        except StorageUnavailable:
            logger.warning(
                "Book storage unavailable, treating collection as empty",
                exc_info=True,
            )
            return []

    def get_by_id(self, book_id: str) -> Book:
        """Look up one book.

        Raises:
            BookNotFoundError: If no book has this id.
        """
        for book in self.list_all():
            if book.id == book_id:
                return book
        raise BookNotFoundError(book_id)

    def query(self, query: BookQuery) -> BookPage:
        """Filter, sort and paginate the collection."""
        limit = min(query.limit or self.default_limit, self.max_limit)
        return run_query(self.list_all(), query, limit)

    def health_check(self) -> HealthStatus:
        """Probe the backend with a write/read/delete round trip."""
        try:
            working = self.backend.ping()
        except StorageUnavailable as e:
            logger.error("Storage health check failed: %s", e)
            return HealthStatus(
                status="error",
                message=f"Storage is not configured or not accessible: {e}",
            )
        if not working:
            return HealthStatus(status="error", message="Storage read/write test failed")
        return HealthStatus(status="healthy", message="Storage is working correctly")

    # -- writes --------------------------------------------------------------

    def insert(self, book: NewBook) -> Book:
        """Add a book to the collection.

        A book without an id gets a fresh one. A book without a completion
        order is placed after the current last one; a book with an explicit
        order shifts every existing book at or after that order up by one.

        Raises:
            BookConflictError: If a book with the same id already exists.
            StorageUnavailable: If the collection cannot be read or written.
        """
        books = self._load()
        created = self._add(books, book)
        self._save(books)
        logger.info("Added book %s at position %d", created.id, created.completion_order)
        return created

    def import_books(self, new_books: Iterable[NewBook]) -> list[Book]:
        """Insert several books with a single collection rewrite.

        Books are added in the given order with the same rules as insert().
        """
        books = self._load()
        created = [self._add(books, book) for book in new_books]
        self._save(books)
        logger.info("Imported %d books", len(created))
        return created

    def update(self, book_id: str, patch: BookPatch) -> Book:
        """Merge the fields set in ``patch`` into a stored book.

        Other books are not renumbered, so a patched completion order may
        collide with an existing one.

        Raises:
            BookNotFoundError: If no book has this id.
            ValidationError: If the merged record is not a valid book.
            StorageUnavailable: If the collection cannot be read or written.
        """
        books = self._load()
        index = self._index_of(books, book_id)
        merged = {**books[index].model_dump(), **patch.changes(), "id": book_id}
        updated = Book.model_validate(merged)
        books[index] = updated
        self._save(books)
        return updated

    def delete_by_id(self, book_id: str) -> None:
        """Remove one book without renumbering the rest.

        Raises:
            BookNotFoundError: If no book has this id.
            StorageUnavailable: If the collection cannot be read or written.
        """
        books = self._load()
        remaining = [b for b in books if b.id != book_id]
        if len(remaining) == len(books):
            raise BookNotFoundError(book_id)
        self._save(remaining)
        logger.info("Deleted book %s", book_id)

    def delete_all(self) -> None:
        """Clear the whole collection."""
        self._save([])
        logger.info("Deleted all books")

    # -- internals -----------------------------------------------------------

    def _add(self, books: list[Book], book: NewBook) -> Book:
        if isinstance(book, Book):
            created = book.model_copy(deep=True)
        else:
            created = Book(**book.model_dump())

        if any(b.id == created.id for b in books):
            raise BookConflictError(created.id)

        if created.completion_order is None:
            created.completion_order = next_completion_order(books)
        else:
            shift_completion_orders(books, created.completion_order)

        books.append(created)
        return created

    @staticmethod
    def _index_of(books: list[Book], book_id: str) -> int:
        for index, book in enumerate(books):
            if book.id == book_id:
                return index
        raise BookNotFoundError(book_id)

    def _load(self) -> list[Book]:
        raw = self.backend.read()
        if raw is None or not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageUnavailable(f"Stored collection is not valid JSON: {e}") from e
        if not isinstance(data, list):
            raise StorageUnavailable("Stored collection is not a JSON array")
        try:
            return [Book.model_validate(item) for item in data]
        except ValidationError as e:
            raise StorageUnavailable(f"Stored collection holds an invalid book: {e}") from e

    def _save(self, books: list[Book]) -> None:
        payload = json.dumps(
            [b.model_dump(mode="json", by_alias=True) for b in books],
            ensure_ascii=False,
            indent=2,
        )
        try:
            self.backend.write(payload)
        except StorageUnavailable:
            logger.exception("Failed to write book collection")
            raise
