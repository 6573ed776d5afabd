"""Error kinds raised by the book collection store."""


class BookyError(Exception):
    """Base class for book collection errors."""


class BookNotFoundError(BookyError):
    """No book with the requested id exists in the collection."""

    def __init__(self, book_id: str) -> None:
        super().__init__(f"Book not found: {book_id}")
        self.book_id = book_id


class BookConflictError(BookyError):
    """A book with the same id is already in the collection."""

    def __init__(self, book_id: str) -> None:
        super().__init__(f"Book already exists: {book_id}")
        self.book_id = book_id


class StorageUnavailable(BookyError):
    """The backend could not be reached or holds an unreadable payload."""
