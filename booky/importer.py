"""Bulk import of reading history from a JSON export."""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from booky.models.book import Book, NewBook
from booky.storage.store import BookStore

logger = logging.getLogger(__name__)

DEFAULT_IMPORT_RATING = 3
DEFAULT_IMPORT_CATEGORY = "Uncategorized"


class ImportedBook(BaseModel):
    """One record of an import file, with defaults for missing values."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field(min_length=1)
    category: str = ""
    date_completed: str = ""
    review: str = ""
    rating: int | None = Field(default=None, ge=0, le=5)

    @field_validator("category", "date_completed", "review", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def to_new_book(self, today: date | None = None) -> NewBook:
        """Fill in defaults: unrated becomes 3, no category becomes Uncategorized."""
        completed = self.date_completed or (today or date.today()).isoformat()
        return NewBook(
            title=self.title,
            category=self.category or DEFAULT_IMPORT_CATEGORY,
            rating=self.rating or DEFAULT_IMPORT_RATING,
            review=self.review,
            date_completed=completed,
        )


def parse_import_records(
    records: list[dict[str, Any]], today: date | None = None
) -> list[NewBook]:
    """Validate raw import records and convert them to new books.

    Raises:
        pydantic.ValidationError: If any record is invalid. Nothing is
            converted in that case.
    """
    return [ImportedBook.model_validate(r).to_new_book(today) for r in records]


def load_import_file(file_path: str | Path) -> list[dict[str, Any]]:
    """Read a JSON array of book records.

    Raises:
        FileNotFoundError: If file_path does not exist.
        ValueError: If the file is not a JSON array.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of books in {path}")
    return data


def import_books_from_file(store: BookStore, file_path: str | Path) -> list[Book]:
    """Import every record of a JSON export into the store in file order."""
    new_books = parse_import_records(load_import_file(file_path))
    created = store.import_books(new_books)
    logger.info("Imported %d books from %s", len(created), file_path)
    return created
