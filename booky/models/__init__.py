"""Data models for the Booky reading tracker."""

from booky.models.book import Book, BookPatch, NewBook
from booky.models.query import BookPage, BookQuery, HealthStatus

__all__ = [
    "Book",
    "BookPage",
    "BookPatch",
    "BookQuery",
    "HealthStatus",
    "NewBook",
]
