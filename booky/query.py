"""Filter, sort and pagination stages for collection queries."""

import math
from collections.abc import Callable, Sequence
from typing import Any

from booky.models.book import Book
from booky.models.query import BookPage, BookQuery, SortField, SortOrder

# Sort keys per sortable field; string fields compare case-insensitively
SORT_KEYS: dict[str, Callable[[Book], Any]] = {
    "title": lambda book: book.title.lower(),
    "rating": lambda book: book.rating,
    "category": lambda book: book.category.lower(),
    "dateCompleted": lambda book: book.date_completed.lower(),
    "completionOrder": lambda book: book.completion_order or 0,
}


def _in_range(value: Any, low: Any, high: Any) -> bool:
    """Inclusive range check; a None bound is open."""
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def filter_books(books: Sequence[Book], query: BookQuery) -> list[Book]:
    """Apply every filter present in the query, combined with AND.

    Stages run in a fixed order: category, rating, title, review,
    completion date, completion order. Empty text parameters are ignored.

    Args:
        books: Books in storage order.
        query: The query holding the filter parameters.

    Returns:
        Matching books, still in storage order.
    """
    results = list(books)

    if query.category:
        category = query.category.lower()
        results = [b for b in results if b.category.lower() == category]

    if query.rating is not None:
        results = [b for b in results if b.rating == query.rating]
    elif query.min_rating is not None:
        results = [b for b in results if b.rating >= query.min_rating]

    if query.title:
        needle = query.title.lower()
        results = [b for b in results if needle in b.title.lower()]

    if query.review:
        needle = query.review.lower()
        results = [b for b in results if needle in b.review.lower()]

    # ISO 8601 dates sort lexically in chronological order
    if query.date_completed:
        results = [b for b in results if b.date_completed == query.date_completed]
    elif query.date_from or query.date_to:
        date_from = query.date_from or None
        date_to = query.date_to or None
        results = [
            b
            for b in results
            if b.date_completed and _in_range(b.date_completed, date_from, date_to)
        ]

    if query.completion_order is not None:
        results = [b for b in results if b.completion_order == query.completion_order]
    elif query.min_order is not None or query.max_order is not None:
        results = [
            b
            for b in results
            if b.completion_order is not None
            and _in_range(b.completion_order, query.min_order, query.max_order)
        ]

    return results


def sort_books(
    books: Sequence[Book], sort_by: SortField | None, sort_order: SortOrder = "asc"
) -> list[Book]:
    """Sort books by one field, keeping the original order of ties.

    With no ``sort_by`` the input order is returned unchanged.
    """
    if sort_by is None:
        return list(books)
    # sorted() is stable in both directions
    return sorted(books, key=SORT_KEYS[sort_by], reverse=sort_order == "desc")


def paginate(books: Sequence[Book], page: int, limit: int) -> BookPage:
    """Slice one 1-indexed page out of the results.

    Pages past the end yield no items but still report the totals.
    """
    total = len(books)
    start = (page - 1) * limit
    return BookPage(
        items=list(books[start : start + limit]),
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


def run_query(books: Sequence[Book], query: BookQuery, limit: int) -> BookPage:
    """Filter, sort and paginate ``books`` according to ``query``."""
    matches = filter_books(books, query)
    ordered = sort_books(matches, query.sort_by, query.sort_order)
    return paginate(ordered, query.page, limit)
