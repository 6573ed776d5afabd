"""Tests for collection queries: filters, sorting and pagination."""

import pytest

from booky.errors import StorageUnavailable
from booky.models import Book, BookQuery, NewBook
from booky.query import filter_books, paginate, sort_books
from booky.storage.backends import MemoryBackend
from booky.storage.store import BookStore


def _titles(books: list[Book]) -> list[str]:
    return [b.title for b in books]


@pytest.fixture
def library() -> list[Book]:
    return [
        Book(title="The Hobbit", category="Story", rating=5, review="A cosy adventure",
             date_completed="2023-05-01", completion_order=1),
        Book(title="Cosmos", category="Factual", rating=4, review="Big ideas",
             date_completed="2023-07-15", completion_order=2),
        Book(title="the Gruffalo", category="Picture", rating=3, review="",
             date_completed="2024-01-10", completion_order=3),
        Book(title="The Road", category="Story", rating=2, review="Bleak and grey",
             date_completed="2024-02-20", completion_order=4),
        Book(title="Unfinished", category="story", rating=0, review="",
             date_completed="", completion_order=None),
    ]


class TestCategoryFilter:
    def test_exact_case_insensitive(self, library: list[Book]) -> None:
        result = filter_books(library, BookQuery(category="STORY"))
        assert _titles(result) == ["The Hobbit", "The Road", "Unfinished"]

    def test_no_substring_match(self, library: list[Book]) -> None:
        assert filter_books(library, BookQuery(category="Stor")) == []

    def test_empty_string_is_ignored(self, library: list[Book]) -> None:
        assert len(filter_books(library, BookQuery(category=""))) == len(library)


class TestRatingFilter:
    def test_exact(self, library: list[Book]) -> None:
        assert _titles(filter_books(library, BookQuery(rating=4))) == ["Cosmos"]

    def test_exact_zero_finds_unrated(self, library: list[Book]) -> None:
        assert _titles(filter_books(library, BookQuery(rating=0))) == ["Unfinished"]

    def test_minimum(self, library: list[Book]) -> None:
        result = filter_books(library, BookQuery(min_rating=4))
        assert _titles(result) == ["The Hobbit", "Cosmos"]

    def test_exact_takes_precedence_over_minimum(self, library: list[Book]) -> None:
        result = filter_books(library, BookQuery(rating=3, min_rating=5))
        assert _titles(result) == ["the Gruffalo"]


class TestTextFilters:
    def test_title_substring_case_insensitive(self, library: list[Book]) -> None:
        result = filter_books(library, BookQuery(title="THE"))
        assert _titles(result) == ["The Hobbit", "the Gruffalo", "The Road"]

    def test_review_substring_case_insensitive(self, library: list[Book]) -> None:
        result = filter_books(library, BookQuery(review="GREY"))
        assert _titles(result) == ["The Road"]


class TestDateFilter:
    def test_exact(self, library: list[Book]) -> None:
        result = filter_books(library, BookQuery(date_completed="2023-07-15"))
        assert _titles(result) == ["Cosmos"]

    def test_inclusive_range(self, library: list[Book]) -> None:
        result = filter_books(
            library, BookQuery(date_from="2023-07-15", date_to="2024-01-10")
        )
        assert _titles(result) == ["Cosmos", "the Gruffalo"]

    def test_open_ended_range(self, library: list[Book]) -> None:
        result = filter_books(library, BookQuery(date_from="2024-01-01"))
        assert _titles(result) == ["the Gruffalo", "The Road"]

    def test_range_excludes_books_without_date(self, library: list[Book]) -> None:
        result = filter_books(library, BookQuery(date_to="2099-12-31"))
        assert "Unfinished" not in _titles(result)

    def test_exact_takes_precedence_over_range(self, library: list[Book]) -> None:
        result = filter_books(
            library,
            BookQuery(date_completed="2023-05-01", date_from="2024-01-01"),
        )
        assert _titles(result) == ["The Hobbit"]


class TestCompletionOrderFilter:
    def test_exact(self, library: list[Book]) -> None:
        result = filter_books(library, BookQuery(completion_order=3))
        assert _titles(result) == ["the Gruffalo"]

    def test_inclusive_range(self, library: list[Book]) -> None:
        result = filter_books(library, BookQuery(min_order=2, max_order=3))
        assert _titles(result) == ["Cosmos", "the Gruffalo"]

    def test_minimum_only(self, library: list[Book]) -> None:
        result = filter_books(library, BookQuery(min_order=4))
        assert _titles(result) == ["The Road"]

    def test_exact_takes_precedence_over_range(self, library: list[Book]) -> None:
        result = filter_books(library, BookQuery(completion_order=1, min_order=3))
        assert _titles(result) == ["The Hobbit"]


class TestFilterComposition:
    def test_filters_combine_with_and(self, library: list[Book]) -> None:
        result = filter_books(
            library, BookQuery(category="Story", min_rating=3, title="the")
        )
        assert _titles(result) == ["The Hobbit"]

    def test_no_filters_returns_everything(self, library: list[Book]) -> None:
        assert filter_books(library, BookQuery()) == library


class TestSort:
    def test_no_sort_keeps_storage_order(self, library: list[Book]) -> None:
        assert sort_books(library, None) == library

    def test_title_case_insensitive(self, library: list[Book]) -> None:
        result = sort_books(library, "title")
        assert _titles(result) == [
            "Cosmos",
            "the Gruffalo",
            "The Hobbit",
            "The Road",
            "Unfinished",
        ]

    def test_rating_descending(self, library: list[Book]) -> None:
        result = sort_books(library, "rating", "desc")
        assert [b.rating for b in result] == [5, 4, 3, 2, 0]

    def test_completion_order_treats_missing_as_zero(self, library: list[Book]) -> None:
        result = sort_books(library, "completionOrder")
        assert _titles(result)[0] == "Unfinished"

    def test_date_ascending(self, library: list[Book]) -> None:
        result = sort_books(library, "dateCompleted")
        assert _titles(result) == [
            "Unfinished",
            "The Hobbit",
            "Cosmos",
            "the Gruffalo",
            "The Road",
        ]

    @pytest.mark.parametrize("sort_order", ["asc", "desc"])
    def test_stable_for_ties(self, sort_order: str) -> None:
        books = [
            Book(title="First", rating=4),
            Book(title="Other", rating=2),
            Book(title="Second", rating=4),
            Book(title="Third", rating=4),
        ]
        result = sort_books(books, "rating", sort_order)  # type: ignore[arg-type]
        tied = [t for t in _titles(result) if t != "Other"]
        assert tied == ["First", "Second", "Third"]

    def test_category_groups_case_insensitively(self, library: list[Book]) -> None:
        result = sort_books(library, "category")
        assert [b.category.lower() for b in result] == [
            "factual",
            "picture",
            "story",
            "story",
            "story",
        ]


class TestPaginate:
    def test_pages_of_twenty_five_books(self) -> None:
        books = [Book(title=f"Book {i}") for i in range(25)]

        first = paginate(books, page=1, limit=20)
        second = paginate(books, page=2, limit=20)
        third = paginate(books, page=3, limit=20)

        assert len(first.items) == 20
        assert len(second.items) == 5
        assert third.items == []
        assert first.total_pages == second.total_pages == third.total_pages == 2
        assert third.total == 25
        assert third.page == 3
        assert second.items[0].title == "Book 20"

    def test_empty_collection(self) -> None:
        page = paginate([], page=1, limit=20)
        assert page.items == []
        assert page.total == 0
        assert page.total_pages == 0


class TestStoreQuery:
    def test_category_scenario(self, store: BookStore, dune_and_cosmos: tuple) -> None:
        dune, _ = dune_and_cosmos
        page = store.query(BookQuery(category="Story"))
        assert page.items == [dune]
        assert page.total == 1

    def test_rating_descending_scenario(self, store: BookStore, dune_and_cosmos: tuple) -> None:
        page = store.query(BookQuery(sort_by="rating", sort_order="desc"))
        assert _titles(page.items) == ["Dune", "Cosmos"]

    def test_uses_default_limit(self) -> None:
        store = BookStore(MemoryBackend(), default_limit=2)
        store.import_books([NewBook(title=f"Book {i}") for i in range(5)])

        page = store.query(BookQuery())

        assert page.limit == 2
        assert len(page.items) == 2
        assert page.total_pages == 3

    def test_caps_limit(self) -> None:
        store = BookStore(MemoryBackend(), max_limit=3)
        store.import_books([NewBook(title=f"Book {i}") for i in range(5)])

        page = store.query(BookQuery(limit=50))

        assert page.limit == 3
        assert len(page.items) == 3

    def test_unavailable_backend_returns_empty_page(self) -> None:
        class DownBackend(MemoryBackend):
            def read(self) -> str | None:
                raise StorageUnavailable("down")

        page = BookStore(DownBackend()).query(BookQuery())
        assert page.items == []
        assert page.total == 0
        assert page.total_pages == 0
