"""Shared fixtures for store and API tests."""

import pytest

from booky.models import Book, NewBook
from booky.storage.backends import MemoryBackend
from booky.storage.store import BookStore


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(backend: MemoryBackend) -> BookStore:
    return BookStore(backend)


@pytest.fixture
def dune_and_cosmos(store: BookStore) -> tuple[Book, Book]:
    dune = store.insert(NewBook(title="Dune", category="Story", rating=5, completion_order=1))
    cosmos = store.insert(
        NewBook(title="Cosmos", category="Factual", rating=4, completion_order=2)
    )
    return dune, cosmos
