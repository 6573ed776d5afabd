"""Collection query and result models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from booky.models.book import Book

SortField = Literal["title", "rating", "category", "dateCompleted", "completionOrder"]
SortOrder = Literal["asc", "desc"]


class BookQuery(BaseModel):
    """Filters, sort and pagination for a collection query.

    Exact-match parameters take precedence over their range counterparts:
    ``rating`` over ``min_rating``, ``date_completed`` over
    ``date_from``/``date_to`` and ``completion_order`` over
    ``min_order``/``max_order``. A ``limit`` of None means the configured
    default page size.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    category: str | None = None
    rating: int | None = None
    min_rating: int | None = None
    title: str | None = None
    review: str | None = None
    date_completed: str | None = None
    date_from: str | None = None
    date_to: str | None = None
    completion_order: int | None = None
    min_order: int | None = None
    max_order: int | None = None
    sort_by: SortField | None = None
    sort_order: SortOrder = "asc"
    page: int = Field(default=1, ge=1)
    limit: int | None = Field(default=None, ge=1)


class BookPage(BaseModel):
    """One page of query results."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    items: list[Book] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20
    total_pages: int = 0


class HealthStatus(BaseModel):
    """Result of a backend read/write probe."""

    status: str  # "healthy", "error"
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)

    @property
    def healthy(self) -> bool:
        return self.status == "healthy"
