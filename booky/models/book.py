"""Book data models."""

from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def new_book_id() -> str:
    return str(uuid4())


class NewBook(BaseModel):
    """A book as submitted for creation, before an id is assigned.

    Serialized keys are camelCase (``dateCompleted``, ``completionOrder``)
    to match the persisted collection; snake_case names are accepted too.
    Keys the model does not know about are kept as opaque extension data.
    A client-supplied ``id`` is discarded; ids are assigned by the store.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    title: str = Field(min_length=1)
    category: str = ""
    rating: int = Field(default=0, ge=0, le=5)  # 0 = unrated
    review: str = ""  # markdown
    date_completed: str = ""  # ISO date, "" when unknown
    completion_order: int | None = Field(default=None, ge=1)
    image: str = ""  # URL or data URL

    # Opaque payloads from external collaborators
    conversation: Any = None
    links: Any = None
    google_books_info: Any = None

    @model_validator(mode="before")
    @classmethod
    def _drop_client_id(cls, data: Any) -> Any:
        if cls is NewBook and isinstance(data, dict) and "id" in data:
            data = {k: v for k, v in data.items() if k != "id"}
        return data


class Book(NewBook):
    """A book stored in the collection."""

    id: str = Field(default_factory=new_book_id)


class BookPatch(BaseModel):
    """Partial update for a stored book.

    Only fields explicitly present in the payload are merged. ``id`` is not
    patchable and unknown fields are rejected. Fields that a stored book always
    carries cannot be set to null; the opaque payloads can.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    title: str | None = Field(default=None, min_length=1)
    category: str | None = None
    rating: int | None = Field(default=None, ge=0, le=5)
    review: str | None = None
    date_completed: str | None = None
    completion_order: int | None = Field(default=None, ge=1)
    image: str | None = None
    conversation: Any = None
    links: Any = None
    google_books_info: Any = None

    @field_validator(
        "title",
        "category",
        "rating",
        "review",
        "date_completed",
        "completion_order",
        "image",
        mode="before",
    )
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("field cannot be null")
        return value

    def changes(self) -> dict[str, Any]:
        """Return only the fields set by the caller, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)
