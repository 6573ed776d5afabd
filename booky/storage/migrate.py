"""One-shot copy of the book collection between backends."""

import json
import logging

from booky.errors import StorageUnavailable
from booky.storage.backends import BookBackend

logger = logging.getLogger(__name__)


def _count_books(payload: str | None) -> int:
    if payload is None or not payload.strip():
        return 0
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise StorageUnavailable(f"Collection is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise StorageUnavailable("Collection is not a JSON array")
    return len(data)


def migrate_collection(source: BookBackend, target: BookBackend) -> int:
    """Copy the serialized collection from ``source`` to ``target``.

    The payload is copied verbatim, then the target is read back and its
    book count compared with the source.

    Returns:
        Number of books migrated.

    Raises:
        StorageUnavailable: If either backend fails, the source payload is
            not a JSON array, or verification finds a different count.
    """
    payload = source.read()
    count = _count_books(payload)
    logger.info("Found %d books in source collection", count)

    target.write(payload if payload is not None else "[]")

    verified = _count_books(target.read())
    if verified != count:
        raise StorageUnavailable(
            f"Migration verification failed: wrote {count} books, found {verified}"
        )
    logger.info("Migrated %d books", count)
    return count
