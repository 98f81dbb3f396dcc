"""Document store interface and pagination-safe helpers built on it"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from pydantic import BaseModel

from mdxmigrate.errors import DuplicateIdentifierError, PaginationExhaustionError


logger = logging.getLogger(__name__)


class Page(BaseModel):
    """One page of a find() result."""
    docs: list[dict[str, Any]] = []
    total_docs: int = 0
    page: int = 1
    limit: int = 0

    @property
    def total_pages(self) -> int:
        return -(-self.total_docs // self.limit) if self.limit else 0

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages


class DocumentStore(ABC):
    """Collection-oriented store: find/create/update/delete plus a media sink.

    find() caps limit at page_limit; callers must paginate.
    """
    page_limit: int = 1000

    @abstractmethod
    def find(self, collection: str, where: Optional[dict] = None, page: int = 1, limit: int = 100) -> Page:
        raise NotImplementedError

    @abstractmethod
    def create(self, collection: str, data: dict) -> dict:
        raise NotImplementedError

    @abstractmethod
    def update(self, collection: str, id: str, data: dict) -> dict:
        raise NotImplementedError

    @abstractmethod
    def delete(self, collection: str, id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def upload(self, filename: str, data: bytes, mime_type: str) -> str:
        """Store a binary blob and return a stable reference."""
        raise NotImplementedError

    def check(self) -> None:
        """Raise StoreConnectionError when the store cannot be reached."""

    def count(self, collection: str, where: Optional[dict] = None) -> int:
        return self.find(collection, where, page=1, limit=1).total_docs


def iter_all(
    store: DocumentStore,
    collection: str,
    where: Optional[dict] = None,
    page_size: int = 100,
    max_pages: int = 10000,
    ) -> Iterator[dict]:
    """Yield every matching document, visiting pages 1..N."""
    page = 1
    while True:
        if page > max_pages:
            raise PaginationExhaustionError(
                f"Read of {collection!r} did not finish within {max_pages} page(s)"
            )
        result = store.find(collection, where, page=page, limit=page_size)
        logger.debug("Read %s page %d: %d doc(s) of %d", collection, page, len(result.docs), result.total_docs)
        yield from result.docs
        if not result.docs or not result.has_next_page:
            return
        page += 1


def purge(
    store: DocumentStore,
    collection: str,
    where: Optional[dict] = None,
    page_size: int = 100,
    max_pages: int = 10000,
    ) -> int:
    """Delete every matching document, re-fetching page 1 after each round of deletions."""
    deleted = 0
    for _ in range(max_pages):
        result = store.find(collection, where, page=1, limit=page_size)
        if not result.docs:
            logger.debug("Purged %d doc(s) from %s", deleted, collection)
            return deleted
        for doc in result.docs:
            store.delete(collection, doc["id"])
            deleted += 1
    if store.find(collection, where, page=1, limit=1).docs:
        raise PaginationExhaustionError(
            f"Purge of {collection!r} still finds documents after {max_pages} page(s)"
        )
    return deleted


@dataclass(frozen=True)
class UpsertResult:
    doc: dict
    status: str                     # 'created', 'updated' or 'unchanged'
    previous: Optional[dict] = None


def find_by_slug(store: DocumentStore, collection: str, slug: str) -> Optional[dict]:
    result = store.find(collection, {"slug": slug}, page=1, limit=2)
    if result.total_docs > 1:
        raise DuplicateIdentifierError(f"{result.total_docs} documents in {collection!r} share slug {slug!r}")
    return result.docs[0] if result.docs else None


def upsert_by_slug(store: DocumentStore, collection: str, data: dict) -> UpsertResult:
    """Create or update by slug; identical contentHash is a no-op."""
    existing = find_by_slug(store, collection, data["slug"])
    if existing is None:
        return UpsertResult(store.create(collection, data), "created")
    if existing.get("contentHash") and existing.get("contentHash") == data.get("contentHash"):
        return UpsertResult(existing, "unchanged")
    previous = {k: v for k, v in existing.items() if k != "id"}
    return UpsertResult(store.update(collection, existing["id"], data), "updated", previous)
