import threading
from dataclasses import dataclass, field
from typing import Optional

from mdxmigrate.core.utils.hashing import sha256_bytes
from mdxmigrate.crud.store import DocumentStore, Page
from mdxmigrate.errors import StoreWriteError


def _matches(doc: dict, where: Optional[dict]) -> bool:
    return not where or all(doc.get(k) == v for k, v in where.items())


@dataclass
class MemoryStore(DocumentStore):
    """In-process store for dry runs and tests. Documents keep insertion order.

    Writes are serialized so batch worker threads can share one instance.
    """
    page_limit: int = 1000
    _collections: dict[str, dict[str, dict]] = field(default_factory=dict)
    _media: dict[str, dict] = field(default_factory=dict)
    _next_id: int = 1
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def _new_id(self) -> str:
        # caller holds _lock
        value = str(self._next_id)
        self._next_id += 1
        return value

    def find(self, collection: str, where: Optional[dict] = None, page: int = 1, limit: int = 100) -> Page:
        limit = max(1, min(limit, self.page_limit))
        with self._lock:
            matched = [dict(d) for d in self._collections.get(collection, {}).values() if _matches(d, where)]
        start = (page - 1) * limit
        return Page(docs=matched[start:start + limit], total_docs=len(matched), page=page, limit=limit)

    def create(self, collection: str, data: dict) -> dict:
        with self._lock:
            doc = {**data, "id": self._new_id()}
            self._collections.setdefault(collection, {})[doc["id"]] = doc
            return dict(doc)

    def update(self, collection: str, id: str, data: dict) -> dict:
        with self._lock:
            docs = self._collections.get(collection, {})
            if id not in docs:
                raise StoreWriteError(f"No document {id!r} in {collection!r}")
            docs[id] = {**data, "id": id}
            return dict(docs[id])

    def delete(self, collection: str, id: str) -> None:
        with self._lock:
            self._collections.get(collection, {}).pop(id, None)

    def upload(self, filename: str, data: bytes, mime_type: str) -> str:
        digest = sha256_bytes(data)
        with self._lock:
            if digest not in self._media:
                self._media[digest] = {"id": self._new_id(), "filename": filename, "mimeType": mime_type, "size": len(data)}
            return self._media[digest]["id"]
