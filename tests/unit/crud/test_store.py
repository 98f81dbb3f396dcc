"""Unit tests for crud/store.py, run against every store implementation"""

import threading

import pytest

from mdxmigrate.crud.memory_store import MemoryStore
from mdxmigrate.crud.store import Page, find_by_slug, iter_all, purge, upsert_by_slug
from mdxmigrate.errors import PaginationExhaustionError


COLLECTION = "providers"


def _seed(store, n: int, collection: str = COLLECTION) -> None:
    for i in range(n):
        store.create(collection, {"slug": f"doc-{i}", "title": f"Doc {i}", "contentHash": str(i)})


# --- pagination ---

def test_page_properties():
    page = Page(docs=[], total_docs=12, page=2, limit=5)
    assert page.total_pages == 3
    assert page.has_next_page
    assert not Page(total_docs=0, limit=5).has_next_page


def test_find_caps_limit_at_page_limit(store):
    _seed(store, 12)
    page = store.find(COLLECTION, limit=100)
    assert len(page.docs) == 5
    assert page.total_docs == 12


def test_iter_all_visits_every_page(store):
    """More records than the page limit are still all read."""
    _seed(store, 12)
    slugs = [d["slug"] for d in iter_all(store, COLLECTION, page_size=100)]
    assert slugs == [f"doc-{i}" for i in range(12)]


def test_iter_all_empty_collection(store):
    assert list(iter_all(store, COLLECTION)) == []


def test_count(store):
    _seed(store, 7)
    assert store.count(COLLECTION) == 7
    assert store.count("other") == 0


def test_iter_all_raises_when_pages_never_end():
    class EndlessStore(MemoryStore):
        def find(self, collection, where=None, page=1, limit=100):
            return Page(docs=[{"id": str(page), "slug": f"s{page}"}], total_docs=10**9, page=page, limit=1)

    with pytest.raises(PaginationExhaustionError):
        list(iter_all(EndlessStore(), COLLECTION, max_pages=3))


# --- purge ---

def test_purge_removes_everything(store):
    _seed(store, 12)
    _seed(store, 2, collection="other")
    assert purge(store, COLLECTION, page_size=100) == 12
    assert store.count(COLLECTION) == 0
    assert store.count("other") == 2


def test_purge_raises_when_deletes_have_no_effect():
    class StuckStore(MemoryStore):
        def delete(self, collection, id):
            pass

    store = StuckStore()
    _seed(store, 3)
    with pytest.raises(PaginationExhaustionError):
        purge(store, COLLECTION, max_pages=4)


# --- upsert ---

def test_upsert_created_updated_unchanged(store):
    data = {"slug": "acme", "title": "Acme", "contentHash": "h1"}
    first = upsert_by_slug(store, COLLECTION, data)
    assert first.status == "created"

    again = upsert_by_slug(store, COLLECTION, dict(data))
    assert again.status == "unchanged"
    assert again.doc["id"] == first.doc["id"]

    changed = upsert_by_slug(store, COLLECTION, {**data, "title": "Acme 2", "contentHash": "h2"})
    assert changed.status == "updated"
    assert changed.previous["title"] == "Acme"
    assert changed.doc["id"] == first.doc["id"]
    assert store.count(COLLECTION) == 1


def test_find_by_slug(store):
    _seed(store, 3)
    assert find_by_slug(store, COLLECTION, "doc-1")["title"] == "Doc 1"
    assert find_by_slug(store, COLLECTION, "missing") is None


def test_upload_dedupes_by_content(store):
    a = store.upload("a.png", b"same", "image/png")
    b = store.upload("b.png", b"same", "image/png")
    c = store.upload("c.png", b"other", "image/png")
    assert a == b
    assert a != c


# --- concurrency ---

def _run_threads(target, n: int = 8) -> None:
    barrier = threading.Barrier(n)

    def run(i: int) -> None:
        barrier.wait()
        target(i)

    threads = [threading.Thread(target=run, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()


def test_memory_store_concurrent_uploads_share_one_reference():
    """Racing uploads of the same bytes return a single media id."""
    store = MemoryStore()
    refs = []
    _run_threads(lambda i: refs.append(store.upload(f"logo{i}.png", b"same-bytes", "image/png")))
    assert len(refs) == 8
    assert len(set(refs)) == 1


def test_memory_store_concurrent_creates_get_distinct_ids():
    """Documents created from many threads never share an id."""
    store = MemoryStore()
    _run_threads(lambda i: [store.create(COLLECTION, {"slug": f"doc-{i}-{j}"}) for j in range(50)])
    ids = [d["id"] for d in iter_all(store, COLLECTION)]
    assert len(ids) == 400
    assert len(set(ids)) == 400
