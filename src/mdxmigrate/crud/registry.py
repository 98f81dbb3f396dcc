"""Registry of reusable data entries (phone numbers etc.): seed file loading, seeding, slug lookup"""

import logging
import threading
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ValidationError

from mdxmigrate.core.utils.hashing import sha256_json
from mdxmigrate.crud.store import DocumentStore, iter_all, purge, upsert_by_slug
from mdxmigrate.errors import ConfigurationError


logger = logging.getLogger(__name__)


class RegistryEntry(BaseModel):
    """One reusable value keyed by a unique slug."""
    id: Optional[str] = None
    slug: str
    name: Optional[str] = None
    category: str = "data"
    provider: Optional[str] = None
    value: Any = None


def load_registry_entries(path: Path) -> list[RegistryEntry]:
    """Read entries from YAML: a list of entries, {entries: [...]}, or a {slug: value} mapping."""
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or []
    except OSError as e:
        raise ConfigurationError(f"Cannot read registry file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid registry file {path}: {e}") from e

    if isinstance(data, dict):
        data = data["entries"] if "entries" in data else [
            {"slug": slug, "value": value} for slug, value in data.items()
        ]
    if not isinstance(data, list):
        raise ConfigurationError(f"Invalid registry file {path}: expected a list of entries")
    try:
        entries = [RegistryEntry.model_validate(item) for item in data]
    except ValidationError as e:
        raise ConfigurationError(f"Invalid registry file {path}: {e}") from e

    slugs = [e.slug for e in entries]
    dupes = sorted({s for s in slugs if slugs.count(s) > 1})
    if dupes:
        raise ConfigurationError(f"Duplicate registry slug(s): {', '.join(dupes)}")
    return entries


def seed_registry(
    store: DocumentStore,
    collection: str,
    entries: list[RegistryEntry],
    purge_first: bool = False,
    page_size: int = 100,
    max_pages: int = 10000,
    ) -> dict[str, int]:
    """Upsert entries by slug. Must run before a migration that resolves data components."""
    counts = {"created": 0, "updated": 0, "unchanged": 0, "purged": 0}
    if purge_first:
        counts["purged"] = purge(store, collection, page_size=page_size, max_pages=max_pages)

    for entry in entries:
        data = entry.model_dump(exclude={"id"})
        data["contentHash"] = sha256_json(data)
        result = upsert_by_slug(store, collection, data)
        counts[result.status] += 1
        logger.debug("Registry %s: %s", result.status, entry.slug)
    return counts


class StoreRegistry:
    """Store-backed registry; all entries are read once with a paginated scan."""

    def __init__(self, store: DocumentStore, collection: str, page_size: int = 100, max_pages: int = 10000):
        self.store = store
        self.collection = collection
        self.page_size = page_size
        self.max_pages = max_pages
        self._entries: Optional[dict[str, RegistryEntry]] = None
        self._lock = threading.Lock()

    def load(self) -> dict[str, RegistryEntry]:
        with self._lock:
            if self._entries is None:
                entries = {}
                for doc in iter_all(self.store, self.collection, page_size=self.page_size, max_pages=self.max_pages):
                    entry = RegistryEntry.model_validate({k: v for k, v in doc.items() if k in RegistryEntry.model_fields})
                    entries[entry.slug] = entry
                self._entries = entries
                logger.debug("Loaded %d registry entr(ies) from %s", len(entries), self.collection)
            return self._entries

    def find_by_slug(self, slug: str) -> Optional[RegistryEntry]:
        return self.load().get(slug)

    def __len__(self) -> int:
        return len(self.load())
