"""Fixtures for batch integration tests: a small source corpus and a seeded store"""

import pytest

from mdxmigrate.config import Settings
from mdxmigrate.core.components import ComponentTable
from mdxmigrate.crud.memory_store import MemoryStore
from mdxmigrate.crud.registry import RegistryEntry, seed_registry


ACME = """\
---
title: "Acme Energy"
status: false
---
Call <AcmePhone/> today.

<RatesTableBlock state="TX"/>
"""

TEXAS = """\
---
title: Texas Guide
pubDate: 2024-03-01
---
## Plans

Compare plans in Texas.
"""


def _write(root, name: str, text: str):
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture(name="corpus")
def corpus_fixture(tmp_path):
    root = tmp_path / "content"
    _write(root, "acme-energy.mdx", ACME)
    _write(root, "guides/texas/index.mdx", TEXAS)
    return root


@pytest.fixture(name="table")
def table_fixture():
    return ComponentTable.model_validate({"components": {
        "AcmePhone": "acme-phone",
        "RatesTableBlock": {"kind": "block"},
    }})


@pytest.fixture(name="settings")
def settings_fixture():
    return Settings(db_url="sqlite://", sample_size=10)


@pytest.fixture(name="store")
def store_fixture(settings):
    """MemoryStore with the registry already seeded."""
    store = MemoryStore()
    seed_registry(store, settings.registry_collection, [
        RegistryEntry(slug="acme-phone", category="phone", provider="Acme Energy", value="555-1234"),
    ])
    return store
