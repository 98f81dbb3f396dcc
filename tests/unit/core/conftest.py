"""Shared fixtures for core unit tests"""

import pytest

from mdxmigrate.core.components import ComponentTable
from mdxmigrate.crud.memory_store import MemoryStore
from mdxmigrate.crud.registry import RegistryEntry, StoreRegistry, seed_registry


REGISTRY_COLLECTION = "richTextDataInstances"

SAMPLE_MDX = """\
---
title: "Acme Energy"
status: false
---
Call <AcmePhone/> today.

<RatesTableBlock state="TX"/>
"""


@pytest.fixture(name="table")
def table_fixture():
    """Small component table: one data component, one block component, one media component."""
    return ComponentTable.model_validate({"components": {
        "AcmePhone": "acme-phone",
        "BravoPhone": {"kind": "data", "category": "phone", "provider": "Bravo Power"},
        "RatesTableBlock": {"kind": "block"},
        "ProviderCard": {"kind": "block", "block_type": "providerCard"},
        "Image": {"kind": "media", "category": "media", "block_type": "mediaBlock"},
    }})


@pytest.fixture(name="store")
def store_fixture():
    return MemoryStore()


@pytest.fixture(name="registry")
def registry_fixture(store):
    """Registry seeded with acme-phone only."""
    seed_registry(store, REGISTRY_COLLECTION, [
        RegistryEntry(slug="acme-phone", name="Acme phone", category="phone", provider="Acme Energy", value="555-1234"),
    ])
    return StoreRegistry(store, REGISTRY_COLLECTION)


@pytest.fixture(name="sample_mdx")
def sample_mdx_fixture():
    return SAMPLE_MDX
