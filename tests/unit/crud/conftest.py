"""Shared fixtures for crud unit tests"""

import pytest
from sqlmodel import SQLModel

from mdxmigrate.crud.database import init_db, make_engine
from mdxmigrate.crud.memory_store import MemoryStore
from mdxmigrate.crud.sql_store import SQLStore


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = make_engine("sqlite://")
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="sql_store")
def sql_store_fixture(engine):
    return SQLStore(engine)


@pytest.fixture(name="store", params=["memory", "sql"])
def store_fixture(request, engine):
    """Every store implementation, with a small page limit to force pagination."""
    if request.param == "memory":
        return MemoryStore(page_limit=5)
    return SQLStore(engine, page_limit=5)
