from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

import mdxmigrate.crud.tables  # noqa: F401  registers table metadata


def make_engine(db_url: str, timeout: float = 10.0):
    """Engine with connection timeouts; in-memory SQLite shares one connection across threads."""
    if db_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": timeout}
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(db_url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(db_url, connect_args=connect_args)
    return create_engine(db_url, pool_timeout=timeout, pool_pre_ping=True)


def init_db(engine) -> None:
    SQLModel.metadata.create_all(engine)
