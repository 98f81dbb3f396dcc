"""Root test configuration: session-level cleanup of runtime artifacts"""

import os
from pathlib import Path

import pytest


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_FILES = ["mdxmigrate.db", "test.db", "migration-report.json"]


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove DB files and run reports created during the test session."""
    yield
    for name in _CLEANUP_FILES:
        p = _PROJECT_ROOT / name
        if p.exists():
            p.unlink()


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Keep MDXMIGRATE_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("MDXMIGRATE_"):
            monkeypatch.delenv(key)
