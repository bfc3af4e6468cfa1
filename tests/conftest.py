"""
Pytest configuration for the MoveEase suite.
"""

import os

# moveease.users refuses to import without a real signing secret
os.environ.setdefault("SECRET", "test-secret-for-the-moveease-suite")
os.environ.setdefault("STORAGE_BACKEND", "memory")

import pytest

from moveease.database import create_engine_for, init_db, make_session_maker
from moveease.storage import DatabaseStorage, MemoryStorage


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests that run against a SQLite database file"
    )


def sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'moveease.db'}"


@pytest.fixture(params=["memory", pytest.param("database", marks=pytest.mark.slow)])
async def storage(request, tmp_path):
    """Every storage contract test runs once per implementation."""
    if request.param == "memory":
        yield MemoryStorage()
        return
    engine = create_engine_for(sqlite_url(tmp_path))
    await init_db(engine)
    store = DatabaseStorage(make_session_maker(engine), engine=engine)
    yield store
    await store.close()
