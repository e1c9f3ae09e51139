"""Pytest configuration and fixtures for integration tests against a real SQLite file."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from routinely.core import db_client
from routinely.core.config import settings


@pytest.fixture
async def sqlite_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[Path]:
    """Point the store at a fresh database file with the schema applied."""
    db_path = tmp_path / "routinely.db"
    monkeypatch.setattr(settings, "sqlite_db_path", str(db_path))

    await db_client.init_db()
    yield db_path
    await db_client.close_connection()


@pytest.fixture
def create(sqlite_db: Path):
    """Shorthand for db_client.create_record bound to the temporary database."""

    async def _create(collection: str, **data: object) -> dict:
        return await db_client.create_record(collection=collection, data=data)

    return _create
