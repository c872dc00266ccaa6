from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from db.storage import InventoryStorage
from main import create_app


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """A primary store backed by a fresh SQLite file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'inventory.db'}"


@pytest.fixture
def unreachable_url(tmp_path: Path) -> str:
    """A primary store that can never be opened (parent directory is missing)."""
    return f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'nested' / 'inventory.db'}"


@pytest.fixture
def memory_client():
    """API client whose storage has no primary store configured."""
    storage = InventoryStorage("")
    with TestClient(create_app(storage)) as client:
        yield client


@pytest.fixture
def sqlite_client(sqlite_url: str):
    storage = InventoryStorage(sqlite_url)
    with TestClient(create_app(storage)) as client:
        yield client
