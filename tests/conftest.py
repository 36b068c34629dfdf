import os

import pytest

from partybook.config import reset_settings
from partybook.storage.database import DatabaseManager


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep real PARTYBOOK_* variables and cached settings out of tests."""
    for key in list(os.environ):
        if key.startswith("PARTYBOOK_"):
            monkeypatch.delenv(key)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
async def db():
    """In-memory SQLite database with schema applied."""
    manager = DatabaseManager(":memory:")
    await manager.initialize()
    yield manager
    await manager.close()
