"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

# Ensure the repository root is on the import path so tests can do
# `import services...` regardless of where pytest is launched from.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from services.database import Database  # noqa: E402
from services.repository import ContextRepository  # noqa: E402
from services.slack_client import SlackClient  # noqa: E402
from services.tools.base import ToolContext  # noqa: E402


@pytest_asyncio.fixture
async def database(tmp_path):
    """SQLite database with the full schema, one file per test."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'smartintern.db'}")
    await db.initialize()
    yield db
    await db.close()


@pytest.fixture
def repository(database):
    return ContextRepository(database)


@pytest.fixture
def slack():
    """SlackClient double; tests set the return values they need."""
    client = AsyncMock(spec=SlackClient)
    client.get_channel_info.return_value = {"id": "C123", "name": "general", "is_private": False}
    client.get_channel_history.return_value = []
    client.post_message.return_value = {"ok": True, "channel": "C123", "ts": "1700000999.000100"}

    async def display_name(user_id):
        return {"U1": "Alice", "U2": "Bob"}.get(user_id, user_id or "Unknown")

    client.get_user_display_name.side_effect = display_name
    return client


@pytest.fixture
def ctx(slack, repository):
    return ToolContext(slack=slack, repository=repository)
