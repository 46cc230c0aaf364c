"""Shared test fixtures and configuration for Tatua tests."""

import tempfile
from pathlib import Path

import pytest

from tatua.grid.providers import LocalDataProvider
from tatua.grid.engine import GridConfig, GridEngine
from tatua.tickets.service import TicketDraft


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep TATUA_* variables from the host out of every test."""
    for name in (
        "TATUA_STORAGE_BACKEND",
        "TATUA_STORAGE_PATH",
        "TATUA_CIPHER_KEY",
        "TATUA_ENCRYPTION_ENABLED",
        "TATUA_PAGE_SIZE",
        "TATUA_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sample_records():
    """Five records, three of them mentioning a bug."""
    return [
        {"id": 1, "subject": "Login bug", "priority": 3, "dateCreated": "2024-01-05T10:00:00.000Z"},
        {"id": 2, "subject": "Feature request", "priority": 1, "dateCreated": "2024-01-01T10:00:00.000Z"},
        {"id": 3, "subject": "Bug in export", "priority": 2, "dateCreated": "2024-01-03T10:00:00.000Z"},
        {"id": 4, "subject": "Question", "priority": 2, "dateCreated": "2024-01-04T10:00:00.000Z"},
        {"id": 5, "subject": "Payment BUG", "priority": 5, "dateCreated": "2024-01-02T10:00:00.000Z"},
    ]


@pytest.fixture
def numbered_records():
    """Twenty records with ids 1..20."""
    return [{"id": i, "name": f"Record {i:02d}"} for i in range(1, 21)]


@pytest.fixture
def local_engine(numbered_records):
    """Grid engine over twenty local records, eight per page."""
    return GridEngine(LocalDataProvider(numbered_records), GridConfig(page_size=8, selectable=True))


@pytest.fixture
def ticket_draft():
    """A complete ticket draft."""
    return TicketDraft(
        full_name="Jane Wanjiku",
        email="jane@example.com",
        phone="+254700000000",
        subject="Cannot log in",
        message="The login page keeps reloading.",
        contact="Email"
    )


@pytest.fixture
def temp_storage_dir():
    """Temporary directory for file-backed storage."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)
