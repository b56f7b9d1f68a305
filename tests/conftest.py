"""Shared pytest fixtures for all tests."""

import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock

import pytest

from cli.config import Config
from docstore.content_store_client import ContentStoreClient
from docstore.database import init_database
from docstore.realtime_client import RealtimeTransportClient
from docstore.services.notification_service import NotificationEmitter
from docstore.services.user_service import UserService


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Returns:
        Path to temporary .docstore directory
    """
    config_dir = tmp_path / '.docstore'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample text file for document uploads.
    """
    file_path = tmp_path / 'notes.md'
    file_path.write_text('# Notes\nSample content for testing')
    return file_path


@pytest.fixture
def test_db(monkeypatch) -> Generator[Path, None, None]:
    """
    Create a temporary test database for each test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        monkeypatch.setattr("docstore.database.DATABASE_PATH", str(db_path))
        monkeypatch.setattr("docstore.config.DATABASE_PATH", str(db_path))
        init_database()
        yield db_path


@pytest.fixture
def content_store():
    """
    In-memory stand-in for the content store. Stored bytes are kept in
    ``content_store.objects`` keyed by object key.
    """
    store = AsyncMock(spec=ContentStoreClient)
    store.objects = {}

    async def put(key, data):
        store.objects[key] = data
        return f"http://content-store.test/{key}"

    async def delete(key):
        store.objects.pop(key, None)

    store.put.side_effect = put
    store.delete.side_effect = delete
    store.ping.return_value = True
    return store


@pytest.fixture
def transport():
    """
    Real-time transport stand-in that accepts every message.
    """
    return AsyncMock(spec=RealtimeTransportClient)


@pytest.fixture
def emitter(transport):
    return NotificationEmitter(transport=transport, max_attempts=3)


@pytest.fixture
def services(test_db, content_store, emitter, monkeypatch):
    """
    Install the fake content store and emitter as the process-wide defaults.
    """
    monkeypatch.setattr("docstore.service_locator._content_store", content_store)
    monkeypatch.setattr("docstore.service_locator._notification_emitter", emitter)
    return content_store, emitter


@pytest.fixture
def make_user(test_db):
    """
    Factory provisioning users with a given quota.
    """
    user_service = UserService()

    def _make(name: str, storage_limit: int = 100 * 1024 * 1024):
        return user_service.provision_user(
            name=name.capitalize(),
            email=f"{name}@example.com",
            storage_limit=storage_limit,
        )

    return _make
