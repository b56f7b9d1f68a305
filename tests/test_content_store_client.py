"""Tests for the content store client's retry handling."""

import asyncio

import aiohttp
import pytest

from docstore.content_store_client import ContentStoreClient, _TransientStoreError
from docstore.exceptions import ContentStoreError


@pytest.fixture
def sleeps(monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr("docstore.content_store_client.asyncio.sleep", fake_sleep)
    return delays


@pytest.fixture
def client():
    return ContentStoreClient(base_url="http://store.test/documents/", max_retries=3)


def test_locator_for(client):
    assert client.locator_for("files/abc.md") == "http://store.test/documents/files/abc.md"


@pytest.mark.asyncio
async def test_transient_failures_are_retried(client, sleeps):
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise _TransientStoreError("store returned 503")
        return "stored"

    assert await client._retry_with_backoff(flaky) == "stored"
    assert len(attempts) == 3
    assert sleeps == [1, 2]


@pytest.mark.asyncio
async def test_gives_up_after_max_retries(client, sleeps):
    async def down():
        raise asyncio.TimeoutError()

    with pytest.raises(ContentStoreError, match="unavailable after 3 attempts"):
        await client._retry_with_backoff(down)
    assert sleeps == [1, 2]


@pytest.mark.asyncio
async def test_client_errors_are_not_retried(client, sleeps):
    attempts = []

    async def rejected():
        attempts.append(1)
        raise aiohttp.InvalidURL("bad")

    with pytest.raises(ContentStoreError):
        await client._retry_with_backoff(rejected)
    assert len(attempts) == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_store_rejection_propagates(client, sleeps):
    async def rejected():
        raise ContentStoreError("Content store rejected put: 400")

    with pytest.raises(ContentStoreError, match="rejected put"):
        await client._retry_with_backoff(rejected)
    assert sleeps == []
