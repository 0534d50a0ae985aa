"""Shared fixtures."""

from typing import Any, Callable, Iterator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from line_task_bridge.config import settings
from line_task_bridge.main import app
from line_task_bridge.models.task import Task
from line_task_bridge.routes.webhook import get_processor, get_reply_sender
from line_task_bridge.services.message_processor import MessageProcessor

CHANNEL_SECRET = "test-channel-secret"


@pytest.fixture
def client() -> TestClient:
    """Test client without the startup lifespan (no real Focalboard/LINE clients)."""
    return TestClient(app)


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """Factory for stored tasks with sensible defaults."""

    def _make(**overrides: Any) -> Task:
        data: dict[str, Any] = {
            "id": "3f2a9c1e7b5d4a0f8e6c2b1a9d8e7f60",
            "board_id": "board-1",
            "title": "Fix login bug",
        }
        data.update(overrides)
        return Task(**data)

    return _make


@pytest.fixture
def storage() -> AsyncMock:
    """Task storage double; every method is awaitable."""
    return AsyncMock()


@pytest.fixture
def sender() -> AsyncMock:
    """LINE reply client double."""
    return AsyncMock()


@pytest.fixture
def bridge_client(
    client: TestClient,
    storage: AsyncMock,
    sender: AsyncMock,
    monkeypatch: pytest.MonkeyPatch,
) -> Iterator[TestClient]:
    """Test client wired to fake storage and reply sender with a known channel secret."""
    monkeypatch.setattr(settings, "line_channel_secret", CHANNEL_SECRET)
    app.dependency_overrides[get_processor] = lambda: MessageProcessor(storage)
    app.dependency_overrides[get_reply_sender] = lambda: sender
    yield client
    app.dependency_overrides.clear()
