"""Shared test fixtures."""

import os
import tempfile
from collections.abc import Iterator
from unittest.mock import AsyncMock

import pytest


# Settings are cached on first import of the app; pin them before that
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="devspace-logs-"))
os.environ.setdefault("LOG_REQUESTS", "false")

from fastapi.testclient import TestClient  # noqa: E402

from devspace.comments.service import CommentService  # noqa: E402
from devspace.main import app  # noqa: E402


@pytest.fixture
def client() -> TestClient:
    """Test client without lifespan: no Cassandra or Redis is contacted."""
    return TestClient(app)


@pytest.fixture
def comment_service() -> Iterator[AsyncMock]:
    """Mocked comment service installed on the app state."""
    service = AsyncMock(spec=CommentService)
    app.state.comment_service = service
    yield service
    app.state.comment_service = None
