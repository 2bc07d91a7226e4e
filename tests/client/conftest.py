"""Fixtures for comment client tests."""

import pytest

from devspace.client.notifications import Notifier
from devspace.client.state import CommentPageState
from devspace.client.store import CommentStoreClient

from .fakes import BASE_URL, ITEM_ID, FakeCommentsApi


@pytest.fixture
def api() -> FakeCommentsApi:
    return FakeCommentsApi()


@pytest.fixture
def state() -> CommentPageState:
    return CommentPageState(item_id=ITEM_ID)


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def changes() -> list[int]:
    """Number of comments seen by each on_change call."""
    return []


@pytest.fixture
def store(
    api: FakeCommentsApi,
    state: CommentPageState,
    notifier: Notifier,
    changes: list[int],
) -> CommentStoreClient:
    return CommentStoreClient(
        state,
        notifier,
        on_change=lambda s: changes.append(len(s.comments)),
        base_url=BASE_URL,
        transport=api.transport,
    )
