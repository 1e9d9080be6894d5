from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio

from core.http import ApiClient
from core.session_guard import SessionGuard, reset_session_guard
from repository.credential_repository import MemoryCredentialStore
from tests.helpers import BASE_URL, RecordingNavigator


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest.fixture
def store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


@pytest.fixture
def guard(store: MemoryCredentialStore, navigator: RecordingNavigator):
    g = SessionGuard(store=store, navigator=navigator, login_path="/login")
    reset_session_guard(g)
    yield g
    reset_session_guard(None)


@pytest_asyncio.fixture
async def make_api(guard: SessionGuard):
    """Build an ApiClient whose transport is the given request handler."""
    clients: list[ApiClient] = []

    def _make(handler: Callable[[httpx.Request], Any], **kwargs: Any) -> ApiClient:
        api = ApiClient(
            guard=guard,
            base_url=BASE_URL,
            transport=httpx.MockTransport(handler),
            **kwargs,
        )
        clients.append(api)
        return api

    yield _make
    for api in clients:
        await api.aclose()
