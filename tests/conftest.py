"""Shared fixtures for the test suite."""

from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from fastapi.testclient import TestClient

from angel_gateway import http_server
from angel_gateway.broker_client import AngelOneClient, LoginTokens
from angel_gateway.session_store import InMemorySessionStore, SessionRecord


@pytest.fixture
def store():
    """Empty in-memory session store."""
    return InMemorySessionStore()


@pytest.fixture
def session_record():
    """Factory fixture: call with overrides to get a SessionRecord."""
    def _make(**overrides):
        fields = {
            "client_id": "A123456",
            "api_key": "smartapi-key-123",
            "jwt_token": "jwt-1",
            "feed_token": "feed-1",
            "refresh_token": "refresh-1",
        }
        fields.update(overrides)
        return SessionRecord(**fields)
    return _make


@pytest.fixture
def fake_broker():
    """Broker client double with async methods."""
    broker = Mock(spec=AngelOneClient)
    broker.login = AsyncMock(return_value=LoginTokens("jwt-1", "feed-1", "refresh-1"))
    broker.get_ltp = AsyncMock(return_value={"exchange": "NSE", "tradingsymbol": "NIFTY", "ltp": 22500.0})
    broker.refresh_tokens = AsyncMock(return_value=LoginTokens("jwt-2", "feed-2"))
    broker.logout_quietly = AsyncMock(return_value=None)
    return broker


@pytest.fixture
def make_broker():
    """Factory for a real AngelOneClient wired to an httpx.MockTransport handler."""
    def _make(handler):
        transport = httpx.MockTransport(handler)
        return AngelOneClient(
            base_url="https://broker.test",
            default_timeout=3.0,
            rate_limit=1000,
            client=httpx.AsyncClient(transport=transport),
        )
    return _make


@pytest.fixture
def client(store, fake_broker):
    """TestClient with the session store and broker client overridden."""
    http_server.app.dependency_overrides[http_server.get_session_store] = lambda: store
    http_server.app.dependency_overrides[http_server.get_broker_client] = lambda: fake_broker
    yield TestClient(http_server.app)
    http_server.app.dependency_overrides.clear()
