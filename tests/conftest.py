"""Pytest configuration and shared fixtures."""

import pytest
from httpx import ASGITransport, AsyncClient

from starwiki.main import app


@pytest.fixture
def client():
    """Async client bound to the app without a real server (lifespan is not run)."""
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
