"""
Integration test fixtures.

The gateway app is built from the shared test settings and driven in-process.
"""

from __future__ import annotations

import httpx
import pytest

from onemin_gateway.gateway import create_app


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client_factory(app):
    """Factory for clients bound to the gateway app in-process."""

    def factory() -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://gateway")

    return factory
