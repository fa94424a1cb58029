"""Fixtures for API tests: in-memory container, AsyncClient, admin token."""

import pytest
from httpx import ASGITransport, AsyncClient

from docvault.main import create_app
from vault_api_helpers import ADMIN_EMAIL, make_container, make_settings


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def container(settings):
    return make_container(settings)


@pytest.fixture
async def client(container):
    transport = ASGITransport(app=create_app(container))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await container.tasks.drain()


@pytest.fixture
def admin_headers(container):
    token = container.verifier.issue_token(ADMIN_EMAIL, ADMIN_EMAIL)
    return {"Authorization": f"Bearer {token}"}
