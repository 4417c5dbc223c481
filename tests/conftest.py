"""Shared fixtures.

Provides:
- Tortoise on in-memory SQLite, fresh per test
- FakeHubSpot: an httpx.MockTransport standing in for the OAuth and CRM APIs
- Async HTTP client bound to the FastAPI app
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from helpers import hubspot_config
from helpers.install_cache import clear_install_cache

TEST_DB_CONFIG = {
    "connections": {"default": "sqlite://:memory:"},
    "apps": {"models": {"models": ["models.hubspot_install"]}},
    "use_tz": True,
    "timezone": "UTC",
}


class FakeHubSpot:
    """Records every outbound request and answers like api.hubapi.com."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.hub_id = 4242
        self.token_status = 200
        self.issued: list[dict[str, Any]] = []
        self.owners: list[dict[str, Any]] = []
        self.deals: list[dict[str, Any]] = []
        self.contacts: list[dict[str, Any]] = []
        self.crm_status = 200
        self.token_text: str | None = None
        self.crm_text: str | None = None
        self._counter = 0

    def calls(self, path_prefix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith(path_prefix)]

    def token_calls(self, grant_type: str) -> list[dict[str, list[str]]]:
        forms = [parse_qs(r.content.decode()) for r in self.calls("/oauth/v1/token")]
        return [f for f in forms if f.get("grant_type") == [grant_type]]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/oauth/v1/token":
            if self.token_text is not None:
                return httpx.Response(200, text=self.token_text)
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"status": "BAD_AUTH_CODE"})
            self._counter += 1
            body = {
                "access_token": f"access-{self._counter}",
                "refresh_token": f"refresh-{self._counter}",
                "expires_in": 1800,
            }
            self.issued.append(body)
            return httpx.Response(200, json=body)

        if path.startswith("/oauth/v1/access-tokens/"):
            token = path.rsplit("/", 1)[-1]
            return httpx.Response(200, json={"token": token, "hub_id": self.hub_id, "user": "rep@example.com"})

        if self.crm_text is not None:
            return httpx.Response(self.crm_status, text=self.crm_text)
        if self.crm_status != 200:
            return httpx.Response(self.crm_status, json={"status": "error", "message": "nope"})
        if path == "/crm/v3/owners":
            return httpx.Response(200, json={"results": self.owners})
        if path == "/crm/v3/objects/deals":
            return httpx.Response(200, json={"results": self.deals})
        if path == "/crm/v3/objects/contacts":
            return httpx.Response(200, json={"results": self.contacts})
        return httpx.Response(404, json={"status": "error"})


@pytest.fixture
def hubspot(monkeypatch) -> FakeHubSpot:
    fake = FakeHubSpot()
    transport = httpx.MockTransport(fake.handler)
    monkeypatch.setattr(
        hubspot_config,
        "http_client",
        lambda: httpx.AsyncClient(transport=transport),
    )
    monkeypatch.setenv("HUBSPOT_CLIENT_ID", "client-id")
    monkeypatch.setenv("HUBSPOT_CLIENT_SECRET", "client-secret")
    monkeypatch.delenv("HUBSPOT_REDIRECT_URI", raising=False)
    monkeypatch.delenv("ADMIN_API_TOKEN", raising=False)
    return fake


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[None, None]:
    clear_install_cache()
    await Tortoise.init(config=TEST_DB_CONFIG)
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()
    clear_install_cache()


@pytest_asyncio.fixture
async def client(db, hubspot) -> AsyncGenerator[AsyncClient, None]:
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
