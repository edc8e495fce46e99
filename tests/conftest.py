"""
pytest fixtures for the Nango provider tests.

Lifecycle tests run against the in-process fake in ``fake_nango.py``
through ``httpx.ASGITransport``; a recording layer keeps every request
that reached the wire so tests can assert on paths, queries and bodies.
"""

import json
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from fake_nango import DEFAULT_VALID_API_KEY, create_app
from nango_provider import (
    Integration,
    IntegrationCredentials,
    IntegrationDataSource,
    IntegrationResource,
    NangoClient,
)

BASE_URL = "http://nango.test/"


# ---------------------------------------------------------------------------
# Recording transport
# ---------------------------------------------------------------------------

@dataclass
class Recorded:
    method: str
    path: str
    query: str
    headers: dict[str, str]
    body: Any


@dataclass
class RecordingTransport(httpx.AsyncBaseTransport):
    """Passes requests through to *inner* and remembers them."""

    inner: httpx.AsyncBaseTransport
    requests: list[Recorded] = field(default_factory=list)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        content = await request.aread()
        self.requests.append(
            Recorded(
                method=request.method,
                path=request.url.path,
                query=request.url.query.decode(),
                headers=dict(request.headers),
                body=json.loads(content) if content else None,
            )
        )
        return await self.inner.handle_async_request(request)

    def calls(self) -> list[tuple[str, str]]:
        return [(r.method, r.path + (f"?{r.query}" if r.query else "")) for r in self.requests]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_app():
    return create_app(api_key=DEFAULT_VALID_API_KEY)


@pytest.fixture
def recorder(fake_app) -> RecordingTransport:
    return RecordingTransport(httpx.ASGITransport(app=fake_app))


@pytest.fixture
def client(recorder) -> NangoClient:
    return NangoClient(
        BASE_URL,
        DEFAULT_VALID_API_KEY,
        min_wait=0.0,
        max_wait=0.0,
        transport=recorder,
    )


@pytest.fixture
def resource(client) -> IntegrationResource:
    r = IntegrationResource()
    assert not r.configure(client)
    return r


@pytest.fixture
def data_source(client) -> IntegrationDataSource:
    d = IntegrationDataSource()
    assert not d.configure(client)
    return d


@pytest.fixture
def github_plan() -> Integration:
    return Integration(
        unique_key="gh1",
        display_name="GitHub",
        provider_type="github",
        credentials=IntegrationCredentials(
            client_id="x",
            client_secret="y",
            type="OAUTH2",
            scopes=["repo"],
        ),
    )
