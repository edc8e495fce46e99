"""Nango API client.

Pairs a base URL with the authenticated transport stack from
:mod:`nango_provider.transport` and exposes one coroutine per HTTP verb.
The client holds no per-call state, so one instance is shared by every
resource and data source for the provider's lifetime.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from dataclasses import dataclass
from typing import Any, Sequence

import httpx

from nango_provider.errors import ApiError, DecodeError, TransportError
from nango_provider.transport import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_WAIT,
    DEFAULT_MIN_WAIT,
    DEFAULT_TIMEOUT,
    BearerAuth,
    build_transport,
)

logger = logging.getLogger(__name__)

DEFAULT_HOST = "https://api.nango.dev"

QueryParams = Sequence[tuple[str, str]] | dict[str, str]


@dataclass(frozen=True)
class ApiResponse:
    """Decoded 2xx response.  ``body`` is ``None`` when the server sent nothing."""

    status_code: int
    body: Any


class NangoClient:
    """HTTP client bound to one Nango environment.

    Parameters
    ----------
    base_url:
        API root, e.g. ``https://api.nango.dev``.  Trailing slashes are
        trimmed.
    environment_key:
        Secret key sent as a bearer token on every request.
    max_retries, min_wait, max_wait:
        Retry budget, see :class:`~nango_provider.transport.RetryTransport`.
    timeout:
        Overall deadline in seconds for one call, retries and body read
        included.  httpx applies the same value to each connect, read,
        write and pool phase.
    log_requests, log_bodies:
        Enable the logging layer and, separately, redacted body logging.
    transport:
        Innermost transport.  Tests pass :class:`httpx.MockTransport` or
        :class:`httpx.ASGITransport`; production uses the default pool.
    """

    def __init__(
        self,
        base_url: str,
        environment_key: str,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        min_wait: float = DEFAULT_MIN_WAIT,
        max_wait: float = DEFAULT_MAX_WAIT,
        timeout: float = DEFAULT_TIMEOUT,
        log_requests: bool = True,
        log_bodies: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            auth=BearerAuth(environment_key),
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=build_transport(
                transport,
                max_retries=max_retries,
                min_wait=min_wait,
                max_wait=max_wait,
                log_requests=log_requests,
                log_bodies=log_bodies,
            ),
        )

    async def __aenter__(self) -> "NangoClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def get(self, path: str, params: QueryParams | None = None) -> ApiResponse:
        """Perform a GET request."""
        return await self._request("GET", path, params=params)

    async def post(self, path: str, json: Any) -> ApiResponse:
        """Perform a POST request with a JSON body."""
        return await self._request("POST", path, json=json)

    async def patch(self, path: str, json: Any) -> ApiResponse:
        """Perform a PATCH request with a JSON body."""
        return await self._request("PATCH", path, json=json)

    async def delete(self, path: str) -> ApiResponse:
        """Perform a DELETE request."""
        return await self._request("DELETE", path)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: QueryParams | None = None,
        json: Any = None,
    ) -> ApiResponse:
        url = self.url(path)
        kwargs: dict[str, Any] = {}
        if params is not None:
            kwargs["params"] = params
        if json is not None:
            # httpx serialises lazily; snapshot the payload so callers can't race us
            kwargs["json"] = copy.deepcopy(json)
            kwargs["headers"] = {"Content-Type": "application/json"}

        try:
            response = await asyncio.wait_for(
                self._client.request(method, url, **kwargs), timeout=self.timeout
            )
        except asyncio.TimeoutError as exc:
            raise TransportError(f"{method} {url} timed out after {self.timeout}s") from exc
        except httpx.TransportError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        body = _decode(method, url, response)
        if not response.is_success:
            raise ApiError(method, url, response.status_code, body)
        return ApiResponse(status_code=response.status_code, body=body)


def _decode(method: str, url: str, response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        if not response.is_success:
            # Error pages are often HTML; keep the text for the diagnostic
            return response.text
        raise DecodeError(f"{method} {url} returned a non-JSON body: {exc}") from exc
