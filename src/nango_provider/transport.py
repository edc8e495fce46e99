"""Authenticated, retrying transport stack for the Nango API.

The stack is composed from :mod:`httpx` building blocks::

    AsyncClient(auth=BearerAuth)
      └─ RetryTransport            # bounded exponential backoff
           └─ LoggingTransport     # optional, one log line per attempt
                └─ AsyncHTTPTransport (or a test transport)

Each layer only sees a fully formed :class:`httpx.Request`, so layers can
be added or dropped independently.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Generator

import httpx

from nango_provider.redactor import SecretRedactor

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_MIN_WAIT = 1.0
DEFAULT_MAX_WAIT = 5.0
DEFAULT_TIMEOUT = 30.0


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

class BearerAuth(httpx.Auth):
    """Sets ``Authorization: Bearer <key>`` on every request, replacing any prior value."""

    def __init__(self, token: str) -> None:
        self._header = f"Bearer {token}"

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = self._header
        yield request


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------

def is_retryable_status(status_code: int) -> bool:
    """429 and every 5xx except 501 are worth another attempt."""
    if status_code == 429:
        return True
    return 500 <= status_code < 600 and status_code != 501


def _retry_after(response: httpx.Response) -> float | None:
    if response.status_code not in (429, 503):
        return None
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


class RetryTransport(httpx.AsyncBaseTransport):
    """Retries network failures and retryable statuses on an inner transport.

    Parameters
    ----------
    inner:
        Transport that performs a single attempt.
    max_retries:
        Extra attempts after the first one.  ``3`` means at most four
        requests hit the wire.
    min_wait, max_wait:
        Backoff window in seconds.  The wait before retry *n* (0-based) is
        ``min_wait * 2**n`` capped at ``max_wait``; a ``Retry-After`` header
        on 429/503 replaces the computed value, still capped.

    When the budget is exhausted the last network error is re-raised, or
    the last response is returned so the caller can classify its status.
    Waiting happens in :func:`asyncio.sleep`, so cancelling the caller
    aborts the remaining budget immediately.
    """

    def __init__(
        self,
        inner: httpx.AsyncBaseTransport,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        min_wait: float = DEFAULT_MIN_WAIT,
        max_wait: float = DEFAULT_MAX_WAIT,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self._inner = inner
        self.max_retries = max_retries
        self.min_wait = min_wait
        self.max_wait = max(max_wait, min_wait)

    def backoff(self, attempt: int, response: httpx.Response | None = None) -> float:
        if response is not None:
            hinted = _retry_after(response)
            if hinted is not None:
                return min(hinted, self.max_wait)
        return min(self.min_wait * (2 ** attempt), self.max_wait)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        # Buffer the body so every attempt can replay it
        await request.aread()
        attempt = 0
        while True:
            try:
                response = await self._inner.handle_async_request(request)
            except httpx.UnsupportedProtocol:
                raise
            except httpx.TransportError as exc:
                if attempt >= self.max_retries:
                    logger.warning(
                        "%s %s failed after %d attempt(s): %s",
                        request.method, request.url, attempt + 1, exc,
                    )
                    raise
                wait = self.backoff(attempt)
                logger.info(
                    "%s %s attempt %d failed (%s), retrying in %.2fs",
                    request.method, request.url, attempt + 1, exc, wait,
                )
            else:
                if not is_retryable_status(response.status_code):
                    return response
                if attempt >= self.max_retries:
                    logger.warning(
                        "%s %s still HTTP %d after %d attempt(s)",
                        request.method, request.url, response.status_code, attempt + 1,
                    )
                    return response
                wait = self.backoff(attempt, response)
                logger.info(
                    "%s %s attempt %d got HTTP %d, retrying in %.2fs",
                    request.method, request.url, attempt + 1, response.status_code, wait,
                )
                await response.aclose()
            attempt += 1
            await asyncio.sleep(wait)

    async def aclose(self) -> None:
        await self._inner.aclose()


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

class LoggingTransport(httpx.AsyncBaseTransport):
    """Logs method, URL, status and timing of each attempt at DEBUG.

    Bodies are logged only when ``log_bodies`` is set, and always pass
    through :class:`SecretRedactor` first.
    """

    def __init__(
        self,
        inner: httpx.AsyncBaseTransport,
        *,
        log_bodies: bool = False,
        redactor: SecretRedactor | None = None,
    ) -> None:
        self._inner = inner
        self.log_bodies = log_bodies
        self._redactor = redactor or SecretRedactor()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        logger.debug(
            "Request: %s %s headers=%s",
            request.method, request.url, self._redactor.redact_headers(request.headers),
        )
        if self.log_bodies:
            logger.debug("Request Body: %s", self._redactor.redact_body(await request.aread()))

        start = time.perf_counter()
        try:
            response = await self._inner.handle_async_request(request)
        except httpx.TransportError as exc:
            logger.debug("Error: %s %s: %s", request.method, request.url, exc)
            raise
        elapsed = time.perf_counter() - start

        logger.debug(
            "Response: %s %s - %d in %.3fs",
            request.method, request.url, response.status_code, elapsed,
        )
        if self.log_bodies:
            logger.debug("Response Body: %s", self._redactor.redact_body(await response.aread()))
        return response

    async def aclose(self) -> None:
        await self._inner.aclose()


def build_transport(
    inner: httpx.AsyncBaseTransport | None = None,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    min_wait: float = DEFAULT_MIN_WAIT,
    max_wait: float = DEFAULT_MAX_WAIT,
    log_requests: bool = True,
    log_bodies: bool = False,
) -> httpx.AsyncBaseTransport:
    """Compose the retry and (optional) logging layers around *inner*."""
    transport = inner or httpx.AsyncHTTPTransport()
    if log_requests or log_bodies:
        transport = LoggingTransport(transport, log_bodies=log_bodies)
    return RetryTransport(
        transport,
        max_retries=max_retries,
        min_wait=min_wait,
        max_wait=max_wait,
    )
