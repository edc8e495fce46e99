"""Unit tests for auth injection, retry policy and redacted logging."""

import asyncio
import logging
import time

import httpx
import pytest

from nango_provider.client import NangoClient
from nango_provider.errors import ApiError, TransportError
from nango_provider.transport import BearerAuth, RetryTransport, is_retryable_status

KEY = "env-key-abc"


def _client(handler, **kwargs) -> NangoClient:
    kwargs.setdefault("min_wait", 0.0)
    kwargs.setdefault("max_wait", 0.0)
    return NangoClient("https://api.nango.test", KEY, transport=httpx.MockTransport(handler), **kwargs)


def test_bearer_auth_overwrites_existing_header():
    request = httpx.Request("GET", "https://api.nango.test/x", headers={"Authorization": "Basic abc"})
    sent = next(BearerAuth(KEY).auth_flow(request))
    assert sent.headers["Authorization"] == f"Bearer {KEY}"
    assert sent.headers.get_list("Authorization") == [f"Bearer {KEY}"]


def test_every_attempt_carries_the_key():
    seen = []

    def handler(request):
        seen.append(request.headers["Authorization"])
        return httpx.Response(503) if len(seen) == 1 else httpx.Response(200, json={})

    asyncio.run(_client(handler).get("/integrations"))
    assert seen == [f"Bearer {KEY}", f"Bearer {KEY}"]


@pytest.mark.parametrize("status,expected", [
    (429, True), (500, True), (502, True), (503, True), (501, False), (400, False), (404, False),
])
def test_retryable_statuses(status, expected):
    assert is_retryable_status(status) is expected


class TestRetryBudget:
    def test_network_errors_exhaust_budget_then_raise(self):
        calls = []

        def handler(request):
            calls.append(1)
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError, match="connection refused") as exc_info:
            asyncio.run(_client(handler, max_retries=3).get("/integrations"))
        assert len(calls) == 4
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_retryable_status_exhausts_budget_then_surfaces_status(self):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(502, json={"error": "bad gateway"})

        with pytest.raises(ApiError) as exc_info:
            asyncio.run(_client(handler, max_retries=2).get("/integrations"))
        assert len(calls) == 3
        assert exc_info.value.status_code == 502

    def test_success_on_second_attempt_stops_retrying(self):
        calls = []

        def handler(request):
            calls.append(1)
            if len(calls) == 1:
                raise httpx.ReadTimeout("slow", request=request)
            return httpx.Response(200, json={"data": []})

        resp = asyncio.run(_client(handler, max_retries=2).get("/integrations"))
        assert resp.body == {"data": []}
        assert len(calls) == 2

    def test_client_errors_are_not_retried(self):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(400, json={"error": "invalid_body"})

        with pytest.raises(ApiError):
            asyncio.run(_client(handler).post("/integrations", json={}))
        assert len(calls) == 1

    def test_post_body_is_replayed_on_retry(self):
        bodies = []

        def handler(request):
            bodies.append(request.content)
            return httpx.Response(500) if len(bodies) < 3 else httpx.Response(200, json={})

        asyncio.run(_client(handler).post("/integrations", json={"unique_key": "gh1"}))
        assert len(bodies) == 3
        assert len(set(bodies)) == 1
        assert b"gh1" in bodies[0]

    def test_zero_retries_means_one_attempt(self):
        calls = []

        def handler(request):
            calls.append(1)
            raise httpx.ConnectError("down", request=request)

        with pytest.raises(TransportError):
            asyncio.run(_client(handler, max_retries=0).get("/x"))
        assert len(calls) == 1


class TestBackoff:
    def _transport(self) -> RetryTransport:
        return RetryTransport(httpx.MockTransport(lambda r: httpx.Response(200)), min_wait=1.0, max_wait=5.0)

    def test_exponential_and_capped(self):
        t = self._transport()
        assert [t.backoff(n) for n in range(4)] == [1.0, 2.0, 4.0, 5.0]

    def test_retry_after_is_honoured_within_cap(self):
        t = self._transport()
        assert t.backoff(0, httpx.Response(429, headers={"Retry-After": "3"})) == 3.0
        assert t.backoff(0, httpx.Response(503, headers={"Retry-After": "60"})) == 5.0

    def test_retry_after_ignored_on_other_statuses(self):
        t = self._transport()
        assert t.backoff(1, httpx.Response(500, headers={"Retry-After": "3"})) == 2.0

    def test_negative_budget_rejected(self):
        with pytest.raises(ValueError):
            RetryTransport(httpx.MockTransport(lambda r: httpx.Response(200)), max_retries=-1)


def test_cancellation_aborts_pending_retries():
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(503)

    async def _test():
        client = _client(handler, min_wait=10.0, max_wait=10.0)
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(client.get("/integrations"), timeout=0.2)

    start = time.monotonic()
    asyncio.run(_test())
    assert time.monotonic() - start < 5.0
    assert len(calls) == 1


class TestLogging:
    def _handler(self, request):
        return httpx.Response(200, json={"data": {"unique_key": "gh1", "credentials": {"client_secret": "srv-secret"}}})

    def test_bodies_are_redacted(self, caplog):
        caplog.set_level(logging.DEBUG, logger="nango_provider.transport")
        client = _client(self._handler, log_bodies=True)
        asyncio.run(client.post("/integrations", json={"credentials": {"client_secret": "plan-secret"}}))

        assert "Request Body" in caplog.text
        assert "Response Body" in caplog.text
        assert "plan-secret" not in caplog.text
        assert "srv-secret" not in caplog.text
        assert KEY not in caplog.text
        assert "[redacted]" in caplog.text

    def test_bodies_not_logged_by_default(self, caplog):
        caplog.set_level(logging.DEBUG, logger="nango_provider.transport")
        asyncio.run(_client(self._handler).get("/integrations/gh1"))

        assert "Response: GET https://api.nango.test/integrations/gh1 - 200" in caplog.text
        assert "Body" not in caplog.text

    def test_logging_layer_can_be_disabled(self, caplog):
        caplog.set_level(logging.DEBUG, logger="nango_provider.transport")
        asyncio.run(_client(self._handler, log_requests=False).get("/integrations/gh1"))
        assert "Response:" not in caplog.text
