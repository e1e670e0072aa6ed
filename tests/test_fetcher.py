# =============================================================================
# tests/test_fetcher.py - Resilient fetch tests
# =============================================================================

import asyncio

import httpx
import pytest

from errors import FetchError
from fetcher import fetch_data

URL = "http://upstream.test/resource"


def scripted(*steps):
    """Handler replaying `steps` in order: status codes or exceptions."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        step = steps[len(calls)]
        calls.append(request)
        if isinstance(step, type) and issubclass(step, Exception):
            raise step("boom", request=request)
        return httpx.Response(step, json={"status": step})

    return handler, calls


def run_fetch(make_client, handler, **kwargs):
    async def go():
        async with make_client(handler) as client:
            return await fetch_data(client, URL, **kwargs)
    return asyncio.run(go())


def test_rate_limit_is_retried_until_success(make_client):
    handler, calls = scripted(429, 429, 200)
    res = run_fetch(make_client, handler, max_attempts=3)
    assert res.status_code == 200
    assert res.json() == {"status": 200}
    assert len(calls) == 3


def test_rate_limit_past_max_attempts_raises(make_client):
    handler, calls = scripted(429, 429, 429, 200)
    with pytest.raises(FetchError):
        run_fetch(make_client, handler, max_attempts=3)
    assert len(calls) == 3


def test_transport_errors_are_retried(make_client):
    handler, calls = scripted(httpx.ConnectError, httpx.ReadError, 200)
    res = run_fetch(make_client, handler, max_attempts=3)
    assert res.status_code == 200
    assert len(calls) == 3


def test_last_transport_error_is_kept(make_client):
    handler, _ = scripted(httpx.ConnectError, httpx.ConnectError, httpx.ReadError)
    with pytest.raises(FetchError) as exc_info:
        run_fetch(make_client, handler, max_attempts=3)
    assert isinstance(exc_info.value.__cause__, httpx.ReadError)
    assert exc_info.value.url == URL


@pytest.mark.parametrize("status", [404, 500, 503])
def test_other_statuses_pass_through_without_retry(make_client, status):
    handler, calls = scripted(status, 200)
    res = run_fetch(make_client, handler, max_attempts=3)
    assert res.status_code == status
    assert len(calls) == 1


def test_deadline_aborts_the_attempt(make_client):
    async def slow(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200)

    with pytest.raises(FetchError, match="timed out"):
        run_fetch(make_client, slow, timeout=0.05)


def test_post_body_is_forwarded(make_client):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    run_fetch(make_client, handler, method="POST", json={"query": "{ Media { id } }"})
    assert seen[0].method == "POST"
    assert b"Media" in seen[0].content
