import asyncio
import logging
from typing import Any

import httpx

from errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_ATTEMPTS = 3


def build_http_client() -> httpx.AsyncClient:
    """Shared upstream client. Retries are handled by fetch_data, not the transport."""
    return httpx.AsyncClient(
        transport=httpx.AsyncHTTPTransport(retries=0),
        limits=httpx.Limits(max_keepalive_connections=10, max_connections=100),
        headers={"Accept": "application/json"},
        timeout=httpx.Timeout(DEFAULT_TIMEOUT),
        follow_redirects=True,
    )


async def fetch_data(
    client: httpx.AsyncClient,
    url: str,
    *,
    method: str = "GET",
    max_attempts: int = DEFAULT_ATTEMPTS,
    timeout: float = DEFAULT_TIMEOUT,
    **kwargs: Any,
) -> httpx.Response:
    """
    Issue a request with a deadline and bounded retry.

    The timeout covers the whole attempt sequence. 429 responses and transport
    errors are retried immediately; any other status is returned as-is for the
    caller to interpret. Raises FetchError once attempts are exhausted or the
    deadline fires.
    """

    async def attempt_all() -> httpx.Response:
        last_error: Exception | None = None
        for attempt in range(1, max_attempts + 1):
            try:
                res = await client.request(method, url, **kwargs)
            except httpx.TransportError as e:
                last_error = e
                logger.warning(f"Fetch failed (Attempt {attempt}/{max_attempts}): {e!r}")
                continue

            if res.status_code == 429:
                logger.warning(f"Rate limited! Retrying... ({attempt}/{max_attempts})")
                continue
            return res

        if last_error is not None:
            raise FetchError(url, message=f"Fetch failed: {last_error!r}", cause=last_error)
        raise FetchError(url)

    try:
        return await asyncio.wait_for(attempt_all(), timeout)
    except asyncio.TimeoutError as e:
        raise FetchError(url, message=f"Request timed out after {timeout}s", cause=e) from e

