"""
Plain HTTP page fetcher used for the ratings site.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx

from async_utils import UpstreamError, with_deadline

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


class PageFetcher(Protocol):
    async def fetch(self, url: str, timeout: float) -> str:
        ...


def _create_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers={
            "User-Agent": BROWSER_USER_AGENT,
            "Accept-Language": "en-US,en;q=0.9",
        },
        timeout=httpx.Timeout(30.0, connect=10.0),
        follow_redirects=True,
    )


class HttpPageFetcher:
    """Fetch HTML text with a per-call deadline; non-2xx raises UpstreamError."""

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        self._client = http_client or _create_client()

    async def __aenter__(self) -> "HttpPageFetcher":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, url: str) -> str:
        try:
            resp = await self._client.get(url)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(f"HTTP {e.response.status_code} fetching {url}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Error fetching {url}: {e}") from e
        return resp.text

    async def fetch(self, url: str, timeout: float) -> str:
        logger.debug("Fetching %s", url)
        return await with_deadline(self._get(url), timeout, f"fetch:{url}")
