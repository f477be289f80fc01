"""Tests for page_fetcher.py."""
import asyncio

import httpx
import pytest

from async_utils import UpstreamError, UpstreamTimeoutError
from page_fetcher import HttpPageFetcher

URL = "https://www.ratemyprofessors.com/professor/111"


def _fetcher(handler):
    return HttpPageFetcher(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_returns_html():
    async with _fetcher(lambda request: httpx.Response(200, text="<html>ok</html>")) as fetcher:
        assert await fetcher.fetch(URL, 1.0) == "<html>ok</html>"


@pytest.mark.asyncio
async def test_non_2xx_is_upstream_error():
    async with _fetcher(lambda request: httpx.Response(403)) as fetcher:
        with pytest.raises(UpstreamError, match="HTTP 403"):
            await fetcher.fetch(URL, 1.0)


@pytest.mark.asyncio
async def test_slow_page_times_out():
    async def handler(request):
        await asyncio.sleep(1.0)
        return httpx.Response(200, text="late")

    async with _fetcher(handler) as fetcher:
        with pytest.raises(UpstreamTimeoutError):
            await fetcher.fetch(URL, 0.05)
