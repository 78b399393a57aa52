"""
Shared plumbing for tools that call HTTP APIs.

The httpx client is created in ``initialize()`` and closed in ``shutdown()``.
A client can also be injected (tests pass one backed by ``httpx.MockTransport``);
an injected client is never closed by the tool.
"""

from __future__ import annotations

from abc import ABC

import httpx

from chloe.tools.base import Tool
from chloe.utils.rate_limiter import RateLimiter

USER_AGENT = "Mozilla/5.0 (compatible; ChloeBot/1.0)"


class HttpTool(Tool, ABC):
    def __init__(
        self,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._rate_limiter = rate_limiter

    async def initialize(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=10.0),
                headers={"User-Agent": USER_AGENT},
                follow_redirects=True,
            )
            self._owns_client = True

    async def shutdown(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send a request, paced by the API rate limiter when one is configured."""
        if self._client is None:
            await self.initialize()
        if self._rate_limiter is None:
            return await self._client.request(method, url, **kwargs)
        async with self._rate_limiter.acquire(f"{self.name}:{httpx.URL(url).host}"):
            return await self._client.request(method, url, **kwargs)
