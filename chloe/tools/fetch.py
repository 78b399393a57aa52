"""
HTTP GET of a URL, returned as text for the model.
"""

from __future__ import annotations

from typing import Any

import httpx

from chloe.config.logging import get_logger
from chloe.errors import ToolExecutionFailed
from chloe.tools.base import SideChannel, require_str
from chloe.tools.http import HttpTool
from chloe.tools.names import ToolName
from chloe.utils.rate_limiter import RateLimiter

logger = get_logger(__name__)


class FetchTool(HttpTool):
    """Fetch a URL; bodies longer than ``max_chars`` are truncated."""

    name = ToolName.FETCH.value
    description = (
        "Fetch content from a URL and return the response. Supports GET requests to "
        "retrieve web pages, APIs, and other HTTP resources."
    )
    parameters_schema = {
        "type": "object",
        "properties": {
            "url": {"type": "string", "description": "The URL to fetch content from"},
        },
        "required": ["url"],
    }

    def __init__(
        self,
        max_chars: int = 50_000,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        super().__init__(timeout=timeout, client=client, rate_limiter=rate_limiter)
        self._max_chars = max_chars

    async def execute(
        self,
        parameters: dict[str, Any],
        side_channel: SideChannel | None = None,
    ) -> str:
        url = require_str(parameters, "url").strip()
        if not url.startswith(("http://", "https://")):
            raise ToolExecutionFailed(f"Only http(s) URLs can be fetched: {url}")

        logger.info(f"Fetching {url}")
        try:
            response = await self._request("GET", url)
        except httpx.HTTPError as e:
            raise ToolExecutionFailed(f"Failed to fetch URL: {e}", cause=e) from e

        status = f"{response.status_code} {response.reason_phrase}".strip()
        content_type = response.headers.get("content-type", "unknown")
        body = response.text
        logger.debug(f"Fetched {url}: {status}, {len(body)} chars")

        if response.is_error:
            return f"Error: HTTP {status}\nContent-Type: {content_type}\n\nResponse:\n{body}"

        header = f"Status: {status}\nContent-Type: {content_type}\nContent-Length: {len(body)} bytes\n\n"
        if len(body) > self._max_chars:
            return (
                f"{header}Content (truncated to {self._max_chars // 1000}KB):\n"
                f"{body[:self._max_chars]}...\n\n"
                f"[Content truncated. Original size: {len(body)} bytes]"
            )
        return f"{header}Content:\n{body}"
