"""
Web search through the Exa search API.
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

EXA_SEARCH_URL = "https://api.exa.ai/search"
SNIPPET_CHARS = 300


class WebSearchTool(HttpTool):
    """
    Search the web with Exa and return results formatted for the model to digest.

    Args:
        api_key: Exa API key. An empty key keeps the tool registered but every
            call fails with a readable error.
        num_results: Results requested per query.
    """

    name = ToolName.WEB_SEARCH.value
    description = (
        "Search the web for current information. Returns raw search data that you MUST "
        "process and synthesize into a helpful, conversational response. NEVER copy-paste "
        "the raw results - always analyze, summarize, and explain the information in your "
        "own words. Use this tool for: music, videos, news, products, people, places, "
        "current events, or any information requiring web search."
    )
    parameters_schema = {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "The search query"},
        },
        "required": ["query"],
    }

    def __init__(
        self,
        api_key: str,
        num_results: int = 5,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        super().__init__(timeout=timeout, client=client, rate_limiter=rate_limiter)
        self._api_key = api_key
        self._num_results = num_results
        if not api_key:
            logger.warning("Exa API key not set (TOOL__EXA_API_KEY); web_search will fail")

    async def execute(
        self,
        parameters: dict[str, Any],
        side_channel: SideChannel | None = None,
    ) -> str:
        query = require_str(parameters, "query")
        if not self._api_key:
            raise ToolExecutionFailed("Web search is not configured (missing Exa API key)")

        payload = {
            "query": query,
            "numResults": self._num_results,
            "useAutoprompt": True,
            "type": "keyword",
        }
        headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "x-api-key": self._api_key,
        }

        try:
            response = await self._request("POST", EXA_SEARCH_URL, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ToolExecutionFailed(f"Failed to send request to Exa API: {e}", cause=e) from e

        if response.is_error:
            raise ToolExecutionFailed(
                f"Exa API request failed with status {response.status_code}: {response.text}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ToolExecutionFailed(f"Failed to parse Exa API response: {e}", cause=e) from e

        results = data.get("results") or []
        logger.info(f"web_search '{query}' returned {len(results)} results")
        return format_search_results(query, results, data.get("autopromptString"))


def format_search_results(
    query: str,
    results: list[dict[str, Any]],
    autoprompt: str | None = None,
) -> str:
    """Render Exa results as a block the model is told to summarize, not paste."""
    if not results:
        return f"No search results found for query: '{query}'"

    lines = [
        f"SEARCH_RESULTS_FOR_PROCESSING - Query: '{query}'",
        "INSTRUCTIONS: Process this information and provide a helpful, conversational "
        "response to the user. Do not copy-paste this raw data.",
        "",
    ]
    if autoprompt:
        lines += [f"Refined search: {autoprompt}", ""]

    lines.append("FOUND_INFORMATION:")
    for i, result in enumerate(results, start=1):
        lines.append(f"Source {i}: {result.get('title') or 'Untitled'}")
        lines.append(f"URL: {result.get('url', '')}")
        text = result.get("text")
        if text:
            snippet = f"{text[:SNIPPET_CHARS]}..." if len(text) > SNIPPET_CHARS else text
            lines.append(f"Content: {snippet}")
        if result.get("publishedDate"):
            lines.append(f"Published: {result['publishedDate']}")
        lines += ["", "---", ""]

    lines.append("END_SEARCH_RESULTS - Now synthesize this information into a helpful response for the user.")
    return "\n".join(lines)
