"""
Assembly of the built-in tool set.
"""

from __future__ import annotations

from chloe.config.logging import get_logger
from chloe.config.settings import Settings
from chloe.tools.calculator import CalculatorTool
from chloe.tools.clock import CurrentTimeTool
from chloe.tools.discord_message import SendMessageTool
from chloe.tools.discord_reaction import AddReactionTool
from chloe.tools.fetch import FetchTool
from chloe.tools.image_generation import ImageGenerationTool
from chloe.tools.registry import ToolRegistry
from chloe.tools.web_search import WebSearchTool
from chloe.utils.rate_limiter import RateLimiter

logger = get_logger(__name__)


def create_tool_registry(
    settings: Settings,
    api_rate_limiter: RateLimiter | None = None,
    include_discord: bool = True,
) -> ToolRegistry:
    """
    Build a registry with every built-in tool.

    Args:
        settings: Application settings (tool keys, timeouts)
        api_rate_limiter: Pacing for the HTTP tools
        include_discord: Register the send-message and reaction tools. The CLI
            has no Discord conversation and leaves them out.
    """
    tool_settings = settings.tools
    registry = ToolRegistry(timeout=settings.orchestrator.tool_timeout)

    if include_discord:
        registry.register(SendMessageTool())
        registry.register(AddReactionTool())

    registry.register(WebSearchTool(
        api_key=tool_settings.exa_api_key,
        num_results=tool_settings.search_results,
        rate_limiter=api_rate_limiter,
    ))
    registry.register(FetchTool(
        max_chars=tool_settings.fetch_max_chars,
        timeout=tool_settings.fetch_timeout,
        rate_limiter=api_rate_limiter,
    ))
    registry.register(ImageGenerationTool(
        model=tool_settings.image_model,
        api_key=tool_settings.image_api_key,
    ))
    registry.register(CalculatorTool())
    registry.register(CurrentTimeTool())

    logger.info(f"Registered {len(registry.names)} tools: {', '.join(registry.names)}")
    return registry
