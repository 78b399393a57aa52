"""
ChloeBot: discord.py bot client.

Manages the full bot lifecycle:
- Initializes shared services (provider, tools, rate limiters, orchestrator) once at startup
- Loads the ChatCog
- Cleans up all resources on shutdown via AsyncExitStack
"""

from __future__ import annotations

from contextlib import AsyncExitStack

import discord
import httpx
from discord.ext import commands

from chloe.config.logging import get_logger
from chloe.config.prompt_store import PromptStore
from chloe.config.settings import Settings
from chloe.context.builder import ContextBuilder
from chloe.context.prompt import PromptBuilder
from chloe.llm.orchestrator import Orchestrator
from chloe.llm.providers import create_provider
from chloe.tools.defaults import create_tool_registry
from chloe.utils.rate_limiter import create_api_rate_limiter, create_llm_rate_limiter

logger = get_logger(__name__)


class ChloeBot(commands.Bot):
    """
    Discord bot that chats through an LLM with tools.

    Holds shared application state (orchestrator, context builder) and exposes
    it to cogs. All async resources are managed via AsyncExitStack so they're
    properly cleaned up when the bot shuts down.

    Args:
        settings: Full application settings (bot token, LLM config, tools, etc.)
    """

    def __init__(self, settings: Settings) -> None:
        intents = discord.Intents.default()
        intents.message_content = True  # Required to read message text
        super().__init__(
            command_prefix=settings.bot.command_prefix,
            intents=intents,
        )
        self.settings = settings
        self.prompt_store = PromptStore(settings.prompt_path)
        self.orchestrator: Orchestrator | None = None
        self.context_builder: ContextBuilder | None = None
        self.http_client: httpx.AsyncClient | None = None
        self._exit_stack = AsyncExitStack()

    async def setup_hook(self) -> None:
        """
        Called after login, before connecting to the Gateway.

        Provider construction raises on a missing key or unknown model, which
        aborts startup instead of failing on the first message.
        """
        # --- 1. Prompt ---
        if not await self.prompt_store.reload():
            logger.warning("Using built-in default system prompt")

        # --- 2. Provider ---
        provider = create_provider(self.settings.llm)
        logger.info(f"LLM provider ready: {provider.name} ({provider.default_model})")

        # --- 3. Tools (initialized now, shut down on close) ---
        api_limiter = create_api_rate_limiter(self.settings.rate_limit)
        registry = create_tool_registry(self.settings, api_rate_limiter=api_limiter)
        await self._exit_stack.enter_async_context(registry)

        # Image attachment downloads
        self.http_client = await self._exit_stack.enter_async_context(
            httpx.AsyncClient(timeout=httpx.Timeout(30.0, connect=10.0), follow_redirects=True)
        )

        # --- 4. Orchestrator ---
        self.context_builder = ContextBuilder(
            self.settings.context, persona_name=self.settings.bot.persona_name
        )
        prompt_builder = PromptBuilder(
            self.prompt_store,
            persona_name=self.settings.bot.persona_name,
            tool_only=self.settings.orchestrator.tool_only,
        )
        self.orchestrator = Orchestrator(
            provider=provider,
            registry=registry,
            prompt_builder=prompt_builder,
            rate_limiter=create_llm_rate_limiter(self.settings.rate_limit),
            settings=self.settings.orchestrator,
        )
        logger.info("Orchestrator ready")

        # --- 5. Load cogs ---
        from chloe.bot.cogs.chat import ChatCog
        await self.add_cog(ChatCog(self))
        logger.info("Cogs loaded")

    async def on_ready(self) -> None:
        """Called when the bot successfully connects to Discord."""
        logger.info(f"Logged in as {self.user} (id: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guild(s)")

    async def close(self) -> None:
        """Graceful shutdown: clean up all async resources before disconnecting."""
        logger.info("Shutting down Chloe...")
        await self._exit_stack.aclose()
        await super().close()

    def is_allowed_channel(self, channel_id: int) -> bool:
        """
        Return True if the bot should respond in this channel.

        If `allowed_channel_ids` is empty (the default), the bot responds everywhere.
        If it's non-empty, the bot only responds in the listed channel IDs.
        """
        allowed = self.settings.bot.allowed_channel_ids
        return not allowed or channel_id in allowed
