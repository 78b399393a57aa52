"""
Tests for ChloeBot.

Covers the channel-restriction check and the service wiring done in
setup_hook, without a Discord connection.
"""

from contextlib import AsyncExitStack
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from chloe.bot.client import ChloeBot
from chloe.config.prompt_store import PromptStore
from chloe.config.settings import BotSettings, Settings
from chloe.context.builder import ContextBuilder
from chloe.llm.orchestrator import Orchestrator


def _make_bot(allowed_channel_ids: list[int]) -> ChloeBot:
    """Create a ChloeBot with the given channel restriction list."""
    settings = MagicMock(spec=Settings)
    settings.bot = MagicMock(spec=BotSettings)
    settings.bot.command_prefix = "!"
    settings.bot.allowed_channel_ids = allowed_channel_ids
    # Skip discord.py's __init__ so no connection state is needed
    bot = ChloeBot.__new__(ChloeBot)
    bot.settings = settings
    return bot


class TestBotChannelRestriction:
    def test_empty_list_allows_all_channels(self):
        """When allowed_channel_ids is empty the bot responds everywhere."""
        bot = _make_bot([])
        assert bot.is_allowed_channel(111) is True
        assert bot.is_allowed_channel(999999) is True

    def test_listed_channel_is_allowed(self):
        bot = _make_bot([111, 222, 333])
        assert bot.is_allowed_channel(111) is True
        assert bot.is_allowed_channel(333) is True

    def test_unlisted_channel_is_blocked(self):
        bot = _make_bot([111, 222])
        assert bot.is_allowed_channel(999) is False


class TestSetupHook:
    @pytest.mark.asyncio
    async def test_wires_services_and_loads_cog(self):
        bot = ChloeBot.__new__(ChloeBot)
        bot.settings = Settings(_env_file=None)
        bot.prompt_store = PromptStore(None)
        bot.orchestrator = None
        bot.context_builder = None
        bot.http_client = None
        bot._exit_stack = AsyncExitStack()
        bot.add_cog = AsyncMock()

        provider = MagicMock()
        provider.name = "groq"
        provider.default_model = "moonshotai/kimi-k2-instruct-0905"

        with patch("chloe.bot.client.create_provider", return_value=provider) as mock_create:
            await bot.setup_hook()

        try:
            mock_create.assert_called_once_with(bot.settings.llm)
            assert isinstance(bot.orchestrator, Orchestrator)
            assert isinstance(bot.context_builder, ContextBuilder)
            assert bot.http_client is not None
            bot.add_cog.assert_awaited_once()
            assert type(bot.add_cog.await_args.args[0]).__name__ == "ChatCog"
        finally:
            await bot._exit_stack.aclose()

        assert bot.http_client.is_closed
