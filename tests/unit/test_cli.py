"""
Tests for the chloe CLI.

Parser-level checks for every subcommand, plus the 'ask' command run
against a mocked provider.
"""

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from chloe.__main__ import cmd_ask, cmd_run, create_parser
from chloe.config.settings import Settings
from chloe.errors import AuthenticationFailed
from chloe.llm.models import ChatResponse
from chloe.llm.providers.base import LLMProvider


class EchoProvider(LLMProvider):
    @property
    def name(self):
        return "echo"

    @property
    def supports_tools(self):
        return True

    @property
    def supports_images(self):
        return False

    @property
    def default_model(self):
        return "echo-1"

    @property
    def available_models(self):
        return ["echo-1"]

    async def generate(self, request):
        self.last_request = request
        return ChatResponse(text=f"echo {request.messages[-1].content}", model="echo-1")


class TestParser:
    def test_ask_arguments(self):
        args = create_parser().parse_args(["ask", "what is 2+2?", "--speaker", "bob", "--no-tools"])
        assert args.command == "ask"
        assert args.message == "what is 2+2?"
        assert args.speaker == "bob"
        assert args.no_tools is True

    def test_ask_defaults(self):
        args = create_parser().parse_args(["ask", "hi"])
        assert args.speaker == "cli"
        assert args.no_tools is False

    def test_ask_requires_message(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["ask"])

    def test_log_level_choices(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["--log-level", "LOUD", "run"])


class TestCommands:
    def test_run_without_token(self):
        settings = Settings(_env_file=None)
        settings.bot.token = ""
        assert cmd_run(settings) == 1

    @pytest.mark.asyncio
    async def test_ask_prints_answer(self, capsys):
        provider = EchoProvider()
        args = SimpleNamespace(message="hello there", speaker="bob", no_tools=True)

        with patch("chloe.llm.providers.create_provider", return_value=provider):
            code = await cmd_ask(args, Settings(_env_file=None))

        out = capsys.readouterr().out
        assert code == 0
        assert "echo bob: hello there" in out
        assert provider.last_request.tools is None

    @pytest.mark.asyncio
    async def test_ask_provider_error(self, capsys):
        args = SimpleNamespace(message="hi", speaker="cli", no_tools=True)

        with patch("chloe.llm.providers.create_provider", side_effect=AuthenticationFailed("no key")):
            code = await cmd_ask(args, Settings(_env_file=None))

        assert code == 1
        assert "Provider error: no key" in capsys.readouterr().err
