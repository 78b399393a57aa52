"""
Tests for ToolRegistry catalog, execution outcomes and lifecycle.
"""

import asyncio

import pytest

from chloe.config.settings import Settings
from chloe.errors import ToolExecutionFailed
from chloe.tools.base import SideChannel, Tool, ToolInvocation, ToolOutcome
from chloe.tools.defaults import create_tool_registry
from chloe.tools.names import ToolName
from chloe.tools.registry import ToolRegistry


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class EchoTool(Tool):
    name = "echo"
    description = "Echo the text parameter"

    def __init__(self, events=None):
        self.calls = []
        self.events = events if events is not None else []

    async def execute(self, parameters, side_channel=None):
        self.calls.append(parameters)
        return parameters.get("text", "")

    async def initialize(self):
        self.events.append(f"init:{self.name}")

    async def shutdown(self):
        self.events.append(f"shutdown:{self.name}")


class OtherTool(EchoTool):
    name = "other"


class FailingTool(Tool):
    name = "failing"
    description = "Always fails"

    def __init__(self, error: Exception):
        self._error = error

    async def execute(self, parameters, side_channel=None):
        raise self._error


class SlowTool(Tool):
    name = "slow"
    description = "Sleeps"

    async def execute(self, parameters, side_channel=None):
        await asyncio.sleep(1)
        return "done"


class PlatformTool(Tool):
    name = "platform"
    description = "Needs a side channel"
    needs_side_channel = True
    needs_result_feedback = False

    async def execute(self, parameters, side_channel=None):
        return "acted"


class NullSideChannel(SideChannel):
    channel_id = 1
    user_id = 2
    message_id = 3
    guild_id = None

    async def send_message(self, content, reply=True, images=()):
        pass

    async def add_reaction(self, emoji):
        pass

    def custom_emojis(self):
        return {}


def _invoke(name: str, **parameters) -> ToolInvocation:
    return ToolInvocation(id=f"call-{name}", name=name, parameters=parameters)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class TestCatalog:
    def test_duplicate_registration_rejected(self):
        registry = ToolRegistry()
        registry.register(EchoTool())
        with pytest.raises(ValueError):
            registry.register(EchoTool())

    def test_catalog_in_registration_order(self):
        registry = ToolRegistry()
        registry.register(OtherTool())
        registry.register(EchoTool())
        assert [d.name for d in registry.catalog()] == ["other", "echo"]
        assert registry.names == ["other", "echo"]

    def test_lookup(self):
        registry = ToolRegistry()
        tool = EchoTool()
        registry.register(tool)
        assert registry.has_tool("echo")
        assert registry.get("echo") is tool
        assert registry.get("missing") is None

    def test_result_feedback_flags(self):
        registry = ToolRegistry()
        registry.register(EchoTool())
        registry.register(PlatformTool())
        assert registry.needs_result_feedback("echo") is True
        assert registry.needs_result_feedback("platform") is False
        assert registry.needs_result_feedback("unknown") is True

    def test_default_registry_contents(self):
        registry = create_tool_registry(Settings(_env_file=None))
        assert registry.names == [
            ToolName.SEND_MESSAGE.value,
            ToolName.ADD_REACTION.value,
            ToolName.WEB_SEARCH.value,
            ToolName.FETCH.value,
            ToolName.GENERATE_IMAGE.value,
            ToolName.CALCULATE.value,
            ToolName.CURRENT_TIME.value,
        ]

    def test_default_registry_without_discord(self):
        registry = create_tool_registry(Settings(_env_file=None), include_discord=False)
        assert not registry.has_tool(ToolName.SEND_MESSAGE.value)
        assert not registry.has_tool(ToolName.ADD_REACTION.value)


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

class TestExecute:
    @pytest.mark.asyncio
    async def test_success(self):
        registry = ToolRegistry()
        registry.register(EchoTool())
        outcome = await registry.execute(_invoke("echo", text="hi"))
        assert outcome == ToolOutcome(id="call-echo", succeeded=True, result_text="hi")
        assert outcome.feedback_text == "hi"

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        outcome = await ToolRegistry().execute(_invoke("nope"))
        assert outcome.succeeded is False
        assert outcome.error_text == "Tool 'nope' not found"
        assert outcome.feedback_text == "Error: Tool 'nope' not found"

    @pytest.mark.asyncio
    async def test_missing_side_channel(self):
        registry = ToolRegistry()
        registry.register(PlatformTool())
        outcome = await registry.execute(_invoke("platform"))
        assert outcome.succeeded is False
        assert "requires a side channel" in outcome.error_text

    @pytest.mark.asyncio
    async def test_side_channel_supplied(self):
        registry = ToolRegistry()
        registry.register(PlatformTool())
        outcome = await registry.execute(_invoke("platform"), NullSideChannel())
        assert outcome.succeeded is True
        assert outcome.result_text == "acted"

    @pytest.mark.asyncio
    async def test_expected_failure_message_kept(self):
        registry = ToolRegistry()
        registry.register(FailingTool(ToolExecutionFailed("Division by zero")))
        outcome = await registry.execute(_invoke("failing"))
        assert outcome.succeeded is False
        assert outcome.error_text == "Division by zero"

    @pytest.mark.asyncio
    async def test_unexpected_exception_contained(self):
        registry = ToolRegistry()
        registry.register(FailingTool(KeyError("boom")))
        outcome = await registry.execute(_invoke("failing"))
        assert outcome.succeeded is False
        assert outcome.error_text.startswith("Tool 'failing' failed:")

    @pytest.mark.asyncio
    async def test_timeout(self):
        registry = ToolRegistry(timeout=0.05)
        registry.register(SlowTool())
        outcome = await registry.execute(_invoke("slow"))
        assert outcome.succeeded is False
        assert "timed out" in outcome.error_text


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

class TestLifecycle:
    @pytest.mark.asyncio
    async def test_initialize_and_shutdown_in_reverse(self):
        events = []
        registry = ToolRegistry()
        registry.register(EchoTool(events))
        registry.register(OtherTool(events))

        async with registry:
            assert events == ["init:echo", "init:other"]

        assert events == ["init:echo", "init:other", "shutdown:other", "shutdown:echo"]
