"""
Tool registry and executor.

The registry is the only thing the orchestrator talks to about tools: it
exposes the catalog sent to the provider and executes invocations. Execution
never raises. Every failure (unknown tool, missing side channel, timeout,
exception inside the tool) comes back as a failed ToolOutcome so the model
can read the error and degrade gracefully.
"""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack

from chloe.config.logging import get_logger
from chloe.errors import MissingSideChannel, ToolExecutionFailed, ToolNotFound
from chloe.tools.base import SideChannel, Tool, ToolDefinition, ToolInvocation, ToolOutcome

logger = get_logger(__name__)


class ToolRegistry:
    """
    Holds the tools available to a bot instance.

    Args:
        timeout: Per-call execution timeout in seconds. None disables it.
    """

    def __init__(self, timeout: float | None = 30.0):
        self._tools: dict[str, Tool] = {}
        self._timeout = timeout
        self._exit_stack: AsyncExitStack | None = None

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def catalog(self) -> list[ToolDefinition]:
        """Definitions of every registered tool, in registration order."""
        return [tool.definition() for tool in self._tools.values()]

    def needs_result_feedback(self, name: str) -> bool:
        """Whether a call to ``name`` leads to another provider round. Unknown tools do."""
        tool = self._tools.get(name)
        return True if tool is None else tool.needs_result_feedback

    async def execute(
        self,
        invocation: ToolInvocation,
        side_channel: SideChannel | None = None,
    ) -> ToolOutcome:
        """
        Execute one invocation.

        Returns:
            ToolOutcome; ``succeeded`` is False for every failure mode
        """
        tool = self._tools.get(invocation.name)
        if tool is None:
            error = ToolNotFound(invocation.name)
            logger.warning(error.message)
            return self._failed(invocation, error.message)

        if tool.needs_side_channel and side_channel is None:
            error = MissingSideChannel(invocation.name)
            logger.warning(error.message)
            return self._failed(invocation, error.message)

        logger.info(f"Executing tool '{invocation.name}' ({invocation.id})")
        try:
            result = await asyncio.wait_for(
                tool.execute(invocation.parameters, side_channel),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Tool '{invocation.name}' timed out after {self._timeout}s")
            return self._failed(invocation, f"Tool '{invocation.name}' timed out after {self._timeout}s")
        except ToolExecutionFailed as e:
            logger.warning(f"Tool '{invocation.name}' failed: {e.message}")
            return self._failed(invocation, e.message)
        except Exception as e:
            logger.error(f"Tool '{invocation.name}' raised unexpectedly: {e}", exc_info=True)
            return self._failed(invocation, f"Tool '{invocation.name}' failed: {e}")

        return ToolOutcome(id=invocation.id, succeeded=True, result_text=result)

    @staticmethod
    def _failed(invocation: ToolInvocation, error_text: str) -> ToolOutcome:
        return ToolOutcome(id=invocation.id, succeeded=False, error_text=error_text)

    async def __aenter__(self):
        """Initialize every registered tool; shut them down in reverse on exit."""
        self._exit_stack = AsyncExitStack()
        await self._exit_stack.__aenter__()
        try:
            for tool in self._tools.values():
                await self._exit_stack.enter_async_context(tool)
        except BaseException:
            await self._exit_stack.aclose()
            self._exit_stack = None
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
            self._exit_stack = None
        return False
