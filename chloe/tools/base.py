"""
Base classes for tools the model can call.

A Tool is a named capability with a JSON-schema parameter contract. Tools
that act on the chat platform (send a message, react) do so through a
SideChannel handle supplied per turn rather than holding a client themselves.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from chloe.errors import ToolExecutionFailed

if TYPE_CHECKING:
    from chloe.llm.models import ImageData


class ToolDefinition(BaseModel):
    """Catalog entry shown to the provider."""

    name: str
    description: str
    parameters: dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})

    def to_openai(self) -> dict[str, Any]:
        """OpenAI tool format, which LiteLLM accepts for every provider."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolInvocation(BaseModel):
    """A tool call requested by the model."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    parameters: dict[str, Any] = Field(default_factory=dict)


class ToolOutcome(BaseModel):
    """Result of executing one ToolInvocation."""

    id: str
    succeeded: bool
    result_text: str = ""
    error_text: str | None = None

    @property
    def feedback_text(self) -> str:
        """What the model is told about this call on the follow-up request."""
        if self.succeeded:
            return self.result_text
        return f"Error: {self.error_text or 'tool failed'}"


class SideChannel(ABC):
    """
    Handle on the conversation a turn belongs to.

    Implemented by the Discord layer; tests use a recording fake.
    """

    channel_id: int
    user_id: int
    message_id: int
    guild_id: int | None

    @abstractmethod
    async def send_message(
        self,
        content: str,
        reply: bool = True,
        images: Sequence[ImageData] = (),
    ) -> None:
        """Post a message to the channel, as a reply to the triggering message by default."""

    @abstractmethod
    async def add_reaction(self, emoji: str) -> None:
        """React to the triggering message."""

    @abstractmethod
    def custom_emojis(self) -> dict[str, str]:
        """Custom emoji of the current guild: name -> ``<:name:id>`` (or ``<a:name:id>``)."""


class Tool(ABC):
    """
    Abstract base class for tools.

    Subclasses set ``name``, ``description`` and ``parameters_schema`` and
    implement ``execute``. Expected failures (bad arguments, upstream API
    errors) should raise ToolExecutionFailed with a message the model can
    read; the registry turns any exception into a failed ToolOutcome.
    """

    name: str
    description: str
    parameters_schema: dict[str, Any] = {"type": "object", "properties": {}}

    # Tool acts on the platform and needs a SideChannel
    needs_side_channel: bool = False
    # Result is fed back to the model for another round; False ends the turn
    needs_result_feedback: bool = True

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters_schema,
        )

    @abstractmethod
    async def execute(
        self,
        parameters: dict[str, Any],
        side_channel: SideChannel | None = None,
    ) -> str:
        """
        Run the tool.

        Args:
            parameters: Arguments decoded from the model's tool call
            side_channel: Platform handle; only guaranteed when needs_side_channel

        Returns:
            Result text (fed back to the model, or delivered as the turn output
            for tools without result feedback)

        Raises:
            ToolExecutionFailed: For expected failures
        """

    async def initialize(self) -> None:
        """Acquire resources (HTTP clients etc.). No-op by default."""

    async def shutdown(self) -> None:
        """Release resources. No-op by default."""

    async def __aenter__(self):
        """Context manager entry - initialize the tool."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - shutdown the tool."""
        await self.shutdown()
        return False


def require_str(parameters: dict[str, Any], key: str) -> str:
    """Fetch a required non-empty string argument or fail the tool call."""
    value = parameters.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ToolExecutionFailed(f"Missing required parameter: {key}")
    return value
