"""
Data models for the LLM layer.

Provider-neutral request/response types passed between the orchestrator and
provider adapters, plus the TurnResult the orchestrator hands to callers.
"""

from __future__ import annotations

import base64
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from chloe.tools.base import ToolDefinition, ToolInvocation


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ImageData(BaseModel):
    """Base64-encoded image with its MIME type."""

    model_config = ConfigDict(frozen=True)

    base64_data: str
    mime_type: str = "image/png"

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64_data}"

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str = "image/png") -> ImageData:
        return cls(base64_data=base64.b64encode(data).decode("ascii"), mime_type=mime_type)

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.base64_data)

    @property
    def extension(self) -> str:
        """File extension for attachments (``image/jpeg`` -> ``jpeg``)."""
        return self.mime_type.split("/", 1)[-1].split("+", 1)[0] or "png"


class LLMMessage(BaseModel):
    """One message in a chat request."""

    role: Role
    content: str | None = None
    # Assistant messages that requested a tool
    tool_call: ToolInvocation | None = None
    # Tool messages answering a tool call
    tool_call_id: str | None = None

    @classmethod
    def system(cls, content: str) -> LLMMessage:
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> LLMMessage:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str | None = None, tool_call: ToolInvocation | None = None) -> LLMMessage:
        return cls(role=Role.ASSISTANT, content=content, tool_call=tool_call)

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> LLMMessage:
        return cls(role=Role.TOOL, content=content, tool_call_id=tool_call_id)


class ChatRequest(BaseModel):
    """
    Provider-neutral chat completion request.

    ``images`` are attached to the last user message by adapters that support
    vision; adapters that don't ignore them.
    """

    messages: list[LLMMessage]
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    tools: list[ToolDefinition] | None = None
    tool_choice: str | None = None
    images: list[ImageData] = Field(default_factory=list)


class TokenUsage(BaseModel):
    """Token consumption for a request or a whole turn."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
        )


class ChatResponse(BaseModel):
    """
    Provider-neutral chat completion response.

    At most one tool call is carried; providers that return several keep the
    first.
    """

    text: str | None = None
    tool_call: ToolInvocation | None = None
    finish_reason: str | None = None
    usage: TokenUsage | None = None
    model: str | None = None
    safety_blocked: bool = False
    block_reason: str | None = None


class TurnState(str, Enum):
    """How a turn ended."""

    COMPLETED = "completed"
    SAFETY_BLOCKED = "safety_blocked"
    DEPTH_EXCEEDED = "depth_exceeded"
    FAILED = "failed"


class ToolCallRecord(BaseModel):
    """A tool call made during a turn, for logging and the caller."""

    name: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    succeeded: bool
    result_text: str


class TurnResult(BaseModel):
    """
    Output of one orchestrated turn.

    Attributes:
        state: Terminal state the turn ended in
        text: Final text with image markers stripped and markdown escaped
        raw_text: Final text as produced (markers intact)
        images: Images extracted from the final text
        delivered: True when the text already reached the user through the
            side channel, so the caller must not post it again
        tool_calls: Every tool executed during the turn
        depth_used: Number of tool calls the turn consumed
        usage: Token usage summed over every provider call
    """

    state: TurnState
    text: str = ""
    raw_text: str = ""
    images: list[ImageData] = Field(default_factory=list)
    delivered: bool = False
    tool_calls: list[ToolCallRecord] = Field(default_factory=list)
    depth_used: int = 0
    usage: TokenUsage = Field(default_factory=TokenUsage)
    model: str = ""
