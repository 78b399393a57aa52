"""
LLM Orchestration Layer.

Manages chat-completion calls through provider adapters (Groq, OpenRouter,
z.AI via LiteLLM), the tool-calling loop and reconciliation of the final
answer.

    ContextBuilder → ConversationContext
                          ↓
    Orchestrator.run_turn(context, side_channel)
                          ↓
    LLMProvider.generate() ←→ ToolRegistry.execute() (bounded loop)
                          ↓
                     TurnResult → Discord bot formats and sends

The orchestrator is stateless per turn; conversation memory comes entirely
from the context the builder assembles out of the channel.
"""

from chloe.llm.models import (
    ChatRequest,
    ChatResponse,
    ImageData,
    LLMMessage,
    Role,
    TokenUsage,
    TurnResult,
    TurnState,
)

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "ImageData",
    "LLMMessage",
    "Role",
    "TokenUsage",
    "TurnResult",
    "TurnState",
]
