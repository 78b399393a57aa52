"""
Capability interface every LLM vendor adapter implements.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

from chloe.errors import ModelNotAvailable
from chloe.llm.models import ChatRequest, ChatResponse


class LLMProvider(ABC):
    """
    A chat-completion backend.

    Implementations are stateless apart from static configuration, so one
    instance is shared by every concurrent turn.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short vendor name used in logs and errors."""

    @property
    @abstractmethod
    def supports_tools(self) -> bool:
        pass

    @property
    @abstractmethod
    def supports_images(self) -> bool:
        """Whether the default model accepts image input."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        pass

    @property
    @abstractmethod
    def available_models(self) -> list[str]:
        pass

    @abstractmethod
    async def generate(self, request: ChatRequest) -> ChatResponse:
        """
        Send one chat-completion request.

        Raises:
            LLMError: A subclass describing the failure; retryable failures
                have already been retried by the time this raises
        """

    def validate_model(self, model: str) -> None:
        """Raise ModelNotAvailable if ``model`` is not offered by this provider."""
        if model not in self.available_models:
            raise ModelNotAvailable(model, provider=self.name)

    def model_supports_images(self, model: str) -> bool:
        return self.supports_images

    def estimate_tokens(self, text: str) -> int:
        """Rough token count (about four characters per token)."""
        return math.ceil(len(text) / 4)
