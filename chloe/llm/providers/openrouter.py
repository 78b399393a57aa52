"""OpenRouter (multi-vendor gateway, tools and images)."""

from chloe.config.logging import get_logger
from chloe.llm.providers.openai_compatible import OpenAICompatibleProvider

logger = get_logger(__name__)


class OpenRouterProvider(OpenAICompatibleProvider):
    """
    OpenRouter proxies hundreds of models and adds new ones constantly, so
    the model list below is only a hint: unknown names are accepted with a
    warning instead of being rejected.
    """

    PROVIDER_NAME = "openrouter"
    ROUTE_PREFIX = "openrouter/"
    DEFAULT_MODEL = "openai/gpt-4o-mini"
    DEFAULT_TEMPERATURE = 0.7
    DEFAULT_MAX_TOKENS = 8192
    AVAILABLE_MODELS = (
        "anthropic/claude-3.5-sonnet",
        "anthropic/claude-4-sonnet-20250522",
        "openai/gpt-4o",
        "openai/gpt-4o-mini",
        "openai/gpt-4.1-mini-2025-04-14",
        "google/gemini-2.5-flash",
        "google/gemini-2.0-flash-001",
        "google/gemini-2.5-pro",
        "x-ai/grok-code-fast-1",
        "z-ai/glm-4.5",
        "z-ai/glm-4.5v",
        "deepseek/deepseek-chat",
        "qwen/qwen-2.5-72b-instruct",
        "mistralai/mistral-small-3.2-24b-instruct-2506",
        "anthropic/claude-3-opus",
        "anthropic/claude-3-haiku",
        "openai/gpt-4-turbo",
        "meta-llama/llama-3.1-405b-instruct",
    )
    SUPPORTS_IMAGES = True

    def validate_model(self, model: str) -> None:
        if model not in self.AVAILABLE_MODELS:
            logger.warning(f"Model '{model}' is not in the known OpenRouter list; using it anyway")
