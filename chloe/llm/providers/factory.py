"""
Provider selection from settings.

An explicit ``LLM_PROVIDER`` wins. Otherwise the first vendor with an API key
is used, in the order OpenRouter, z.AI, Groq.
"""

from __future__ import annotations

from chloe.config.logging import get_logger
from chloe.config.settings import LLMSettings
from chloe.errors import AuthenticationFailed, ChloeError
from chloe.llm.providers.base import LLMProvider
from chloe.llm.providers.groq import GroqProvider
from chloe.llm.providers.openai_compatible import OpenAICompatibleProvider
from chloe.llm.providers.openrouter import OpenRouterProvider
from chloe.llm.providers.zai import ZaiProvider

logger = get_logger(__name__)

_ALIASES: dict[str, type[OpenAICompatibleProvider]] = {
    "groq": GroqProvider,
    "zai": ZaiProvider,
    "z.ai": ZaiProvider,
    "openrouter": OpenRouterProvider,
    "or": OpenRouterProvider,
}

_KEY_FIELDS: dict[type[OpenAICompatibleProvider], str] = {
    GroqProvider: "groq_api_key",
    ZaiProvider: "zai_api_key",
    OpenRouterProvider: "openrouter_api_key",
}

# Auto-detection order when no provider is configured
_DETECTION_ORDER = (OpenRouterProvider, ZaiProvider, GroqProvider)


class ProviderFactory:
    """Builds the configured LLMProvider."""

    def __init__(self, settings: LLMSettings):
        self._settings = settings

    def resolve_class(self) -> type[OpenAICompatibleProvider]:
        """
        Pick the provider class.

        Raises:
            ChloeError: If LLM_PROVIDER names an unknown vendor
            AuthenticationFailed: If auto-detection finds no API key
        """
        configured = (self._settings.provider or "").strip().lower()
        if configured:
            provider_cls = _ALIASES.get(configured)
            if provider_cls is None:
                raise ChloeError(
                    f"Unknown LLM provider '{self._settings.provider}'. "
                    f"Expected one of: groq, zai, openrouter"
                )
            return provider_cls

        for provider_cls in _DETECTION_ORDER:
            if getattr(self._settings, _KEY_FIELDS[provider_cls]):
                logger.info(f"Auto-detected LLM provider from API key: {provider_cls.PROVIDER_NAME}")
                return provider_cls

        raise AuthenticationFailed(
            "No LLM API key configured. Set LLM__OPENROUTER_API_KEY, LLM__ZAI_API_KEY or LLM__GROQ_API_KEY."
        )

    def create(self) -> LLMProvider:
        """
        Construct the provider.

        Raises:
            AuthenticationFailed: Missing API key for the selected vendor
            ModelNotAvailable: Configured model not offered by the vendor
        """
        provider_cls = self.resolve_class()
        return provider_cls(
            api_key=getattr(self._settings, _KEY_FIELDS[provider_cls]),
            model=self._settings.model,
            temperature=self._settings.temperature,
            max_tokens=self._settings.max_tokens,
            timeout=self._settings.request_timeout,
            max_retries=self._settings.max_retries,
            backoff_base=self._settings.backoff_base,
        )


def create_provider(settings: LLMSettings) -> LLMProvider:
    return ProviderFactory(settings).create()
