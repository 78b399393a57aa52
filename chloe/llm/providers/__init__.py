"""
LLM provider adapters.

One adapter per vendor, all routed through LiteLLM:

- GroqProvider: tools, no images, fixed model list
- OpenRouterProvider: tools and images, any model name
- ZaiProvider: tools, images on GLM-4.5V, fixed model list
"""

from chloe.llm.providers.base import LLMProvider
from chloe.llm.providers.factory import ProviderFactory, create_provider
from chloe.llm.providers.groq import GroqProvider
from chloe.llm.providers.openrouter import OpenRouterProvider
from chloe.llm.providers.zai import ZaiProvider

__all__ = [
    "GroqProvider",
    "LLMProvider",
    "OpenRouterProvider",
    "ProviderFactory",
    "ZaiProvider",
    "create_provider",
]
