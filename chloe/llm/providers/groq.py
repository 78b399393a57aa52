"""Groq (OpenAI-compatible, text only)."""

from chloe.llm.providers.openai_compatible import OpenAICompatibleProvider


class GroqProvider(OpenAICompatibleProvider):
    PROVIDER_NAME = "groq"
    ROUTE_PREFIX = "groq/"
    DEFAULT_MODEL = "moonshotai/kimi-k2-instruct-0905"
    DEFAULT_TEMPERATURE = 1.8
    DEFAULT_MAX_TOKENS = 8192
    AVAILABLE_MODELS = (
        "llama-3.3-70b-versatile",
        "llama-3.1-8b-instant",
        "openai/gpt-oss-120b",
        "openai/gpt-oss-20b",
        "meta-llama/llama-guard-4-12b",
        "llama-3-groq-70b-8192-tool-use-preview",
        "llama-3-groq-8b-8192-tool-use-preview",
        "moonshotai/kimi-k2-instruct-0905",
    )
    SUPPORTS_IMAGES = False
