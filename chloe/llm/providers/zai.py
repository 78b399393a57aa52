"""z.AI GLM models through their OpenAI-compatible endpoint."""

from chloe.llm.providers.openai_compatible import OpenAICompatibleProvider

VISION_MODELS = frozenset({"GLM-4.5V"})


class ZaiProvider(OpenAICompatibleProvider):
    PROVIDER_NAME = "z.ai"
    # LiteLLM's generic OpenAI route pointed at z.AI's base URL
    ROUTE_PREFIX = "openai/"
    API_BASE = "https://api.z.ai/api/coding/paas/v4"
    DEFAULT_MODEL = "GLM-4.5"
    DEFAULT_TEMPERATURE = 0.7
    DEFAULT_MAX_TOKENS = 8192
    AVAILABLE_MODELS = ("GLM-4.5", "GLM-4.5-Air", "GLM-4.5V")

    def model_supports_images(self, model: str) -> bool:
        return model in VISION_MODELS
