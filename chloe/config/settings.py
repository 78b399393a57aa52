"""
Application settings and configuration management.

Uses Pydantic Settings for validation and environment variable support.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PROMPT_PATH = Path(__file__).parent.parent / "prompts" / "system.txt"


class BotSettings(BaseSettings):
    """Discord bot configuration."""

    name: str = Field(default="Chloe", description="Bot display name")
    persona_name: str = Field(
        default="Chloe",
        description="Name the bot's own messages are attributed to in conversation context",
    )
    command_prefix: str = Field(default="!", description="Command prefix for bot commands")
    token: str = Field(default="", description="Discord bot token")
    allowed_channel_ids: list[int] = Field(
        default_factory=list,
        description="If non-empty, bot only responds in these channel IDs. "
                    "Set via BOT__ALLOWED_CHANNEL_IDS='[123456,789012]'",
    )
    trigger_words: list[str] = Field(
        default_factory=lambda: ["chloe"],
        description="Case-insensitive words that make the bot answer without a mention",
    )
    unsolicited_reply_chance: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Probability of chiming in on a message that did not address the bot",
    )

    model_config = SettingsConfigDict(env_prefix="BOT_")


class LLMSettings(BaseSettings):
    """LLM provider configuration."""

    provider: str | None = Field(
        default=None,
        description="Explicit provider: 'groq', 'zai' (or 'z.ai'), 'openrouter' (or 'or'). "
                    "If unset, the provider is picked from whichever API key is available "
                    "(OpenRouter > z.AI > Groq).",
    )
    model: str | None = Field(
        default=None,
        description="Model name as the vendor knows it. None uses the provider default.",
    )
    temperature: float | None = Field(default=None, description="Override provider temperature")
    max_tokens: int | None = Field(default=None, description="Override provider max tokens")
    request_timeout: float = Field(default=60.0, description="Per-request timeout in seconds")
    max_retries: int = Field(default=3, ge=0, description="Retries for transient provider errors")
    backoff_base: float = Field(
        default=1.0, description="First retry delay in seconds; doubles on each retry"
    )

    groq_api_key: str = Field(default="", description="Groq API key")
    openrouter_api_key: str = Field(default="", description="OpenRouter API key")
    zai_api_key: str = Field(default="", description="z.AI API key")

    model_config = SettingsConfigDict(env_prefix="LLM_")


class OrchestratorSettings(BaseSettings):
    """Tool-calling loop configuration."""

    max_tool_depth: int = Field(default=5, ge=1, description="Maximum tool calls per turn")
    tool_only: bool = Field(
        default=True,
        description="Require the model to answer through the send-message tool. "
                    "Raw text answers are converted into a send-message call.",
    )
    tool_timeout: float = Field(default=30.0, description="Per-tool execution timeout in seconds")
    rate_limit_retries: int = Field(
        default=2, ge=0, description="Retries when waiting for a rate limiter slot times out"
    )
    max_images: int = Field(
        default=4, ge=0, description="Images sent per provider call (current message first, then the replied-to one)"
    )

    model_config = SettingsConfigDict(env_prefix="ORCHESTRATOR_")


class ContextSettings(BaseSettings):
    """Conversation context assembly configuration."""

    max_reply_chain: int = Field(default=15, ge=1, description="Reply-chain depth bound")
    supplement_threshold: int = Field(
        default=8, ge=0, description="Fetch channel history when the reply chain is shorter"
    )
    history_fetch_limit: int = Field(default=20, ge=1, description="Channel messages to fetch")
    history_max_messages: int = Field(
        default=8, ge=0, description="Maximum channel messages added to the context"
    )

    model_config = SettingsConfigDict(env_prefix="CONTEXT_")


class RateLimitSettings(BaseSettings):
    """Outbound call pacing."""

    llm_max_concurrent: int = Field(default=5, ge=1)
    llm_min_interval_ms: int = Field(default=200, ge=0)
    api_max_concurrent: int = Field(default=10, ge=1)
    api_min_interval_ms: int = Field(default=100, ge=0)
    acquire_timeout: float | None = Field(
        default=30.0, description="Seconds to wait for a slot before giving up. None waits forever."
    )

    model_config = SettingsConfigDict(env_prefix="RATE_LIMIT_")


class ToolSettings(BaseSettings):
    """External tool configuration."""

    exa_api_key: str = Field(default="", description="Exa search API key (web_search tool)")
    search_results: int = Field(default=5, ge=1, description="Results returned by web_search")
    fetch_timeout: float = Field(default=30.0, description="fetch tool HTTP timeout in seconds")
    fetch_max_chars: int = Field(default=50_000, description="fetch tool body truncation")
    image_model: str = Field(
        default="gemini/imagen-3.0-generate-002",
        description="LiteLLM image generation model string",
    )
    image_api_key: str = Field(default="", description="API key for the image model's provider")

    model_config = SettingsConfigDict(env_prefix="TOOL_")


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: Literal["development", "production"] = Field(
        default="development", description="Deployment environment"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_file: Path | None = Field(default=None, description="Log file path")

    prompt_path: Path = Field(
        default=DEFAULT_PROMPT_PATH, description="File holding the base system prompt"
    )

    # Sub-configurations
    bot: BotSettings = Field(default_factory=BotSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    orchestrator: OrchestratorSettings = Field(default_factory=OrchestratorSettings)
    context: ContextSettings = Field(default_factory=ContextSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    tools: ToolSettings = Field(default_factory=ToolSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings(env_file: str | Path | None = None) -> Settings:
    """
    Load settings from file and environment.

    Args:
        env_file: Path to .env file (optional)

    Returns:
        Loaded settings instance
    """
    global _settings
    if env_file:
        _settings = Settings(_env_file=env_file)
    else:
        _settings = Settings()
    return _settings
