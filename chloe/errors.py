"""
Error taxonomy shared by the provider, tool and orchestration layers.

Every error carries a ``retryable`` flag so call sites can decide between a
bounded retry and surfacing the failure:

    ChloeError
    ├── LLMError
    │   ├── AuthenticationFailed      terminal, raised at provider construction
    │   ├── RateLimitExceeded         retryable (HTTP 429)
    │   ├── ModelNotAvailable         terminal
    │   ├── InvalidRequest            terminal (HTTP 400/422)
    │   ├── ProviderError             transient or terminal
    │   └── SafetyBlocked             terminal for the turn
    ├── ToolError
    │   ├── ToolNotFound
    │   ├── ToolExecutionFailed
    │   └── MissingSideChannel
    ├── ToolCallDepthExceeded
    └── RateLimiterTimeout            retryable
"""

from __future__ import annotations


class ChloeError(Exception):
    """Base class for all errors raised by the engine."""

    retryable: bool = False

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class LLMError(ChloeError):
    """Raised when an LLM provider call fails."""


class AuthenticationFailed(LLMError):
    """The provider rejected (or we could not find) the API credential."""


class RateLimitExceeded(LLMError):
    retryable = True


class ModelNotAvailable(LLMError):
    def __init__(self, model: str, provider: str | None = None, cause: Exception | None = None):
        where = f" for provider '{provider}'" if provider else ""
        super().__init__(f"Model not available{where}: {model}", cause=cause)
        self.model = model
        self.provider = provider


class InvalidRequest(LLMError):
    """The provider refused the request as malformed."""


class ProviderError(LLMError):
    """
    Generic provider failure.

    ``transient`` marks capacity / server-side hiccups that are worth retrying;
    everything else is terminal.
    """

    def __init__(
        self,
        message: str,
        transient: bool = False,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.transient = transient
        self.status_code = status_code

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.transient


class SafetyBlocked(LLMError):
    def __init__(self, reason: str | None = None):
        super().__init__(f"Content blocked by provider safety filter: {reason or 'unspecified'}")
        self.reason = reason


class ToolError(ChloeError):
    """Raised for tool lookup and execution failures."""


class ToolNotFound(ToolError):
    def __init__(self, name: str):
        super().__init__(f"Tool '{name}' not found")
        self.name = name


class ToolExecutionFailed(ToolError):
    """A tool ran but could not complete its work."""


class MissingSideChannel(ToolError):
    def __init__(self, name: str):
        super().__init__(f"Tool '{name}' requires a side channel but none was provided")
        self.name = name


class ToolCallDepthExceeded(ChloeError):
    def __init__(self, max_depth: int):
        super().__init__(f"Tool call depth limit of {max_depth} reached")
        self.max_depth = max_depth


class RateLimiterTimeout(ChloeError):
    """Waiting for a rate limiter slot took longer than the configured deadline."""

    retryable = True

    def __init__(self, key: str, timeout: float):
        super().__init__(f"Timed out after {timeout:.1f}s waiting for rate limiter slot ({key})")
        self.key = key
        self.timeout = timeout
