"""
LiteLLM-backed provider shared by every vendor adapter.

All supported vendors speak the OpenAI chat-completions dialect, and LiteLLM
routes the request by model prefix (``groq/...``, ``openrouter/...``) or by an
explicit ``api_base``. Vendor subclasses only declare their route, defaults
and model list.

Failure classification (by HTTP status where the exception carries one):

    401/403                  → AuthenticationFailed
    400/422                  → InvalidRequest
    404                      → ModelNotAvailable
    429                      → RateLimitExceeded        (retried)
    408/500/502/503/504      → ProviderError(transient) (retried)
    timeout / connection     → ProviderError(transient) (retried)
    "over capacity" bodies   → ProviderError(transient) (retried)
    anything else            → ProviderError

Retries use exponential backoff (1s, 2s, 4s with the defaults).
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, ClassVar

import httpx
from litellm import acompletion
from litellm.exceptions import ContentPolicyViolationError

from chloe.config.logging import get_logger
from chloe.errors import (
    AuthenticationFailed,
    InvalidRequest,
    LLMError,
    ModelNotAvailable,
    ProviderError,
    RateLimitExceeded,
)
from chloe.llm.models import ChatRequest, ChatResponse, LLMMessage, Role, TokenUsage
from chloe.llm.providers.base import LLMProvider
from chloe.tools.base import ToolInvocation

logger = get_logger(__name__)

TRANSIENT_STATUS_CODES = frozenset({408, 500, 502, 503, 504})
TRANSIENT_MARKERS = ("over capacity", "Please try again")


class OpenAICompatibleProvider(LLMProvider):
    """
    Base for vendors reached through LiteLLM's OpenAI-compatible routing.

    Args:
        api_key: Vendor API key (required)
        model: Model name as the vendor knows it; None uses DEFAULT_MODEL
        temperature: Overrides DEFAULT_TEMPERATURE
        max_tokens: Overrides DEFAULT_MAX_TOKENS
        timeout: Per-request timeout in seconds
        max_retries: Retries for retryable failures
        backoff_base: First retry delay in seconds, doubled per retry

    Raises:
        AuthenticationFailed: If api_key is empty
        ModelNotAvailable: If the model is not offered by the vendor
    """

    PROVIDER_NAME: ClassVar[str]
    ROUTE_PREFIX: ClassVar[str]
    API_BASE: ClassVar[str | None] = None
    DEFAULT_MODEL: ClassVar[str]
    DEFAULT_TEMPERATURE: ClassVar[float] = 0.7
    DEFAULT_MAX_TOKENS: ClassVar[int] = 8192
    AVAILABLE_MODELS: ClassVar[tuple[str, ...]] = ()
    SUPPORTS_TOOLS: ClassVar[bool] = True
    SUPPORTS_IMAGES: ClassVar[bool] = False

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        timeout: float = 60.0,
        max_retries: int = 3,
        backoff_base: float = 1.0,
    ):
        if not api_key:
            raise AuthenticationFailed(f"{self.PROVIDER_NAME} API key not configured")

        self._api_key = api_key
        self._model = model or self.DEFAULT_MODEL
        self._temperature = self.DEFAULT_TEMPERATURE if temperature is None else temperature
        self._max_tokens = max_tokens or self.DEFAULT_MAX_TOKENS
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff_base = backoff_base

        self.validate_model(self._model)
        logger.info(f"{self.PROVIDER_NAME} provider ready (model: {self._model})")

    @property
    def name(self) -> str:
        return self.PROVIDER_NAME

    @property
    def supports_tools(self) -> bool:
        return self.SUPPORTS_TOOLS

    @property
    def supports_images(self) -> bool:
        return self.model_supports_images(self._model)

    def model_supports_images(self, model: str) -> bool:
        return self.SUPPORTS_IMAGES

    @property
    def default_model(self) -> str:
        return self._model

    @property
    def available_models(self) -> list[str]:
        return list(self.AVAILABLE_MODELS)

    def route(self, model: str) -> str:
        """LiteLLM model string for a vendor model name."""
        return f"{self.ROUTE_PREFIX}{model}"

    # -- request building ---------------------------------------------------

    def _serialize_messages(self, request: ChatRequest, model: str) -> list[dict[str, Any]]:
        messages = [self._serialize_message(m) for m in request.messages]

        if request.images:
            if not self.model_supports_images(model):
                logger.warning(
                    f"{self.name} ({model}) does not support image inputs - ignoring {len(request.images)} images"
                )
            else:
                for message in reversed(messages):
                    if message["role"] == Role.USER.value:
                        parts: list[dict[str, Any]] = [{"type": "text", "text": message["content"] or ""}]
                        parts += [
                            {"type": "image_url", "image_url": {"url": image.data_url}}
                            for image in request.images
                        ]
                        message["content"] = parts
                        break

        return messages

    @staticmethod
    def _serialize_message(message: LLMMessage) -> dict[str, Any]:
        if message.role == Role.TOOL:
            return {
                "role": "tool",
                "tool_call_id": message.tool_call_id,
                "content": message.content or "",
            }
        if message.role == Role.ASSISTANT and message.tool_call is not None:
            return {
                "role": "assistant",
                "content": message.content,
                "tool_calls": [
                    {
                        "id": message.tool_call.id,
                        "type": "function",
                        "function": {
                            "name": message.tool_call.name,
                            "arguments": json.dumps(message.tool_call.parameters),
                        },
                    }
                ],
            }
        return {"role": message.role.value, "content": message.content or ""}

    def _build_kwargs(self, request: ChatRequest, model: str) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.route(model),
            "messages": self._serialize_messages(request, model),
            "temperature": self._temperature if request.temperature is None else request.temperature,
            "max_tokens": request.max_tokens or self._max_tokens,
            "api_key": self._api_key,
            "timeout": self._timeout,
            # Retries and backoff are handled by generate()
            "num_retries": 0,
            "max_retries": 0,
        }
        if self.API_BASE:
            kwargs["api_base"] = self.API_BASE

        if request.tools and self.supports_tools:
            kwargs["tools"] = [tool.to_openai() for tool in request.tools]
            kwargs["tool_choice"] = request.tool_choice or "auto"
        return kwargs

    # -- response handling --------------------------------------------------

    def _convert_response(self, response: Any, model: str) -> ChatResponse:
        if not response.choices:
            raise ProviderError(f"{self.name} returned no choices")

        choice = response.choices[0]
        message = choice.message
        finish_reason = choice.finish_reason

        usage = None
        if response.usage is not None:
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens or 0,
                completion_tokens=response.usage.completion_tokens or 0,
            )
        model_name = response.model or model

        if finish_reason == "content_filter":
            logger.warning(f"{self.name} response blocked by content filter")
            return ChatResponse(
                finish_reason=finish_reason,
                usage=usage,
                model=model_name,
                safety_blocked=True,
                block_reason="content_filter",
            )

        tool_call = None
        if message.tool_calls:
            if len(message.tool_calls) > 1:
                logger.warning(
                    f"{self.name} returned {len(message.tool_calls)} tool calls; only the first is used"
                )
            raw = message.tool_calls[0]
            tool_call = ToolInvocation(
                id=raw.id,
                name=raw.function.name,
                parameters=self._parse_arguments(raw.function.arguments),
            )

        return ChatResponse(
            text=message.content or None,
            tool_call=tool_call,
            finish_reason=finish_reason,
            usage=usage,
            model=model_name,
        )

    @staticmethod
    def _parse_arguments(arguments: Any) -> dict[str, Any]:
        if isinstance(arguments, dict):
            return arguments
        if not arguments:
            return {}
        try:
            parsed = json.loads(arguments)
        except json.JSONDecodeError:
            logger.warning(f"Tool call arguments are not valid JSON: {arguments[:200]}")
            return {}
        return parsed if isinstance(parsed, dict) else {}

    def _classify(self, exc: Exception, model: str) -> LLMError:
        status = getattr(exc, "status_code", None)
        if not isinstance(status, int):
            status = None
        body = str(exc)

        if status in (401, 403):
            return AuthenticationFailed(f"{self.name} rejected the API key: {body}", cause=exc)
        if status in (400, 422):
            return InvalidRequest(f"{self.name} rejected the request: {body}", cause=exc)
        if status == 404:
            return ModelNotAvailable(model, provider=self.name, cause=exc)
        if status == 429:
            return RateLimitExceeded(f"{self.name} rate limit exceeded: {body}", cause=exc)

        exc_name = type(exc).__name__
        transient = (
            status in TRANSIENT_STATUS_CODES
            or isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException, httpx.TransportError))
            or "Timeout" in exc_name
            or "Connection" in exc_name
            or any(marker in body for marker in TRANSIENT_MARKERS)
        )
        return ProviderError(
            f"{self.name} API call failed: {body}",
            transient=transient,
            status_code=status,
            cause=exc,
        )

    async def generate(self, request: ChatRequest) -> ChatResponse:
        model = request.model or self._model
        self.validate_model(model)
        kwargs = self._build_kwargs(request, model)

        attempt = 0
        while True:
            try:
                response = await acompletion(**kwargs)
            except ContentPolicyViolationError as e:
                logger.warning(f"{self.name} refused the request on content policy: {e}")
                return ChatResponse(model=model, safety_blocked=True, block_reason=str(e))
            except Exception as e:
                error = self._classify(e, model)
                if error.retryable and attempt < self._max_retries:
                    delay = self._backoff_base * (2 ** attempt)
                    attempt += 1
                    logger.warning(
                        f"{self.name} call failed ({error.message}); retry {attempt}/{self._max_retries} in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error(f"{self.name} call failed after {attempt} retries: {error.message}")
                raise error from e

            return self._convert_response(response, model)
