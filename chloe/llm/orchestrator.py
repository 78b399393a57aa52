"""
Orchestrator: the bounded tool-calling loop for one conversational turn.

Data flow:
    ConversationContext → PromptBuilder → system prompt
                                  ↓
    Orchestrator.run_turn() → LLMProvider.generate()  ←→  ToolRegistry.execute()
                                  ↓
                             TurnResult → Discord bot layer

Per provider response:

- safety block        → canned refusal, SAFETY_BLOCKED
- text, no tool call  → with the tool-only policy the text is turned into a
                        send-message call; otherwise the turn completes
- tool call           → executed once (by id). A tool without result
                        feedback ends the turn with its output. Otherwise
                        the outcome goes back to the provider and the loop
                        continues, one depth step per call.

The depth counter is explicit and decremented per tool call, so a model that
keeps requesting tools stops after ``max_tool_depth`` calls (DEPTH_EXCEEDED)
and the user is told. Provider failures end the turn with a single apology
(FAILED). A turn never ends silently.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from chloe.config.logging import get_logger
from chloe.config.settings import OrchestratorSettings
from chloe.context.models import ConversationContext
from chloe.context.prompt import PromptBuilder
from chloe.errors import ChloeError, RateLimiterTimeout, SafetyBlocked, ToolCallDepthExceeded
from chloe.llm.models import (
    ChatRequest,
    ChatResponse,
    ImageData,
    LLMMessage,
    TokenUsage,
    ToolCallRecord,
    TurnResult,
    TurnState,
)
from chloe.llm.providers.base import LLMProvider
from chloe.text.markdown import escape_markdown
from chloe.text.sanitizer import extract_image_markers, truncate_for_discord
from chloe.tools.base import SideChannel, ToolDefinition, ToolInvocation, ToolOutcome
from chloe.tools.names import ToolName
from chloe.tools.registry import ToolRegistry
from chloe.utils.rate_limiter import RateLimiter

logger = get_logger(__name__)

SAFETY_REFUSAL = "Sorry, I can't help with that one."
APOLOGY = "Sorry, something went wrong on my end while answering. Please try again in a moment."
DEPTH_NOTICE = "I got a bit carried away using tools there and had to stop. Could you try asking again?"


def reconcile(initial: str, final: str) -> str:
    """
    Merge text sent early in the turn with the final answer.

    The final text wins outright when it already contains the early fragment;
    otherwise both are kept, separated by a blank line.
    """
    if not initial:
        return final
    if not final or initial == final:
        return initial
    if initial in final:
        return final
    return f"{initial}\n\n{final}"


@dataclass
class _TurnProgress:
    """Mutable bookkeeping for one run_turn call."""

    remaining_depth: int
    usage: TokenUsage = field(default_factory=TokenUsage)
    records: list[ToolCallRecord] = field(default_factory=list)
    executed: dict[str, ToolOutcome] = field(default_factory=dict)
    initial_text: str = ""
    model: str = ""


class Orchestrator:
    """
    Runs turns against one provider and tool registry.

    Args:
        provider: LLM backend
        registry: Tools available to the model
        prompt_builder: Renders the system prompt from the context
        rate_limiter: Gate for every provider call (keyed by channel)
        settings: Depth cap, tool-only policy, limiter retries
    """

    def __init__(
        self,
        provider: LLMProvider,
        registry: ToolRegistry,
        prompt_builder: PromptBuilder,
        rate_limiter: RateLimiter | None = None,
        settings: OrchestratorSettings | None = None,
    ):
        self._provider = provider
        self._registry = registry
        self._prompt_builder = prompt_builder
        self._rate_limiter = rate_limiter
        self._settings = settings or OrchestratorSettings()

    def _tool_only(self, side_channel: SideChannel | None) -> bool:
        return (
            self._settings.tool_only
            and self._provider.supports_tools
            and self._registry.has_tool(ToolName.SEND_MESSAGE.value)
            and side_channel is not None
        )

    def _catalog(self) -> list[ToolDefinition]:
        return self._registry.catalog() if self._provider.supports_tools else []

    async def run_turn(
        self,
        context: ConversationContext,
        side_channel: SideChannel | None = None,
    ) -> TurnResult:
        """
        Answer one conversational turn.

        Never raises for provider or tool failures; those end in a FAILED
        result carrying an apology.
        """
        catalog = self._catalog()
        messages = [
            LLMMessage.system(self._prompt_builder.build(context, catalog)),
            LLMMessage.user(f"{context.current_speaker}: {context.current_text}"),
        ]
        progress = _TurnProgress(remaining_depth=self._settings.max_tool_depth)
        tool_only = self._tool_only(side_channel)
        key = f"channel:{context.channel_id}"

        logger.info(
            f"Turn for message {context.message_id} in channel {context.channel_id} "
            f"({len(catalog)} tools, tool-only: {tool_only})"
        )

        try:
            response = await self._call_provider(messages, catalog, context, key, progress)

            while True:
                if response.safety_blocked:
                    raise SafetyBlocked(response.block_reason)

                text = (response.text or "").strip()
                invocation = response.tool_call

                if invocation is None:
                    if not (text and tool_only):
                        final = reconcile(progress.initial_text, text)
                        if not final:
                            logger.warning(f"Turn {context.message_id} produced no answer")
                            return await self._canned(TurnState.FAILED, APOLOGY, side_channel, progress)
                        delivered = False
                        if progress.initial_text:
                            # Part of the answer is already in the channel; post the rest here
                            delivered = text in ("", progress.initial_text) or await self._deliver(text, side_channel)
                        return self._result(TurnState.COMPLETED, final, delivered, progress)
                    logger.info("Model answered with raw text; delivering it through the send-message tool")
                    invocation = ToolInvocation(
                        id=f"auto-{uuid.uuid4().hex[:12]}",
                        name=ToolName.SEND_MESSAGE.value,
                        parameters={"content": text},
                    )
                    text = ""

                if progress.remaining_depth <= 0:
                    logger.warning(f"Not executing '{invocation.name}': depth exhausted")
                    raise ToolCallDepthExceeded(self._settings.max_tool_depth)
                progress.remaining_depth -= 1

                if text and invocation.name == ToolName.SEND_MESSAGE.value:
                    invocation = self._merge_into_send(invocation, text)
                    text = ""

                feedback = self._registry.needs_result_feedback(invocation.name)
                if text and feedback:
                    await self._send_early(text, side_channel, progress)

                outcome = await self._execute(invocation, side_channel, progress)

                if not feedback:
                    if outcome.succeeded:
                        return await self._finish_after_tool(invocation, text, outcome, side_channel, progress)
                    # The model gets the error and another chance to answer
                    if text:
                        await self._send_early(text, side_channel, progress)

                messages.append(LLMMessage.assistant(text or None, tool_call=invocation))
                messages.append(LLMMessage.tool(invocation.id, outcome.feedback_text))
                response = await self._call_provider(messages, catalog, context, key, progress)

        except SafetyBlocked as e:
            logger.warning(f"Turn {context.message_id}: {e.message}")
            return await self._canned(TurnState.SAFETY_BLOCKED, SAFETY_REFUSAL, side_channel, progress)
        except ToolCallDepthExceeded as e:
            logger.warning(f"Turn {context.message_id}: {e.message}")
            return await self._canned(TurnState.DEPTH_EXCEEDED, DEPTH_NOTICE, side_channel, progress)
        except ChloeError as e:
            logger.error(f"Turn {context.message_id} failed: {e.message}", exc_info=e.cause is not None)
            return await self._canned(TurnState.FAILED, APOLOGY, side_channel, progress)

    async def _call_provider(
        self,
        messages: list[LLMMessage],
        catalog: list[ToolDefinition],
        context: ConversationContext,
        key: str,
        progress: _TurnProgress,
    ) -> ChatResponse:
        request = ChatRequest(
            messages=list(messages),
            tools=catalog or None,
            images=self._request_images(context),
        )

        retries = 0
        while True:
            try:
                if self._rate_limiter is None:
                    response = await self._provider.generate(request)
                else:
                    async with self._rate_limiter.acquire(key):
                        response = await self._provider.generate(request)
                break
            except RateLimiterTimeout:
                if retries >= self._settings.rate_limit_retries:
                    raise
                retries += 1
                logger.warning(f"Rate limiter wait timed out for {key}; retry {retries}")

        if response.usage is not None:
            progress.usage = progress.usage + response.usage
        if response.model:
            progress.model = response.model
        return response

    def _request_images(self, context: ConversationContext) -> list[ImageData]:
        if not self._provider.supports_images:
            return []
        images = list(context.current_images)
        if context.replied_to_message is not None:
            images += context.replied_to_message.images
        return images[: self._settings.max_images]

    async def _execute(
        self,
        invocation: ToolInvocation,
        side_channel: SideChannel | None,
        progress: _TurnProgress,
    ) -> ToolOutcome:
        cached = progress.executed.get(invocation.id)
        if cached is not None:
            logger.warning(f"Tool call {invocation.id} ({invocation.name}) repeated; reusing its outcome")
            return cached

        outcome = await self._registry.execute(invocation, side_channel)
        progress.executed[invocation.id] = outcome
        progress.records.append(ToolCallRecord(
            name=invocation.name,
            parameters=dict(invocation.parameters),
            succeeded=outcome.succeeded,
            result_text=outcome.feedback_text,
        ))
        return outcome

    @staticmethod
    def _merge_into_send(invocation: ToolInvocation, text: str) -> ToolInvocation:
        """Fold provider text that came with a send-message call into its content."""
        content = invocation.parameters.get("content")
        merged = reconcile(text, content) if isinstance(content, str) and content else text
        return ToolInvocation(
            id=invocation.id,
            name=invocation.name,
            parameters={**invocation.parameters, "content": merged},
        )

    async def _deliver(self, content: str, side_channel: SideChannel | None) -> bool:
        """Post text to the conversation. Returns False when it could not be posted."""
        if side_channel is None:
            return False

        if self._registry.has_tool(ToolName.SEND_MESSAGE.value):
            invocation = ToolInvocation(
                id=f"notice-{uuid.uuid4().hex[:12]}",
                name=ToolName.SEND_MESSAGE.value,
                parameters={"content": content},
            )
            outcome = await self._registry.execute(invocation, side_channel)
            if not outcome.succeeded:
                logger.error(f"Could not deliver message: {outcome.error_text}")
            return outcome.succeeded

        try:
            await side_channel.send_message(truncate_for_discord(escape_markdown(content)))
        except Exception as e:
            logger.error(f"Could not deliver message: {e}")
            return False
        return True

    async def _send_early(self, text: str, side_channel: SideChannel | None, progress: _TurnProgress) -> None:
        """Send text the model wrote alongside a tool call without waiting for the tool."""
        if await self._deliver(text, side_channel):
            progress.initial_text = reconcile(progress.initial_text, text)

    async def _finish_after_tool(
        self,
        invocation: ToolInvocation,
        text: str,
        outcome: ToolOutcome,
        side_channel: SideChannel | None,
        progress: _TurnProgress,
    ) -> TurnResult:
        """End the turn after a successful tool whose result the model never sees."""
        if invocation.name == ToolName.SEND_MESSAGE.value:
            final = reconcile(progress.initial_text, outcome.result_text)
            return self._result(TurnState.COMPLETED, final, True, progress)

        if invocation.name == ToolName.ADD_REACTION.value:
            # The reaction itself is the visible answer
            new_text = text
        else:
            new_text = reconcile(text, outcome.result_text)

        if not new_text:
            delivered = True
        elif progress.initial_text:
            delivered = await self._deliver(new_text, side_channel)
        else:
            delivered = False
        return self._result(TurnState.COMPLETED, reconcile(progress.initial_text, new_text), delivered, progress)

    async def _canned(
        self,
        state: TurnState,
        message: str,
        side_channel: SideChannel | None,
        progress: _TurnProgress,
    ) -> TurnResult:
        delivered = await self._deliver(message, side_channel)
        return self._result(state, message, delivered, progress)

    def _result(self, state: TurnState, raw_text: str, delivered: bool, progress: _TurnProgress) -> TurnResult:
        clean, images = extract_image_markers(raw_text)
        result = TurnResult(
            state=state,
            text=escape_markdown(clean),
            raw_text=raw_text,
            images=images,
            delivered=delivered,
            tool_calls=list(progress.records),
            depth_used=self._settings.max_tool_depth - progress.remaining_depth,
            usage=progress.usage,
            model=progress.model,
        )
        logger.info(
            f"Turn finished: {state.value}, {result.depth_used} tool calls, "
            f"{result.usage.total_tokens} tokens, delivered: {delivered}"
        )
        return result
