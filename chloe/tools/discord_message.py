"""
Send a message to the conversation the turn belongs to.

This is the tool the model is required to answer through. Its content is
cleaned (literal ``\\n``, escaped mentions, leaked reasoning), inline images
are split off into attachments, and the rest is markdown-escaped and
truncated to fit a Discord message.
"""

from __future__ import annotations

from typing import Any

from chloe.config.logging import get_logger
from chloe.errors import ToolExecutionFailed
from chloe.text.markdown import escape_markdown
from chloe.text.sanitizer import (
    extract_image_markers,
    normalize_outbound,
    strip_leaked_reasoning,
    truncate_for_discord,
)
from chloe.tools.base import SideChannel, Tool
from chloe.tools.names import ToolName

logger = get_logger(__name__)


def prepare_outbound(raw_content: str) -> str:
    """Clean model-written message content before it is escaped."""
    content = normalize_outbound(raw_content)
    cleaned = strip_leaked_reasoning(content)
    if cleaned != content.rstrip():
        logger.warning(
            f"Removed leaked reasoning from message content ({len(content)} -> {len(cleaned)} chars)"
        )
    return cleaned


class SendMessageTool(Tool):
    name = ToolName.SEND_MESSAGE.value
    description = (
        "Send a message to Discord. This is the PRIMARY and REQUIRED way to respond to users. "
        "You MUST use this tool for ALL text responses - answers, casual chat, explanations, "
        "greetings, or any other communication. Never respond with raw text."
    )
    parameters_schema = {
        "type": "object",
        "properties": {
            "content": {
                "type": "string",
                "description": "The message content to send to Discord. Be natural, conversational, "
                               "and helpful. Use Discord markdown formatting if needed.",
            },
            "reply_to_original": {
                "type": "boolean",
                "description": "Whether to reply to the original message (true) or send as a "
                               "standalone message (false). Default is true.",
                "default": True,
            },
        },
        "required": ["content"],
    }
    needs_side_channel = True
    needs_result_feedback = False

    async def execute(
        self,
        parameters: dict[str, Any],
        side_channel: SideChannel | None = None,
    ) -> str:
        """
        Returns:
            The cleaned content that was sent, before escaping, so the caller can
            record what the user saw
        """
        raw_content = parameters.get("content")
        if not isinstance(raw_content, str):
            raise ToolExecutionFailed("Missing or invalid 'content' parameter")
        if side_channel is None:
            raise ToolExecutionFailed("Discord context is required for this tool")

        content = prepare_outbound(raw_content)
        text, images = extract_image_markers(content)
        if not text and not images:
            raise ToolExecutionFailed("Message content is empty")

        escaped = truncate_for_discord(escape_markdown(text))
        reply = parameters.get("reply_to_original", True)
        if not isinstance(reply, bool):
            reply = True

        try:
            await side_channel.send_message(escaped, reply=reply, images=images)
        except Exception as e:
            raise ToolExecutionFailed(f"Failed to send Discord message: {e}", cause=e) from e

        logger.debug(f"Sent message ({len(escaped)} chars, {len(images)} images)")
        return content
