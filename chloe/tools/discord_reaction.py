"""
React to the triggering message with a Unicode or custom guild emoji.
"""

from __future__ import annotations

from typing import Any

from chloe.errors import ToolExecutionFailed
from chloe.text.patterns import CUSTOM_EMOJI_PATTERN, GUILD_EMOJI_PATTERN
from chloe.tools.base import SideChannel, Tool, require_str
from chloe.tools.names import ToolName

# Unicode stand-ins for popular custom emoji names that a guild may not have
UNICODE_SUGGESTIONS = {
    "poggers": "😮",
    "pog": "😮",
    "kekw": "😂",
    "lul": "😂",
    "lol": "😂",
    "sadge": "😢",
    "sad": "😢",
    "pepehands": "😭",
    "monkas": "😰",
    "nervous": "😰",
    "thumbsup": "👍",
    "up": "👍",
    "thumbsdown": "👎",
    "down": "👎",
    "heart": "❤️",
    "love": "❤️",
    "fire": "🔥",
    "100": "💯",
    "perfect": "💯",
}


def suggest_unicode(name: str) -> str:
    return UNICODE_SUGGESTIONS.get(name.lower(), "👍")


class AddReactionTool(Tool):
    name = ToolName.ADD_REACTION.value
    description = (
        "Add a reaction emoji to the current Discord message. You can use Unicode emojis "
        "(like 👍, ❤️, 😂) or custom guild emoji names (like :custom_emoji:). IMPORTANT: Only "
        "use custom emojis that exist in the guild - check the Available Custom Emojis section "
        "in the prompt. When in doubt, use Unicode emojis."
    )
    parameters_schema = {
        "type": "object",
        "properties": {
            "emoji": {
                "type": "string",
                "description": "The emoji to react with. Can be Unicode emoji (👍, ❤️, 😂) "
                               "or custom emoji name (:custom_emoji:)",
            },
        },
        "required": ["emoji"],
    }
    needs_side_channel = True
    needs_result_feedback = False

    async def execute(
        self,
        parameters: dict[str, Any],
        side_channel: SideChannel | None = None,
    ) -> str:
        emoji = require_str(parameters, "emoji").strip()
        if side_channel is None:
            raise ToolExecutionFailed("Discord context is required for this tool")

        reaction = self._resolve(emoji, side_channel)
        try:
            await side_channel.add_reaction(reaction)
        except Exception as e:
            raise ToolExecutionFailed(f"Failed to add Discord reaction: {e}", cause=e) from e
        return "Reaction added"

    @staticmethod
    def _resolve(emoji: str, side_channel: SideChannel) -> str:
        """Map ``:name:`` to the guild's ``<:name:id>``; pass everything else through."""
        if CUSTOM_EMOJI_PATTERN.match(emoji):
            return emoji

        match = GUILD_EMOJI_PATTERN.match(emoji)
        if match is None:
            return emoji

        name = match.group(1)
        if side_channel.guild_id is None:
            raise ToolExecutionFailed("Cannot use custom emoji outside of guild context")

        custom = side_channel.custom_emojis()
        if name in custom:
            return custom[name]

        raise ToolExecutionFailed(
            f"Custom emoji '{name}' not found in guild. Try using Unicode emoji "
            f"'{suggest_unicode(name)}' instead, or check the Available Custom Emojis "
            f"section for valid options."
        )
