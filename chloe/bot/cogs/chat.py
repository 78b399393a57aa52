"""
ChatCog: conversational replies.

The bot answers a message when it:
  - mentions the bot
  - replies to one of the bot's messages
  - contains one of the configured trigger words
  - or, with a small configured probability, on its own (unsolicited)

Each answer is one orchestrated turn. The model normally answers through
the send-message tool itself; anything it did not deliver (plain text,
generated images) is posted here as a reply.
"""

from __future__ import annotations

import random
import re
from collections.abc import Callable

import discord
from discord.ext import commands

from chloe.bot.gateway import DiscordConversationSource, to_platform_message
from chloe.bot.side_channel import DiscordSideChannel
from chloe.config.logging import get_logger
from chloe.llm.orchestrator import APOLOGY
from chloe.text.sanitizer import truncate_for_discord

logger = get_logger(__name__)


class ChatCog(commands.Cog):
    """Answers mentions, replies, trigger words and the occasional unprompted message."""

    def __init__(self, bot, rng: Callable[[], float] = random.random) -> None:
        self.bot = bot
        self._rng = rng
        words = [re.escape(w) for w in bot.settings.bot.trigger_words if w.strip()]
        self._trigger_re = re.compile(rf"\b(?:{'|'.join(words)})\b", re.IGNORECASE) if words else None

    def _replies_to_bot(self, message: discord.Message) -> bool:
        reference = message.reference
        if reference is None:
            return False
        resolved = reference.resolved
        return isinstance(resolved, discord.Message) and resolved.author.id == self.bot.user.id

    def trigger_reason(self, message: discord.Message) -> str | None:
        """Why the bot should answer ``message``, or None to stay quiet."""
        if self.bot.user.mentioned_in(message):
            return "mention"
        if self._replies_to_bot(message):
            return "reply"
        if self._trigger_re is not None and self._trigger_re.search(message.content or ""):
            return "trigger_word"
        chance = self.bot.settings.bot.unsolicited_reply_chance
        if chance > 0 and self._rng() < chance:
            return "unsolicited"
        return None

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        """
        Ignores:
        - Messages from bots (including ourselves)
        - Messages in non-allowed channels (if restriction is configured)
        - Messages that don't address the bot (unless the unsolicited roll hits)
        """
        if message.author.bot:
            return
        if not self.bot.is_allowed_channel(message.channel.id):
            return

        reason = self.trigger_reason(message)
        if reason is None:
            return

        logger.info(f"Answering message {message.id} from {message.author} ({reason})")
        side_channel = DiscordSideChannel(message)
        source = DiscordConversationSource(self.bot, self.bot.http_client)

        try:
            async with message.channel.typing():
                context = await self.bot.context_builder.build(
                    to_platform_message(message),
                    source,
                    is_unsolicited=reason == "unsolicited",
                    custom_emojis=list(side_channel.custom_emojis()),
                )
                result = await self.bot.orchestrator.run_turn(context, side_channel)
        except Exception as e:
            logger.exception(f"Unexpected error answering message {message.id}: {e}")
            await message.reply(APOLOGY, mention_author=False)
            return

        if result.delivered or not (result.text or result.images):
            return
        await side_channel.send_message(truncate_for_discord(result.text), images=result.images)
