"""
Tests for ChatCog.

Covers:
- trigger_reason (mention, reply to the bot, trigger word, unsolicited roll)
- on_message gate conditions (bot authors, blocked channels, no trigger)
- delivery of undelivered turn output and the apology on unexpected errors
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock

import discord

from chloe.bot.cogs.chat import ChatCog
from chloe.llm.models import ImageData, TurnResult, TurnState
from chloe.llm.orchestrator import APOLOGY

BOT_ID = 12345


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_bot(trigger_words=("chloe",), chance=0.0, allowed=True, result=None):
    bot = MagicMock()
    bot.user.id = BOT_ID
    bot.user.mentioned_in.return_value = False
    bot.settings.bot.trigger_words = list(trigger_words)
    bot.settings.bot.unsolicited_reply_chance = chance
    bot.is_allowed_channel.return_value = allowed
    bot.context_builder.build = AsyncMock(return_value=MagicMock(name="context"))
    bot.orchestrator.run_turn = AsyncMock(
        return_value=result or TurnResult(state=TurnState.COMPLETED, delivered=True)
    )
    return bot


def _make_message(content="hello", author_bot=False, reference=None):
    message = MagicMock()
    message.id = 30
    message.content = content
    message.created_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
    message.attachments = []
    message.reference = reference
    message.guild = None
    message.author.id = 20
    message.author.bot = author_bot
    message.author.display_name = "alice"
    message.channel.id = 10
    message.reply = AsyncMock()
    message.channel.send = AsyncMock()
    return message


def _reply_reference(author_id):
    resolved = MagicMock(spec=discord.Message)
    resolved.author = MagicMock()
    resolved.author.id = author_id
    reference = MagicMock()
    reference.resolved = resolved
    reference.message_id = 29
    return reference


# ---------------------------------------------------------------------------
# trigger_reason
# ---------------------------------------------------------------------------

class TestTriggerReason:
    def test_mention(self):
        bot = _make_bot()
        bot.user.mentioned_in.return_value = True
        assert ChatCog(bot).trigger_reason(_make_message()) == "mention"

    def test_reply_to_bot(self):
        cog = ChatCog(_make_bot())
        assert cog.trigger_reason(_make_message(reference=_reply_reference(BOT_ID))) == "reply"

    def test_reply_to_someone_else(self):
        cog = ChatCog(_make_bot())
        assert cog.trigger_reason(_make_message(reference=_reply_reference(999))) is None

    def test_trigger_word_case_insensitive(self):
        cog = ChatCog(_make_bot())
        assert cog.trigger_reason(_make_message("hey CHLOE, you there?")) == "trigger_word"

    def test_trigger_word_needs_word_boundary(self):
        cog = ChatCog(_make_bot())
        assert cog.trigger_reason(_make_message("chloeish vibes")) is None

    def test_no_trigger_words_configured(self):
        cog = ChatCog(_make_bot(trigger_words=()))
        assert cog.trigger_reason(_make_message("chloe")) is None

    def test_unsolicited_roll(self):
        cog = ChatCog(_make_bot(chance=0.1), rng=lambda: 0.05)
        assert cog.trigger_reason(_make_message("random chatter")) == "unsolicited"

    def test_unsolicited_roll_misses(self):
        cog = ChatCog(_make_bot(chance=0.1), rng=lambda: 0.5)
        assert cog.trigger_reason(_make_message("random chatter")) is None


# ---------------------------------------------------------------------------
# on_message
# ---------------------------------------------------------------------------

class TestOnMessage:
    @pytest.mark.asyncio
    async def test_ignores_bots(self):
        bot = _make_bot()
        await ChatCog(bot).on_message(_make_message("chloe", author_bot=True))
        bot.orchestrator.run_turn.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ignores_blocked_channel(self):
        bot = _make_bot(allowed=False)
        await ChatCog(bot).on_message(_make_message("chloe"))
        bot.orchestrator.run_turn.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ignores_untriggered(self):
        bot = _make_bot()
        await ChatCog(bot).on_message(_make_message("nothing to see"))
        bot.context_builder.build.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delivered_turn_posts_nothing_more(self):
        bot = _make_bot()
        message = _make_message("chloe hi")

        await ChatCog(bot).on_message(message)

        bot.orchestrator.run_turn.assert_awaited_once()
        turn = bot.context_builder.build.await_args.args[0]
        assert turn.id == 30
        assert turn.content == "chloe hi"
        assert bot.context_builder.build.await_args.kwargs["is_unsolicited"] is False
        message.reply.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_undelivered_text_replied(self):
        result = TurnResult(state=TurnState.COMPLETED, text="hi \\*there\\*", delivered=False)
        bot = _make_bot(result=result)
        message = _make_message("chloe hi")

        await ChatCog(bot).on_message(message)

        message.reply.assert_awaited_once_with("hi \\*there\\*", files=[], mention_author=False)

    @pytest.mark.asyncio
    async def test_undelivered_images_attached(self):
        result = TurnResult(
            state=TurnState.COMPLETED,
            images=[ImageData(base64_data="aGk=")],
            delivered=False,
        )
        bot = _make_bot(result=result)
        message = _make_message("chloe draw a cat")

        await ChatCog(bot).on_message(message)

        files = message.reply.await_args.kwargs["files"]
        assert len(files) == 1
        assert files[0].filename == "image_1.png"

    @pytest.mark.asyncio
    async def test_unexpected_error_apologizes(self):
        bot = _make_bot()
        bot.orchestrator.run_turn = AsyncMock(side_effect=RuntimeError("boom"))
        message = _make_message("chloe hi")

        await ChatCog(bot).on_message(message)

        message.reply.assert_awaited_once_with(APOLOGY, mention_author=False)
