"""
Tests for the send-message and reaction tools against a recording side channel.
"""

import pytest

from chloe.errors import ToolExecutionFailed
from chloe.text.sanitizer import TRUNCATION_NOTICE
from chloe.tools.base import SideChannel
from chloe.tools.discord_message import SendMessageTool, prepare_outbound
from chloe.tools.discord_reaction import AddReactionTool, suggest_unicode


class RecordingSideChannel(SideChannel):
    def __init__(self, guild_id=99, emojis=None, fail_send=False):
        self.channel_id = 10
        self.user_id = 20
        self.message_id = 30
        self.guild_id = guild_id
        self._emojis = emojis or {}
        self._fail_send = fail_send
        self.sent = []
        self.reactions = []

    async def send_message(self, content, reply=True, images=()):
        if self._fail_send:
            raise RuntimeError("Missing Permissions")
        self.sent.append({"content": content, "reply": reply, "images": list(images)})

    async def add_reaction(self, emoji):
        self.reactions.append(emoji)

    def custom_emojis(self):
        return dict(self._emojis)


class TestPrepareOutbound:
    def test_cleans_literal_newlines_and_reasoning(self):
        assert prepare_outbound("hi\\nthere Chosen response: hi") == "hi\nthere"


class TestSendMessage:
    @pytest.mark.asyncio
    async def test_sends_escaped_reply(self):
        channel = RecordingSideChannel()
        result = await SendMessageTool().execute({"content": "hello *there* <@5>"}, channel)

        assert channel.sent == [{"content": "hello \\*there\\* <@5>", "reply": True, "images": []}]
        assert result == "hello *there* <@5>"

    @pytest.mark.asyncio
    async def test_standalone_message(self):
        channel = RecordingSideChannel()
        await SendMessageTool().execute({"content": "hi", "reply_to_original": False}, channel)
        assert channel.sent[0]["reply"] is False

    @pytest.mark.asyncio
    async def test_non_bool_reply_flag_defaults_to_reply(self):
        channel = RecordingSideChannel()
        await SendMessageTool().execute({"content": "hi", "reply_to_original": "no"}, channel)
        assert channel.sent[0]["reply"] is True

    @pytest.mark.asyncio
    async def test_inline_image_sent_as_attachment(self):
        channel = RecordingSideChannel()
        await SendMessageTool().execute(
            {"content": "here you go data:image/png;base64,aGVsbG8="}, channel
        )

        sent = channel.sent[0]
        assert sent["content"] == "here you go"
        assert [i.base64_data for i in sent["images"]] == ["aGVsbG8="]

    @pytest.mark.asyncio
    async def test_long_message_truncated(self):
        channel = RecordingSideChannel()
        await SendMessageTool().execute({"content": "a" * 3000}, channel)
        assert channel.sent[0]["content"].endswith(TRUNCATION_NOTICE)
        assert len(channel.sent[0]["content"]) <= 2000

    @pytest.mark.asyncio
    async def test_empty_content_rejected(self):
        channel = RecordingSideChannel()
        with pytest.raises(ToolExecutionFailed, match="empty"):
            await SendMessageTool().execute({"content": "   "}, channel)
        assert channel.sent == []

    @pytest.mark.asyncio
    async def test_missing_content_rejected(self):
        with pytest.raises(ToolExecutionFailed, match="content"):
            await SendMessageTool().execute({}, RecordingSideChannel())

    @pytest.mark.asyncio
    async def test_platform_failure_wrapped(self):
        channel = RecordingSideChannel(fail_send=True)
        with pytest.raises(ToolExecutionFailed, match="Missing Permissions"):
            await SendMessageTool().execute({"content": "hi"}, channel)

    def test_flags(self):
        tool = SendMessageTool()
        assert tool.needs_side_channel is True
        assert tool.needs_result_feedback is False


class TestAddReaction:
    @pytest.mark.asyncio
    async def test_unicode_passthrough(self):
        channel = RecordingSideChannel()
        assert await AddReactionTool().execute({"emoji": "👍"}, channel) == "Reaction added"
        assert channel.reactions == ["👍"]

    @pytest.mark.asyncio
    async def test_full_custom_emoji_passthrough(self):
        channel = RecordingSideChannel()
        await AddReactionTool().execute({"emoji": "<a:dance:123>"}, channel)
        assert channel.reactions == ["<a:dance:123>"]

    @pytest.mark.asyncio
    async def test_guild_emoji_name_resolved(self):
        channel = RecordingSideChannel(emojis={"pog": "<:pog:1>"})
        await AddReactionTool().execute({"emoji": ":pog:"}, channel)
        assert channel.reactions == ["<:pog:1>"]

    @pytest.mark.asyncio
    async def test_unknown_guild_emoji_suggests_unicode(self):
        channel = RecordingSideChannel(emojis={"other": "<:other:2>"})
        with pytest.raises(ToolExecutionFailed) as exc_info:
            await AddReactionTool().execute({"emoji": ":poggers:"}, channel)

        assert "Custom emoji 'poggers' not found in guild" in exc_info.value.message
        assert "😮" in exc_info.value.message
        assert channel.reactions == []

    @pytest.mark.asyncio
    async def test_custom_emoji_outside_guild(self):
        channel = RecordingSideChannel(guild_id=None)
        with pytest.raises(ToolExecutionFailed, match="outside of guild context"):
            await AddReactionTool().execute({"emoji": ":pog:"}, channel)

    def test_suggestion_default(self):
        assert suggest_unicode("KEKW") == "😂"
        assert suggest_unicode("whatever") == "👍"
