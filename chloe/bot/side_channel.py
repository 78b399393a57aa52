"""
SideChannel over the discord.py message that triggered a turn.
"""

from __future__ import annotations

import io
from collections.abc import Sequence

import discord

from chloe.llm.models import ImageData
from chloe.tools.base import SideChannel


def to_files(images: Sequence[ImageData]) -> list[discord.File]:
    return [
        discord.File(io.BytesIO(image.to_bytes()), filename=f"image_{i}.{image.extension}")
        for i, image in enumerate(images, start=1)
    ]


class DiscordSideChannel(SideChannel):
    def __init__(self, message: discord.Message):
        self._message = message
        self.channel_id = message.channel.id
        self.user_id = message.author.id
        self.message_id = message.id
        self.guild_id = message.guild.id if message.guild is not None else None

    async def send_message(
        self,
        content: str,
        reply: bool = True,
        images: Sequence[ImageData] = (),
    ) -> None:
        files = to_files(images)
        if reply:
            await self._message.reply(content or None, files=files, mention_author=False)
        else:
            await self._message.channel.send(content or None, files=files)

    async def add_reaction(self, emoji: str) -> None:
        await self._message.add_reaction(emoji)

    def custom_emojis(self) -> dict[str, str]:
        guild = self._message.guild
        if guild is None:
            return {}
        return {emoji.name: str(emoji) for emoji in guild.emojis}
