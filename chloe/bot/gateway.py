"""
Read access to Discord channels for the context builder.

Converts discord.py messages into PlatformMessage values and downloads image
attachments so the rest of the engine never touches discord.py objects.
"""

from __future__ import annotations

import discord
import httpx

from chloe.config.logging import get_logger
from chloe.context.builder import ConversationSource
from chloe.context.models import PlatformMessage
from chloe.llm.models import ImageData

logger = get_logger(__name__)

# Attachments larger than this are not sent to the model
MAX_IMAGE_BYTES = 8 * 1024 * 1024


def to_platform_message(message: discord.Message) -> PlatformMessage:
    """Snapshot a discord.py message."""
    image_urls = tuple(
        attachment.url
        for attachment in message.attachments
        if (attachment.content_type or "").startswith("image/")
    )
    reference_id = message.reference.message_id if message.reference is not None else None
    return PlatformMessage(
        id=message.id,
        channel_id=message.channel.id,
        author_id=message.author.id,
        author_name=message.author.display_name,
        author_is_bot=message.author.bot,
        content=message.content or "",
        created_at=message.created_at,
        reference_id=reference_id,
        image_urls=image_urls,
    )


class DiscordConversationSource(ConversationSource):
    """
    Args:
        client: The running bot
        http: Client used to download image attachments
    """

    def __init__(self, client: discord.Client, http: httpx.AsyncClient):
        self._client = client
        self._http = http

    @property
    def bot_user_id(self) -> int:
        return self._client.user.id

    async def _channel(self, channel_id: int) -> discord.abc.Messageable:
        channel = self._client.get_channel(channel_id)
        if channel is None:
            channel = await self._client.fetch_channel(channel_id)
        return channel

    async def fetch_message(self, channel_id: int, message_id: int) -> PlatformMessage | None:
        cached = discord.utils.get(self._client.cached_messages, id=message_id)
        if cached is not None:
            return to_platform_message(cached)

        try:
            channel = await self._channel(channel_id)
            message = await channel.fetch_message(message_id)
        except (discord.NotFound, discord.Forbidden):
            return None
        except discord.HTTPException as e:
            logger.warning(f"Failed to fetch message {message_id} in channel {channel_id}: {e}")
            return None
        return to_platform_message(message)

    async def history(self, channel_id: int, before_id: int, limit: int) -> list[PlatformMessage]:
        channel = await self._channel(channel_id)
        return [
            to_platform_message(message)
            async for message in channel.history(limit=limit, before=discord.Object(id=before_id))
        ]

    async def load_images(self, message: PlatformMessage) -> list[ImageData]:
        images: list[ImageData] = []
        for url in message.image_urls:
            try:
                response = await self._http.get(url)
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.warning(f"Failed to download image attachment {url}: {e}")
                continue

            if len(response.content) > MAX_IMAGE_BYTES:
                logger.warning(f"Skipping image attachment over {MAX_IMAGE_BYTES} bytes: {url}")
                continue

            mime_type = response.headers.get("content-type", "image/png").split(";", 1)[0].strip()
            if not mime_type.startswith("image/"):
                mime_type = "image/png"
            images.append(ImageData.from_bytes(response.content, mime_type=mime_type))
        return images
