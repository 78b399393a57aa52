"""
Data models for conversation context.

PlatformMessage is what the chat gateway hands us. Message and
ConversationContext are the cleaned, frozen view the prompt is built from.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from chloe.llm.models import ImageData


class PlatformMessage(BaseModel):
    """A raw chat message as the gateway reports it."""

    model_config = ConfigDict(frozen=True)

    id: int
    channel_id: int
    author_id: int
    author_name: str
    author_is_bot: bool = False
    content: str = ""
    created_at: datetime
    # Message this one replies to, if any
    reference_id: int | None = None
    # Image attachment URLs
    image_urls: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.content.strip() and not self.image_urls


class Message(BaseModel):
    """One prior message in the conversation, as shown to the model."""

    model_config = ConfigDict(frozen=True)

    message_id: int
    speaker_name: str
    speaker_id: int
    text: str
    is_assistant: bool = False
    channel_id: int
    created_at: datetime
    images: tuple[ImageData, ...] = ()


class Participant(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    display_name: str
    is_assistant: bool = False

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"


class ConversationContext(BaseModel):
    """
    Everything the model sees about the conversation for one turn.

    ``recent_messages`` is ordered oldest first. ``participant_directory``
    lists each speaker once: the current speaker first, then history speakers
    in order of appearance, then the bot.
    """

    model_config = ConfigDict(frozen=True)

    channel_id: int
    message_id: int
    current_speaker: str
    current_speaker_id: int
    current_text: str
    current_images: tuple[ImageData, ...] = ()
    recent_messages: tuple[Message, ...] = ()
    participant_directory: tuple[Participant, ...] = ()
    replied_to_message: Message | None = None
    is_unsolicited: bool = False
    custom_emojis: tuple[str, ...] = Field(
        default=(), description="Custom emoji names available in the guild"
    )
