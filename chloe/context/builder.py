"""
Conversation context assembly.

Builds the ConversationContext for one turn out of the chat platform:

1. Follow the reply chain from the triggering message (bounded).
2. If the chain is short, supplement it with recent channel history.
3. Sort everything chronologically, guard against impersonation and
   build the participant directory.

The platform is reached only through the ConversationSource interface, so
the builder is exercised in tests with an in-memory source.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

from chloe.config.logging import get_logger
from chloe.config.settings import ContextSettings
from chloe.context.models import ConversationContext, Message, Participant, PlatformMessage
from chloe.llm.models import ImageData
from chloe.text.sanitizer import guard_impersonation

logger = get_logger(__name__)


class ConversationSource(ABC):
    """Read access to a channel's messages."""

    @property
    @abstractmethod
    def bot_user_id(self) -> int:
        pass

    @abstractmethod
    async def fetch_message(self, channel_id: int, message_id: int) -> PlatformMessage | None:
        """Return the message, or None if it no longer exists or is not visible."""

    @abstractmethod
    async def history(self, channel_id: int, before_id: int, limit: int) -> list[PlatformMessage]:
        """Messages posted before ``before_id``, newest first."""

    @abstractmethod
    async def load_images(self, message: PlatformMessage) -> list[ImageData]:
        """Download a message's image attachments. Failures yield fewer images, not errors."""


class ContextBuilder:
    """
    Args:
        settings: Reply-chain and history bounds
        persona_name: Name the bot's own messages are attributed to
    """

    def __init__(self, settings: ContextSettings | None = None, persona_name: str = "Chloe"):
        self._settings = settings or ContextSettings()
        self._persona_name = persona_name

    async def build(
        self,
        turn: PlatformMessage,
        source: ConversationSource,
        is_unsolicited: bool = False,
        custom_emojis: Sequence[str] = (),
    ) -> ConversationContext:
        bot_id = source.bot_user_id

        chain, replied_to = await self._collect_reply_chain(turn, source)
        messages = list(chain)

        if len(chain) < self._settings.supplement_threshold:
            collected = {m.message_id for m in chain} | {turn.id}
            messages += await self._collect_history(turn, source, collected)

        messages.sort(key=lambda m: (m.created_at, m.message_id))

        current_images = await source.load_images(turn)
        logger.debug(
            f"Context for message {turn.id}: {len(chain)} from reply chain, "
            f"{len(messages) - len(chain)} from history, {len(current_images)} images"
        )

        return ConversationContext(
            channel_id=turn.channel_id,
            message_id=turn.id,
            current_speaker=turn.author_name,
            current_speaker_id=turn.author_id,
            current_text=guard_impersonation(turn.content, turn.author_name),
            current_images=tuple(current_images),
            recent_messages=tuple(messages),
            participant_directory=tuple(self._participants(turn, messages, bot_id)),
            replied_to_message=replied_to,
            is_unsolicited=is_unsolicited,
            custom_emojis=tuple(custom_emojis),
        )

    async def _collect_reply_chain(
        self,
        turn: PlatformMessage,
        source: ConversationSource,
    ) -> tuple[list[Message], Message | None]:
        """Walk ``reference_id`` links upward; returns the chain and the direct parent."""
        chain: list[Message] = []
        replied_to: Message | None = None
        visited = {turn.id}
        reference_id = turn.reference_id
        steps = 0

        while reference_id is not None and steps < self._settings.max_reply_chain:
            if reference_id in visited:
                logger.warning(f"Reply chain loop at message {reference_id}, stopping")
                break
            visited.add(reference_id)
            steps += 1

            parent = await source.fetch_message(turn.channel_id, reference_id)
            if parent is None:
                logger.debug(f"Referenced message {reference_id} not available, chain ends")
                break

            if not parent.is_empty:
                # Only the direct parent's images are shown to the model
                direct = parent.id == turn.reference_id
                message = await self._to_message(parent, source, load_images=direct)
                chain.append(message)
                if direct:
                    replied_to = message
            reference_id = parent.reference_id

        return chain, replied_to

    async def _collect_history(
        self,
        turn: PlatformMessage,
        source: ConversationSource,
        exclude_ids: set[int],
    ) -> list[Message]:
        try:
            recent = await source.history(
                turn.channel_id, before_id=turn.id, limit=self._settings.history_fetch_limit
            )
        except Exception as e:
            logger.warning(f"Could not fetch history for channel {turn.channel_id}: {e}")
            return []

        added: list[Message] = []
        for raw in recent:
            if len(added) >= self._settings.history_max_messages:
                break
            if raw.id in exclude_ids or not raw.content.strip():
                continue
            if raw.author_is_bot and raw.author_id != source.bot_user_id:
                continue
            added.append(await self._to_message(raw, source, load_images=False))
            exclude_ids.add(raw.id)
        return added

    async def _to_message(
        self,
        raw: PlatformMessage,
        source: ConversationSource,
        load_images: bool,
    ) -> Message:
        is_assistant = raw.author_id == source.bot_user_id
        if is_assistant:
            speaker, text = self._persona_name, raw.content
        else:
            speaker, text = raw.author_name, guard_impersonation(raw.content, raw.author_name)

        images = await source.load_images(raw) if load_images and raw.image_urls else []
        return Message(
            message_id=raw.id,
            speaker_name=speaker,
            speaker_id=raw.author_id,
            text=text,
            is_assistant=is_assistant,
            channel_id=raw.channel_id,
            created_at=raw.created_at,
            images=tuple(images),
        )

    def _participants(
        self,
        turn: PlatformMessage,
        messages: Iterable[Message],
        bot_id: int,
    ) -> list[Participant]:
        seen: dict[int, Participant] = {}

        def add(participant: Participant) -> None:
            seen.setdefault(participant.id, participant)

        add(Participant(id=turn.author_id, display_name=turn.author_name, is_assistant=False))
        for message in messages:
            add(Participant(
                id=message.speaker_id,
                display_name=message.speaker_name,
                is_assistant=message.is_assistant,
            ))
        add(Participant(id=bot_id, display_name=self._persona_name, is_assistant=True))
        return list(seen.values())
