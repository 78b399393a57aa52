"""
Tests for PromptBuilder section assembly.
"""

from datetime import datetime, timezone

from chloe.config.prompt_store import PromptStore
from chloe.context.models import ConversationContext, Message, Participant
from chloe.context.prompt import (
    SECURITY_NOTE,
    TOOL_ONLY_REQUIREMENT,
    UNSOLICITED_PREAMBLE,
    PromptBuilder,
)
from chloe.tools.base import ToolDefinition
from chloe.tools.names import ToolName

FIXED_TIME = datetime(2024, 3, 15, 18, 5, 9, tzinfo=timezone.utc)


def _make_builder(tool_only=True) -> PromptBuilder:
    return PromptBuilder(
        PromptStore(initial="You are Chloe."),
        persona_name="Chloe",
        tool_only=tool_only,
        clock=lambda: FIXED_TIME,
    )


def _make_tool(name: ToolName) -> ToolDefinition:
    return ToolDefinition(name=name.value, description=f"{name.value} description")


def _make_context(**kwargs) -> ConversationContext:
    defaults = dict(
        channel_id=1,
        message_id=10,
        current_speaker="alice",
        current_speaker_id=100,
        current_text="what's up?",
        participant_directory=(
            Participant(id=100, display_name="alice"),
            Participant(id=999, display_name="Chloe", is_assistant=True),
        ),
    )
    defaults.update(kwargs)
    return ConversationContext(**defaults)


def _make_message(message_id, speaker, text, is_assistant=False) -> Message:
    return Message(
        message_id=message_id,
        speaker_name=speaker,
        speaker_id=message_id,
        text=text,
        is_assistant=is_assistant,
        channel_id=1,
        created_at=FIXED_TIME,
    )


class TestSections:
    def test_base_prompt_and_time_first(self):
        prompt = _make_builder().build(_make_context())
        assert prompt.startswith("You are Chloe.\n\n## Current Date & Time\nFriday, March 15, 2024 at 18:05:09 UTC")

    def test_security_note_last(self):
        prompt = _make_builder().build(_make_context())
        assert prompt.endswith(SECURITY_NOTE)

    def test_user_directory(self):
        prompt = _make_builder().build(_make_context())
        assert "- <@100> = alice (User)" in prompt
        assert "- <@999> = Chloe (Bot)" in prompt

    def test_current_message(self):
        prompt = _make_builder().build(_make_context())
        assert "## Current Message to Respond To:\nalice: what's up?" in prompt
        assert UNSOLICITED_PREAMBLE not in prompt

    def test_unsolicited_preamble(self):
        prompt = _make_builder().build(_make_context(is_unsolicited=True))
        assert f"## Current Message to Respond To:\n{UNSOLICITED_PREAMBLE}\nalice: what's up?" in prompt

    def test_conversation_transcript(self):
        earlier = _make_message(1, "bob", "anyone here?")
        mine = _make_message(2, "ChloeBot", "I'm here", is_assistant=True)
        prompt = _make_builder().build(_make_context(
            recent_messages=(earlier, mine),
            replied_to_message=mine,
        ))
        assert "## Recent Conversation:\nbob: anyone here?\nChloe: I'm here" in prompt
        assert "## Previous Message:\nChloeBot: I'm here" in prompt

    def test_no_tools_no_tool_sections(self):
        prompt = _make_builder().build(_make_context())
        assert "## Available Tools" not in prompt
        assert TOOL_ONLY_REQUIREMENT not in prompt


class TestToolSections:
    def test_tool_list_and_rules(self):
        tools = [_make_tool(ToolName.SEND_MESSAGE), _make_tool(ToolName.CALCULATE)]
        prompt = _make_builder().build(_make_context(), tools)
        assert "- **calculate**: calculate description" in prompt
        assert "## Tool Usage Rules:" in prompt
        assert TOOL_ONLY_REQUIREMENT in prompt

    def test_tool_only_requires_send_tool(self):
        prompt = _make_builder().build(_make_context(), [_make_tool(ToolName.CALCULATE)])
        assert "## Available Tools" in prompt
        assert "## Tool Usage Rules:" not in prompt
        assert TOOL_ONLY_REQUIREMENT not in prompt

    def test_tool_only_disabled(self):
        prompt = _make_builder(tool_only=False).build(_make_context(), [_make_tool(ToolName.SEND_MESSAGE)])
        assert TOOL_ONLY_REQUIREMENT not in prompt

    def test_unicode_emoji_guidance_without_custom_emoji(self):
        prompt = _make_builder().build(_make_context(), [_make_tool(ToolName.ADD_REACTION)])
        assert "## Emoji Usage" in prompt
        assert "## Available Custom Emojis" not in prompt

    def test_custom_emoji_listed(self):
        prompt = _make_builder().build(
            _make_context(custom_emojis=("pog", "kekw")),
            [_make_tool(ToolName.ADD_REACTION)],
        )
        assert "- :pog:\n- :kekw:" in prompt

    def test_no_emoji_section_without_reaction_tool(self):
        prompt = _make_builder().build(_make_context(custom_emojis=("pog",)), [_make_tool(ToolName.CALCULATE)])
        assert ":pog:" not in prompt
