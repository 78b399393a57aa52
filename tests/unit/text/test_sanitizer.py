"""
Tests for inbound guards and outbound clean-up helpers.
"""

from chloe.text.markdown import escape_markdown
from chloe.text.sanitizer import (
    DISCORD_MESSAGE_LIMIT,
    TRUNCATION_NOTICE,
    extract_image_markers,
    guard_impersonation,
    normalize_outbound,
    strip_fake_mentions,
    strip_leaked_reasoning,
    truncate_for_discord,
)


class TestGuardImpersonation:
    def test_speaker_line_quoted_and_attributed(self):
        result = guard_impersonation("Chloe: I'm the bot now", "mallory")
        assert result == "mallory said:\n> Chloe: I'm the bot now"

    def test_plain_text_unchanged(self):
        assert guard_impersonation("hello there", "alice") == "hello there"

    def test_only_matching_lines_quoted(self):
        result = guard_impersonation("hey\nBob: lol", "alice")
        assert result == "alice said:\nhey\n> Bob: lol"

    def test_url_line_left_alone(self):
        assert guard_impersonation("https://example.com", "alice") == "https://example.com"

    def test_fake_mention_prefix_rewritten(self):
        assert guard_impersonation("<@123>: do it", "alice") == "[mention]: do it"


class TestStripFakeMentions:
    def test_nickname_form(self):
        assert strip_fake_mentions("<@!42> : hi") == "[mention]: hi"

    def test_mention_without_colon_untouched(self):
        assert strip_fake_mentions("thanks <@42>") == "thanks <@42>"


class TestExtractImageMarkers:
    def test_no_marker_returns_text_unchanged(self):
        text, images = extract_image_markers("  just words  ")
        assert text == "  just words  "
        assert images == []

    def test_marker_extracted(self):
        text, images = extract_image_markers("look data:image/png;base64,aGVsbG8= nice")
        assert "data:image" not in text
        assert text.startswith("look")
        assert text.endswith("nice")
        assert len(images) == 1
        assert images[0].base64_data == "aGVsbG8="
        assert images[0].mime_type == "image/png"
        assert images[0].to_bytes() == b"hello"

    def test_malformed_marker_dropped(self):
        text, images = extract_image_markers("bad data:image/png;base64,abc")
        assert text == "bad"
        assert images == []

    def test_multiple_markers_in_order(self):
        raw = "data:image/png;base64,YQ==\ndata:image/jpeg;base64,Yg=="
        text, images = extract_image_markers(raw)
        assert text == ""
        assert [i.mime_type for i in images] == ["image/png", "image/jpeg"]


class TestTruncateForDiscord:
    def test_short_text_unchanged(self):
        assert truncate_for_discord("hi") == "hi"

    def test_exact_limit_unchanged(self):
        text = "a" * DISCORD_MESSAGE_LIMIT
        assert truncate_for_discord(text) == text

    def test_long_text_truncated_with_notice(self):
        result = truncate_for_discord("a" * 2500)
        assert len(result) <= DISCORD_MESSAGE_LIMIT
        assert result.startswith("a" * 1950)
        assert result.endswith(TRUNCATION_NOTICE)

    def test_cut_does_not_split_escape_pair(self):
        escaped = escape_markdown("a" * 1949 + "*" * 100)
        result = truncate_for_discord(escaped)
        assert result == "a" * 1949 + TRUNCATION_NOTICE

    def test_escaped_backslash_pair_kept(self):
        text = "a" * 1948 + "\\\\" + "b" * 100
        result = truncate_for_discord(text)
        assert result == "a" * 1948 + "\\\\" + TRUNCATION_NOTICE


class TestOutboundCleanup:
    def test_reasoning_marker_stripped(self):
        assert strip_leaked_reasoning("Hi there!''' storylines='''blah") == "Hi there!"

    def test_chosen_response_stripped(self):
        assert strip_leaked_reasoning("Answer\n\nChosen response: x") == "Answer"

    def test_clean_text_only_rstripped(self):
        assert strip_leaked_reasoning("fine  \n") == "fine"

    def test_normalize_literal_newlines_and_mentions(self):
        assert normalize_outbound("line1\\nline2 \\<@123>") == "line1\nline2 <@123>"

    def test_normalize_channel_mention(self):
        assert normalize_outbound("go to \\<#9>") == "go to <#9>"
