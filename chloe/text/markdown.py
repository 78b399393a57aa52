"""
Markdown-safe escaping for outbound Discord messages.

Model output is escaped so stray ``*`` or ``_`` do not turn into formatting,
but some substrings must survive byte-for-byte because Discord (or the user)
relies on them:

- mentions (``<@123>``) would stop pinging if their characters changed
- URLs would break if ``_`` inside them got a backslash
- emoticons like ``¯\\_(ツ)_/¯`` lose their arms
- sequences that are already escaped would become ``\\\\*`` on a second pass

The engine collects the spans matched by each preserving pattern, sorts and
merges them, then walks the text once: text between spans is escaped
character by character, text inside a span is copied verbatim. Which pattern
matched a span never matters, so the result does not depend on pattern order.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from chloe.text.patterns import (
    EMOTICON_PATTERN,
    ESCAPED_CHAR_PATTERN,
    MARKDOWN_CHARS,
    MENTION_PATTERN,
    URL_PATTERN,
)

Span = tuple[int, int]

DEFAULT_PRESERVE_PATTERNS: tuple[re.Pattern[str], ...] = (
    MENTION_PATTERN,
    URL_PATTERN,
    EMOTICON_PATTERN,
    ESCAPED_CHAR_PATTERN,
)


def merge_spans(spans: Iterable[Span]) -> list[Span]:
    """
    Merge overlapping or touching ``(start, end)`` spans.

    Example:
        >>> merge_spans([(5, 8), (0, 3), (3, 4), (7, 10)])
        [(0, 4), (5, 10)]
    """
    merged: list[Span] = []
    for start, end in sorted(spans):
        if merged and start <= merged[-1][1]:
            last_start, last_end = merged[-1]
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def _escape_chunk(chunk: str) -> str:
    return "".join(f"\\{c}" if c in MARKDOWN_CHARS else c for c in chunk)


class TextPreservationEngine:
    """
    Escapes markdown control characters outside preserved spans.

    Args:
        patterns: Compiled patterns whose matches are copied verbatim.
            Defaults to mentions, URLs, emoticons and already-escaped characters.
    """

    def __init__(self, patterns: Sequence[re.Pattern[str]] = DEFAULT_PRESERVE_PATTERNS):
        self._patterns = tuple(patterns)

    def preserved_spans(self, text: str) -> list[Span]:
        """Return merged, sorted spans that must not be escaped."""
        spans = [
            m.span()
            for pattern in self._patterns
            for m in pattern.finditer(text)
            if m.end() > m.start()
        ]
        return merge_spans(spans)

    def escape(self, text: str) -> str:
        """Escape ``* _ ` ~ | >`` everywhere except inside preserved spans."""
        if not text:
            return text

        parts: list[str] = []
        cursor = 0
        for start, end in self.preserved_spans(text):
            parts.append(_escape_chunk(text[cursor:start]))
            parts.append(text[start:end])
            cursor = end
        parts.append(_escape_chunk(text[cursor:]))
        return "".join(parts)


_default_engine = TextPreservationEngine()


def escape_markdown(text: str) -> str:
    """Escape text with the default preserving patterns."""
    return _default_engine.escape(text)
