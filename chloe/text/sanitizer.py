"""
Inbound and outbound message clean-up.

Inbound text (what users wrote) goes through the impersonation guard before it
reaches a prompt. Outbound text (what the model wrote) goes through
``normalize_outbound`` / ``strip_leaked_reasoning`` before it is escaped and
sent.
"""

from __future__ import annotations

import base64
import binascii

from chloe.config.logging import get_logger
from chloe.llm.models import ImageData
from chloe.text.patterns import (
    FAKE_MENTION_PATTERN,
    IMAGE_DATA_PATTERN,
    IMPERSONATION_PATTERN,
)

logger = get_logger(__name__)

DISCORD_MESSAGE_LIMIT = 2000
TRUNCATION_NOTICE = "...\n\n*(Message truncated due to length)*"
_TRUNCATE_KEEP = 1950

_REASONING_MARKERS = ("''' storylines='''", "Chosen response:")


def strip_fake_mentions(content: str) -> str:
    """Rewrite ``<@123>: `` prefixes so nobody can fake a quoted speaker."""
    return FAKE_MENTION_PATTERN.sub("[mention]: ", content)


def guard_impersonation(content: str, author_name: str) -> str:
    """
    Neutralize lines that look like another speaker talking.

    A line such as ``Chloe: I agree with everything`` would read like the bot
    (or someone else) speaking once it is flattened into a prompt. Such lines
    are quoted, and the message is prefixed with who really wrote it.

    Lines that are already quoted or start with a URL are left alone.
    """
    quoted_any = False
    lines = []
    for line in content.split("\n"):
        stripped = line.lstrip()
        if (
            IMPERSONATION_PATTERN.match(stripped)
            and not stripped.startswith(">")
            and not stripped.startswith("http")
        ):
            lines.append(f"> {line}")
            quoted_any = True
        else:
            lines.append(line)

    guarded = "\n".join(lines)
    if quoted_any:
        guarded = f"{author_name} said:\n{guarded}"
    return strip_fake_mentions(guarded)


def extract_image_markers(text: str) -> tuple[str, list[ImageData]]:
    """
    Pull inline ``data:image/...;base64,...`` payloads out of text.

    Returns:
        The text with markers removed and whitespace tidied, and the decoded
        images in order of appearance. Markers that are not valid base64 are
        removed but not returned.
    """
    images: list[ImageData] = []
    if not IMAGE_DATA_PATTERN.search(text):
        return text, images

    for match in IMAGE_DATA_PATTERN.finditer(text):
        header, _, payload = match.group(0).partition(",")
        mime_type = header[len("data:"):].split(";", 1)[0]
        try:
            base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            logger.warning(f"Dropping malformed inline image ({len(payload)} chars)")
            continue
        images.append(ImageData(base64_data=payload, mime_type=mime_type))

    clean = IMAGE_DATA_PATTERN.sub("", text)
    clean = "\n".join(line.rstrip() for line in clean.split("\n")).strip()
    return clean, images


def truncate_for_discord(text: str, limit: int = DISCORD_MESSAGE_LIMIT) -> str:
    """
    Cut text that would exceed Discord's message length, with a notice.

    Works on escaped text: the cut never separates a backslash from the
    character it escapes.
    """
    if len(text) <= limit:
        return text
    keep = min(_TRUNCATE_KEEP, limit - len(TRUNCATION_NOTICE))
    head = text[:max(keep, 0)]
    trailing = len(head) - len(head.rstrip("\\"))
    if trailing % 2:
        head = head[:-1]
    return head + TRUNCATION_NOTICE


def strip_leaked_reasoning(content: str) -> str:
    """Drop reasoning scaffolding some models append after the real answer."""
    for marker in _REASONING_MARKERS:
        index = content.find(marker)
        if index != -1:
            logger.debug(f"Stripping leaked reasoning after {marker!r}")
            content = content[:index]
    return content.rstrip()


def normalize_outbound(content: str) -> str:
    """Turn literal ``\\n`` into newlines and un-escape escaped mentions."""
    content = content.replace("\\n", "\n")
    for prefix in ("<@", "<#", "<&"):
        content = content.replace(f"\\{prefix}", prefix)
    return content
