"""
Shared holder for the base system prompt.

The prompt is owned by one PromptStore instance created at startup and passed
to every component that needs it (prompt builder, CLI). Readers get an
immutable string snapshot; writers go through ``reload()`` / ``set()`` which
serialize on a lock, so a turn in flight keeps the prompt it started with.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import aiofiles

from chloe.config.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PROMPT = "You're Chloe, a discord bot."


class PromptStore:
    """
    Base system prompt with explicit reload.

    Args:
        path: File the prompt is (re)loaded from. None keeps the in-memory value only.
        initial: Prompt used until the first successful load.
    """

    def __init__(self, path: str | Path | None = None, initial: str = DEFAULT_PROMPT):
        self._path = Path(path) if path is not None else None
        self._prompt = initial
        self._version = 0
        self._lock = asyncio.Lock()

    @property
    def version(self) -> int:
        """Incremented on every successful update."""
        return self._version

    def get(self) -> str:
        """Return the current prompt snapshot."""
        return self._prompt

    async def set(self, prompt: str) -> None:
        """Replace the prompt in memory (e.g. pushed from an admin command)."""
        if not prompt.strip():
            raise ValueError("Prompt cannot be empty")
        async with self._lock:
            self._prompt = prompt
            self._version += 1
        logger.info(f"System prompt updated (version {self._version}, {len(prompt)} chars)")

    async def reload(self) -> bool:
        """
        Re-read the prompt file.

        Returns:
            True if the prompt was loaded, False if no file is configured or it
            does not exist (the previous prompt stays in place).
        """
        if self._path is None:
            return False
        if not self._path.exists():
            logger.warning(f"Prompt file not found at {self._path}, keeping current prompt")
            return False

        async with aiofiles.open(self._path, encoding="utf-8") as f:
            content = await f.read()

        content = content.strip()
        if not content:
            logger.warning(f"Prompt file {self._path} is empty, keeping current prompt")
            return False

        async with self._lock:
            self._prompt = content
            self._version += 1
        logger.info(f"System prompt loaded from {self._path} ({len(content)} chars)")
        return True
