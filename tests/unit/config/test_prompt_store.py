"""
Tests for PromptStore loading and updates.
"""

import pytest

from chloe.config.prompt_store import DEFAULT_PROMPT, PromptStore


class TestPromptStore:
    def test_initial_prompt(self):
        store = PromptStore()
        assert store.get() == DEFAULT_PROMPT
        assert store.version == 0

    @pytest.mark.asyncio
    async def test_reload_reads_file(self, tmp_path):
        path = tmp_path / "prompt.txt"
        path.write_text("  Be nice.\n", encoding="utf-8")
        store = PromptStore(path)

        assert await store.reload() is True
        assert store.get() == "Be nice."
        assert store.version == 1

    @pytest.mark.asyncio
    async def test_reload_missing_file_keeps_prompt(self, tmp_path):
        store = PromptStore(tmp_path / "missing.txt", initial="old")
        assert await store.reload() is False
        assert store.get() == "old"
        assert store.version == 0

    @pytest.mark.asyncio
    async def test_reload_empty_file_keeps_prompt(self, tmp_path):
        path = tmp_path / "prompt.txt"
        path.write_text("   \n", encoding="utf-8")
        store = PromptStore(path, initial="old")
        assert await store.reload() is False
        assert store.get() == "old"

    @pytest.mark.asyncio
    async def test_reload_without_path(self):
        assert await PromptStore().reload() is False

    @pytest.mark.asyncio
    async def test_set_replaces_prompt(self):
        store = PromptStore()
        await store.set("New prompt")
        assert store.get() == "New prompt"
        assert store.version == 1

    @pytest.mark.asyncio
    async def test_set_rejects_blank(self):
        store = PromptStore()
        with pytest.raises(ValueError):
            await store.set("  ")
