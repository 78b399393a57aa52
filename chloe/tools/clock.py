"""Current date and time."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from chloe.tools.base import SideChannel, Tool
from chloe.tools.names import ToolName


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CurrentTimeTool(Tool):
    name = ToolName.CURRENT_TIME.value
    description = "Get the current date and time in UTC"
    parameters_schema = {"type": "object", "properties": {}, "required": []}

    def __init__(self, clock: Callable[[], datetime] = _utc_now):
        self._clock = clock

    async def execute(
        self,
        parameters: dict[str, Any],
        side_channel: SideChannel | None = None,
    ) -> str:
        return f"Current UTC time: {self._clock().strftime('%Y-%m-%d %H:%M:%S UTC')}"
