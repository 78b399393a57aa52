"""
Tool Integration Layer.

Tools the model can call during a turn: web search, URL fetch, image
generation, arithmetic, the current time, and the Discord actions (send a
message, add a reaction) performed through a per-turn SideChannel.
"""

from chloe.tools.base import SideChannel, Tool, ToolDefinition, ToolInvocation, ToolOutcome
from chloe.tools.names import ToolName
from chloe.tools.registry import ToolRegistry

__all__ = [
    "SideChannel",
    "Tool",
    "ToolDefinition",
    "ToolInvocation",
    "ToolName",
    "ToolOutcome",
    "ToolRegistry",
]
