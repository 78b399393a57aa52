"""Canonical tool names."""

from enum import Enum


class ToolName(str, Enum):
    WEB_SEARCH = "web_search"
    FETCH = "fetch"
    GENERATE_IMAGE = "generate_image"
    SEND_MESSAGE = "discord_send_message"
    ADD_REACTION = "discord_add_reaction"
    CALCULATE = "calculate"
    CURRENT_TIME = "get_current_time"
