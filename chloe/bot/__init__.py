"""
Discord Bot Layer.

Adapts discord.py to the engine: message triggers, the conversation source
the context builder reads from, and the side channel tools act through.
"""

from chloe.bot.client import ChloeBot

__all__ = ["ChloeBot"]
