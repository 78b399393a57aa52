"""
Chloe - LLM-powered Discord bot.

This package provides a chat-completion orchestration engine: it builds an
enriched prompt for a conversational turn, calls an LLM provider, executes the
tools the model asks for and delivers the final answer back to Discord.
"""

__version__ = "0.1.0"
