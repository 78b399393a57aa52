"""
Conversation context.

Turns a triggering chat message into a ConversationContext (reply chain,
supplemental channel history, participant directory) and renders the system
prompt from it.
"""

from chloe.context.builder import ContextBuilder, ConversationSource
from chloe.context.models import ConversationContext, Message, Participant, PlatformMessage
from chloe.context.prompt import PromptBuilder

__all__ = [
    "ContextBuilder",
    "ConversationContext",
    "ConversationSource",
    "Message",
    "Participant",
    "PlatformMessage",
    "PromptBuilder",
]
