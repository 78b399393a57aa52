"""
Text handling for chat output and input.

- ``markdown``: escape markdown while preserving mentions, URLs, emoticons
  and already-escaped sequences
- ``sanitizer``: impersonation guard, inline image extraction, truncation
  and clean-up of model output
"""

from chloe.text.markdown import TextPreservationEngine, escape_markdown

__all__ = ["TextPreservationEngine", "escape_markdown"]
