"""Chat platform adapters."""

from .i_chat_adapter import IChatAdapter
from .slack_adapter import SlackAdapter

__all__ = ["IChatAdapter", "SlackAdapter"]
