"""Core event normalization and caching logic for Slack Bridge."""

from .config import Config, load_config
from .conversation_cache import ConversationCache
from .errors import (
    ConfigError,
    ConversationLookupError,
    NormalizationError,
    SlackBridgeError,
    SlackError,
    UserLoadError,
)
from .formatter import TextMessageBuilder
from .models import (
    DropReason,
    Dropped,
    EnterMessage,
    Envelope,
    EventType,
    FileSharedMessage,
    InboundEvent,
    LeaveMessage,
    MessageKind,
    NormalizedMessage,
    ReactionMessage,
    ReactionType,
    SelfIdentity,
    TextMessage,
    User,
)
from .normalizer import EventNormalizer
from .outbound import OutboundGateway
from .runtime import BotRuntime, InMemoryRuntime, UserStore
from .user_directory import UserDirectory
from .web_client import SerializedWebClient

__all__ = [
    "Config",
    "load_config",
    "ConversationCache",
    "UserDirectory",
    "OutboundGateway",
    "EventNormalizer",
    "TextMessageBuilder",
    "SerializedWebClient",
    "BotRuntime",
    "InMemoryRuntime",
    "UserStore",
    "DropReason",
    "Dropped",
    "EnterMessage",
    "Envelope",
    "EventType",
    "FileSharedMessage",
    "InboundEvent",
    "LeaveMessage",
    "MessageKind",
    "NormalizedMessage",
    "ReactionMessage",
    "ReactionType",
    "SelfIdentity",
    "TextMessage",
    "User",
    "SlackBridgeError",
    "ConfigError",
    "SlackError",
    "ConversationLookupError",
    "UserLoadError",
    "NormalizationError",
]
