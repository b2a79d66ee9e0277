"""Domain models for Slack Bridge."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union


class EventType(str, Enum):
    """Inbound Slack event types the adapter knows how to normalize."""

    MESSAGE = "message"
    MEMBER_JOINED_CHANNEL = "member_joined_channel"
    MEMBER_LEFT_CHANNEL = "member_left_channel"
    REACTION_ADDED = "reaction_added"
    REACTION_REMOVED = "reaction_removed"
    FILE_SHARED = "file_shared"
    USER_CHANGE = "user_change"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "EventType":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class MessageKind(str, Enum):
    TEXT = "text"
    ENTER = "enter"
    LEAVE = "leave"
    REACTION = "reaction"
    FILE_SHARED = "file_shared"


class ReactionType(str, Enum):
    ADDED = "reaction_added"
    REMOVED = "reaction_removed"


class DropReason(str, Enum):
    NO_ACTOR = "no-actor"
    SELF_AUTHORED = "self-authored"
    NOT_AUTHENTICATED = "not-authenticated"
    ACTOR_UNRESOLVED = "actor-unresolved"
    MALFORMED = "malformed"


@dataclass
class User:
    """A Slack user as seen by the bot runtime.

    ``slack`` holds the raw platform payload and is replaced on every sighting.
    ``extra`` holds fields added locally by the runtime or its scripts; they
    survive refreshes unless the platform starts sending a field of the same name.
    """

    id: str
    name: Optional[str] = None
    real_name: Optional[str] = None
    email_address: Optional[str] = None
    slack: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)
    room: str = ""

    @classmethod
    def from_slack(cls, payload: Dict[str, Any]) -> "User":
        profile = payload.get("profile") or {}
        return cls(
            id=payload["id"],
            name=payload.get("name"),
            real_name=payload.get("real_name"),
            email_address=profile.get("email"),
            slack=dict(payload),
        )

    @classmethod
    def empty(cls) -> "User":
        return cls(id="")

    def merged_over(self, previous: Optional["User"]) -> "User":
        """Return this fresh sighting merged on top of a previously stored record."""
        if previous is None:
            return self
        extra = {
            key: value
            for key, value in previous.extra.items()
            if key not in self.slack
        }
        extra.update(self.extra)
        return replace(
            self,
            email_address=self.email_address or previous.email_address,
            extra=extra,
        )

    def in_room(self, room: Optional[str]) -> "User":
        """Per-event copy carrying the room the event happened in."""
        return replace(self, room=room or "")


@dataclass(frozen=True)
class SelfIdentity:
    """The bot's own identity as reported by ``auth.test``."""

    user_id: str
    user: str
    team: Optional[str] = None
    team_id: Optional[str] = None
    bot_id: Optional[str] = None

    @classmethod
    def from_auth_test(cls, payload: Dict[str, Any]) -> "SelfIdentity":
        return cls(
            user_id=payload["user_id"],
            user=payload.get("user") or "",
            team=payload.get("team"),
            team_id=payload.get("team_id"),
            bot_id=payload.get("bot_id"),
        )

    @property
    def mention(self) -> str:
        return f"<@{self.user_id}>"


@dataclass
class ConversationEntry:
    conversation_id: str
    metadata: Dict[str, Any]
    fetched_at_ms: float

    def is_fresh(self, now_ms: float, ttl_ms: int) -> bool:
        return now_ms - self.fetched_at_ms < ttl_ms


AckFn = Callable[[], Awaitable[None]]


@dataclass
class InboundEvent:
    """One Events API delivery from the transport.

    ``event`` is the inner Slack event, ``body`` the outer payload and ``ts``
    the outer envelope timestamp.
    """

    event: Dict[str, Any]
    body: Dict[str, Any] = field(default_factory=dict)
    ts: Optional[str] = None
    ack: Optional[AckFn] = None
    _acked: bool = field(default=False, repr=False)

    @property
    def type(self) -> EventType:
        return EventType.parse(self.event.get("type"))

    @property
    def actor_id(self) -> Optional[str]:
        actor = self.event.get("user")
        if actor is None and self.type == EventType.FILE_SHARED:
            actor = self.event.get("user_id")
        if isinstance(actor, dict):
            actor = actor.get("id")
        return actor or None

    async def acknowledge(self) -> None:
        if self._acked or self.ack is None:
            return
        self._acked = True
        await self.ack()


@dataclass(frozen=True)
class Mention:
    id: str
    type: str
    info: Optional[Any] = None


@dataclass
class TextMessage:
    user: User
    text: str
    id: str
    room: str = ""
    raw_text: str = ""
    raw_message: Dict[str, Any] = field(default_factory=dict)
    thread_ts: Optional[str] = None
    mentions: List[Mention] = field(default_factory=list)
    kind: MessageKind = field(default=MessageKind.TEXT, init=False)


@dataclass
class EnterMessage:
    user: User
    ts: Optional[str] = None
    kind: MessageKind = field(default=MessageKind.ENTER, init=False)

    @property
    def room(self) -> str:
        return self.user.room


@dataclass
class LeaveMessage:
    user_id: str
    ts: Optional[str] = None
    kind: MessageKind = field(default=MessageKind.LEAVE, init=False)


@dataclass
class ReactionMessage:
    type: ReactionType
    user: User
    reaction: str
    item_user: User
    item: Dict[str, Any]
    event_ts: Optional[str] = None
    kind: MessageKind = field(default=MessageKind.REACTION, init=False)

    @property
    def room(self) -> str:
        return self.user.room


@dataclass
class FileSharedMessage:
    user: User
    file_id: str
    event_ts: Optional[str] = None
    kind: MessageKind = field(default=MessageKind.FILE_SHARED, init=False)

    @property
    def room(self) -> str:
        return self.user.room


NormalizedMessage = Union[
    TextMessage, EnterMessage, LeaveMessage, ReactionMessage, FileSharedMessage
]


@dataclass(frozen=True)
class Dropped:
    reason: DropReason
    detail: Optional[str] = None


@dataclass
class Envelope:
    """Where a runtime reply should go."""

    room: Optional[str] = None
    id: Optional[str] = None
    user: Optional[User] = None
    message: Optional[TextMessage] = None

    @property
    def thread_ts(self) -> Optional[str]:
        return self.message.thread_ts if self.message else None
