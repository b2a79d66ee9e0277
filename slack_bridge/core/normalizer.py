"""Classify inbound Slack events and turn them into runtime messages."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from .errors import SlackBridgeError, SlackError
from .formatter import TextMessageBuilder, event_text
from .models import (
    DropReason,
    Dropped,
    EnterMessage,
    EventType,
    FileSharedMessage,
    InboundEvent,
    LeaveMessage,
    NormalizedMessage,
    ReactionMessage,
    ReactionType,
    SelfIdentity,
    User,
)
from .user_directory import UserDirectory

LOGGER = logging.getLogger(__name__)

Result = Union[NormalizedMessage, Dropped]
Handler = Callable[[InboundEvent, User], Awaitable[Result]]


def add_bot_mention(event: Dict[str, Any], identity: SelfIdentity) -> str:
    """Prefix the bot mention onto direct-message text that does not already address the bot."""
    text = event_text(event)
    if text and event.get("channel_type") == "im" and identity.user_id not in text:
        text = f"{identity.mention} {text}"
    return text


def replace_bot_mention(text: str, identity: SelfIdentity, alias: Optional[str]) -> str:
    """Swap the bot mention for the runtime alias, or ``@name`` when no alias is set."""
    if identity.mention not in text:
        return text
    replacement = alias if alias else f"@{identity.user}"
    return text.replace(identity.mention, replacement, 1)


class EventNormalizer:
    """Stateless classifier; user and conversation state lives in the injected stores."""

    def __init__(
        self,
        users: UserDirectory,
        text_builder: TextMessageBuilder,
        alias: Optional[str] = None,
    ) -> None:
        self._users = users
        self._text_builder = text_builder
        self._alias = alias
        self._identity: Optional[SelfIdentity] = None
        self._handlers: Dict[EventType, Handler] = {
            EventType.MEMBER_JOINED_CHANNEL: self._member_joined,
            EventType.MEMBER_LEFT_CHANNEL: self._member_left,
            EventType.REACTION_ADDED: self._reaction,
            EventType.REACTION_REMOVED: self._reaction,
            EventType.FILE_SHARED: self._file_shared,
        }

    def set_identity(self, identity: SelfIdentity) -> None:
        self._identity = identity

    def set_alias(self, alias: Optional[str]) -> None:
        self._alias = alias

    async def normalize(self, raw: InboundEvent) -> Result:
        actor_id = raw.actor_id
        if not actor_id or not raw.event.get("type"):
            return Dropped(DropReason.NO_ACTOR)
        if self._identity is None:
            return Dropped(DropReason.NOT_AUTHENTICATED)

        try:
            user = await self._users.resolve(actor_id)
        except SlackError as exc:
            LOGGER.error("Dropping event from unresolved user %s: %s", actor_id, exc)
            return Dropped(DropReason.ACTOR_UNRESOLVED, str(exc))

        if user.id == self._identity.user_id:
            return Dropped(DropReason.SELF_AUTHORED)

        event = raw.event
        user = user.in_room(event.get("channel"))
        if event_text(event):
            text = add_bot_mention(event, self._identity)
            event["text"] = replace_bot_mention(text, self._identity, self._alias)
            LOGGER.debug("Text = %s", event["text"])

        handler = self._handlers.get(raw.type, self._text)
        return await handler(raw, user)

    async def _member_joined(self, raw: InboundEvent, user: User) -> Result:
        LOGGER.debug("Received enter message for user: %s, joining: %s", user.id, user.room)
        return EnterMessage(user=user, ts=raw.event.get("ts"))

    async def _member_left(self, raw: InboundEvent, user: User) -> Result:
        LOGGER.debug("Received leave message for user: %s, leaving: %s", user.id, user.room)
        # The outer envelope ts, not the inner event ts.
        return LeaveMessage(user_id=user.id, ts=raw.ts)

    async def _reaction(self, raw: InboundEvent, user: User) -> Result:
        event = raw.event
        item = event.get("item") or {}
        # Reactions on files and file comments are not scoped to a conversation.
        room = item.get("channel", "") if item.get("type") == "message" else ""
        user = user.in_room(room)
        item_user = await self._resolve_item_user(event.get("item_user"))
        LOGGER.debug(
            "Received reaction message from: %s, reaction: %s, item type: %s",
            user.id,
            event.get("reaction"),
            item.get("type"),
        )
        return ReactionMessage(
            type=ReactionType(event["type"]),
            user=user,
            reaction=event.get("reaction", ""),
            item_user=item_user,
            item=item,
            event_ts=event.get("event_ts"),
        )

    async def _file_shared(self, raw: InboundEvent, user: User) -> Result:
        event = raw.event
        LOGGER.debug("Received file_shared message from: %s, file_id: %s", user.id, event.get("file_id"))
        return FileSharedMessage(user=user, file_id=event.get("file_id", ""), event_ts=event.get("event_ts"))

    async def _text(self, raw: InboundEvent, user: User) -> Result:
        event = raw.event
        LOGGER.debug("Received generic message: %s", event.get("type"))
        try:
            return await self._text_builder.build(user, event.get("text"), event, event.get("channel"))
        except (SlackBridgeError, AttributeError, KeyError, TypeError, ValueError) as exc:
            LOGGER.error("Dropping message due to error %s", exc)
            return Dropped(DropReason.MALFORMED, str(exc))

    async def _resolve_item_user(self, item_user: Any) -> User:
        if isinstance(item_user, dict):
            if not item_user.get("id"):
                return User.empty()
            if item_user.get("name") is not None:
                return self._users.update_from_event(item_user)
            item_user = item_user["id"]
        if not item_user:
            return User.empty()
        try:
            return await self._users.resolve(item_user)
        except SlackError as exc:
            LOGGER.debug("Could not resolve item user %s: %s", item_user, exc)
            return User.empty()
