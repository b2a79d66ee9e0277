"""Build text messages from Slack message events, rewriting Slack markup into plain text."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from .conversation_cache import ConversationCache
from .errors import NormalizationError, SlackError
from .models import Mention, TextMessage, User
from .user_directory import UserDirectory

LOGGER = logging.getLogger(__name__)

# <@U123>, <#C123|general>, <!here>, <https://example.com|example>
MARKUP_PATTERN = re.compile(r"<([@#!])?([^>|]+)(?:\|([^>]+))?>")
SPECIAL_MENTIONS = ("channel", "group", "everyone", "here")


def unescape(text: str) -> str:
    return text.replace("&lt;", "<").replace("&gt;", ">").replace("&amp;", "&")


def nested_message(event: Dict[str, Any]) -> Dict[str, Any]:
    message = event.get("message")
    return message if isinstance(message, dict) else {}


def event_text(event: Dict[str, Any]) -> str:
    text = event.get("text")
    if text is None:
        text = nested_message(event).get("text")
    return text if isinstance(text, str) else ""


class TextMessageBuilder:
    def __init__(self, users: UserDirectory, conversations: ConversationCache) -> None:
        self._users = users
        self._conversations = conversations

    async def build(
        self,
        user: User,
        text: Optional[str],
        event: Dict[str, Any],
        room: Optional[str],
    ) -> TextMessage:
        """Create a :class:`TextMessage`, raising :class:`NormalizationError` on malformed events."""
        message_ts = event.get("ts") or nested_message(event).get("ts")
        if not message_ts:
            raise NormalizationError(f"Message event without ts in {room or 'unknown room'}")
        if text is not None and not isinstance(text, str):
            raise NormalizationError(f"Message text must be a string, got {type(text).__name__}")

        raw_text = text if text is not None else event_text(event)
        for attachment in event.get("attachments") or []:
            fallback = attachment.get("fallback") if isinstance(attachment, dict) else None
            if fallback:
                raw_text = f"{raw_text}\n{fallback}" if raw_text else fallback

        plain_text, mentions = await self.replace_markup(raw_text)
        return TextMessage(
            user=user,
            text=plain_text,
            id=message_ts,
            room=room or "",
            raw_text=raw_text,
            raw_message=event,
            thread_ts=event.get("thread_ts"),
            mentions=mentions,
        )

    async def replace_markup(self, text: str) -> Tuple[str, List[Mention]]:
        mentions: List[Mention] = []
        pieces: List[str] = []
        position = 0
        for match in MARKUP_PATTERN.finditer(text):
            pieces.append(text[position:match.start()])
            pieces.append(await self._render(match, mentions))
            position = match.end()
        pieces.append(text[position:])
        return unescape("".join(pieces)), mentions

    async def _render(self, match: re.Match, mentions: List[Mention]) -> str:
        kind, link, label = match.group(1), match.group(2), match.group(3)

        if kind == "@":
            try:
                user = await self._users.resolve(link)
            except SlackError as exc:
                LOGGER.debug("Could not resolve mentioned user %s: %s", link, exc)
                mentions.append(Mention(id=link, type="user"))
                return f"@{label or link}"
            mentions.append(Mention(id=link, type="user", info=user))
            return f"@{user.name or label or link}"

        if kind == "#":
            try:
                conversation = await self._conversations.resolve(link)
            except SlackError as exc:
                LOGGER.debug("Could not resolve mentioned conversation %s: %s", link, exc)
                mentions.append(Mention(id=link, type="conversation"))
                return f"#{label or link}"
            mentions.append(Mention(id=link, type="conversation", info=conversation))
            return f"#{conversation.get('name') or label or link}"

        if kind == "!":
            if link in SPECIAL_MENTIONS:
                return f"@{link}"
            if link.startswith("subteam^"):
                return label or f"@{link.split('^', 1)[1]}"
            return label or link

        link = re.sub(r"^mailto:", "", link)
        if label and label not in link:
            return f"{label} ({link})"
        return link
